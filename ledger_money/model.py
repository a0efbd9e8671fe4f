from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from ledger_money.constants import MAX_ASSET_PRECISION
from ledger_money.errors import InvalidArgument
from ledger_money.precision import Precision

# Accepted spellings for descriptor-shaped input, in lookup order.
# Node responses use assetId/decimals, the static table uses id/precision.
_IDENTIFIER_KEYS = ("identifier", "id", "assetId", "asset_id")
_NAME_KEYS = ("display_name", "displayName", "name")
_PRECISION_KEYS = ("precision", "decimals")

_MISSING = object()


def _lookup(data: Any, keys) -> Any:
    for key in keys:
        if isinstance(data, Mapping):
            value = data.get(key, _MISSING)
        else:
            value = getattr(data, key, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return _MISSING


@dataclass(frozen=True)
class AssetDescriptor:
    """
    Immutable identity record of an asset.
    Two descriptors with the same identifier are the same asset, so equality and
    hashing only look at `identifier`.
    """
    identifier: str
    display_name: str = field(compare=False)
    precision: int = field(compare=False)

    def __post_init__(self):
        if not isinstance(self.identifier, str) or not self.identifier.strip():
            raise InvalidArgument(
                f"Asset identifier must be a non-empty string, got {self.identifier!r}"
            )
        if not isinstance(self.display_name, str):
            raise InvalidArgument(
                f"Asset display name must be a string, got {self.display_name!r}"
            )
        if (
            isinstance(self.precision, bool)
            or not isinstance(self.precision, int)
            or not 0 <= self.precision <= MAX_ASSET_PRECISION
        ):
            raise InvalidArgument(
                f"Asset precision must be an integer in [0, {MAX_ASSET_PRECISION}], got {self.precision!r}"
            )

    @property
    def units(self) -> Precision:
        return Precision(self.precision)

    @classmethod
    def from_data(cls, data: Any) -> "AssetDescriptor":
        """
        Builds a descriptor from descriptor-shaped input: a mapping or an object with
        id/identifier/assetId, name/display_name/displayName and precision/decimals.
        """
        if isinstance(data, AssetDescriptor):
            return data

        identifier = _lookup(data, _IDENTIFIER_KEYS)
        precision = _lookup(data, _PRECISION_KEYS)
        if identifier is _MISSING or precision is _MISSING:
            raise InvalidArgument(
                f"Descriptor data needs an identifier and a precision, got {data!r}"
            )

        name = _lookup(data, _NAME_KEYS)
        if name is _MISSING:
            name = identifier

        # Precision may arrive as "8" from JSON/YAML sources.
        if isinstance(precision, str) and precision.strip().isdigit():
            precision = int(precision)

        return cls(identifier=identifier, display_name=name, precision=precision)

    def __str__(self) -> str:
        return self.identifier


AssetRef = Union[AssetDescriptor, str]


def is_descriptor_like(value: Any) -> bool:
    """True if `value` carries enough fields for AssetDescriptor.from_data()."""
    if isinstance(value, AssetDescriptor):
        return True
    if isinstance(value, str):
        return False
    return (
        _lookup(value, _IDENTIFIER_KEYS) is not _MISSING
        and _lookup(value, _PRECISION_KEYS) is not _MISSING
    )
