import logging
from decimal import Decimal, DecimalException
from typing import Any, Awaitable, Dict, Optional

from ledger_money.assets.registry import AssetRegistry
from ledger_money.errors import IncompatibleAsset, InvalidArgument
from ledger_money.model import AssetDescriptor, AssetRef
from ledger_money.precision import (
    DECIMAL_CONTEXT,
    DecimalLike,
    as_decimal,
    format_fixed,
    is_integral,
    parse_decimal,
    truncate,
)

logger = logging.getLogger(__name__)


class Money:
    """
    An amount of an asset, held as an integral number of coins (minor units).

    Build instances with `from_tokens` / `from_coins`; both only accept decimal
    strings, since a float cannot hold every decimal fraction exactly. Every
    operation returns a new Money, except converting to the asset the money is
    already in, which returns the same instance.
    """

    __slots__ = ("_asset", "_coins")

    def __init__(self, coins: Decimal, asset: AssetDescriptor):
        if not isinstance(asset, AssetDescriptor):
            raise InvalidArgument(
                f"$asset must be an AssetDescriptor, but provided value is: {asset!r}"
            )
        if not isinstance(coins, Decimal) or not coins.is_finite() or not is_integral(coins):
            raise InvalidArgument(
                f"$coins must be an integral Decimal, but provided value is: {coins!r}"
            )
        self._asset = asset
        # Normalizes the exponent so 1E+3 and 1000 are stored alike
        self._coins = truncate(coins, 0)

    # Construction

    @classmethod
    def from_tokens(
        cls,
        tokens: str,
        asset: AssetRef,
        registry: Optional[AssetRegistry] = None,
    ) -> Awaitable["Money"]:
        """
        Creates Money from an amount in display units, e.g. "1.5" WAVES.

        Digits beyond the asset's precision are dropped, not rounded. Argument
        errors raise immediately; asset resolution errors surface on await.
        """
        value = parse_decimal(tokens)
        _check_asset_argument(asset, registry)
        return cls._create(value, asset, registry, is_tokens=True)

    @classmethod
    def from_coins(
        cls,
        coins: str,
        asset: AssetRef,
        registry: Optional[AssetRegistry] = None,
    ) -> Awaitable["Money"]:
        """Creates Money from an integral amount in minor units, e.g. "150000000" WAVES."""
        value = parse_decimal(coins)
        if not is_integral(value):
            raise InvalidArgument(f"Coin amount must be an integer, got {coins!r}")
        _check_asset_argument(asset, registry)
        return cls._create(value, asset, registry, is_tokens=False)

    @classmethod
    async def _create(
        cls,
        value: Decimal,
        asset: AssetRef,
        registry: Optional[AssetRegistry],
        is_tokens: bool,
    ) -> "Money":
        if isinstance(asset, AssetDescriptor):
            descriptor = asset
        else:
            descriptor = await registry.resolve(asset)

        coins = descriptor.units.to_coins(value) if is_tokens else value
        return cls(coins, descriptor)

    def clone_with_tokens(self, tokens: str) -> "Money":
        value = parse_decimal(tokens)
        return Money(self._asset.units.to_coins(value), self._asset)

    def clone_with_coins(self, coins: str) -> "Money":
        value = parse_decimal(coins)
        if not is_integral(value):
            raise InvalidArgument(f"Coin amount must be an integer, got {coins!r}")
        return Money(value, self._asset)

    @staticmethod
    def is_money(value: Any) -> bool:
        return isinstance(value, Money)

    # Accessors

    @property
    def asset(self) -> AssetDescriptor:
        return self._asset

    def get_coins(self) -> Decimal:
        return self._coins

    def get_tokens(self) -> Decimal:
        return self._asset.units.to_tokens(self._coins)

    def to_coins(self) -> str:
        return format_fixed(self._coins, 0)

    def to_tokens(self) -> str:
        return self._asset.units.format_tokens(self._coins)

    def to_json(self) -> Dict[str, str]:
        return {"assetId": self._asset.identifier, "tokens": self.to_tokens()}

    def is_zero(self) -> bool:
        return self._coins.is_zero()

    def is_negative(self) -> bool:
        return self._coins < 0

    def is_positive(self) -> bool:
        return self._coins > 0

    # Arithmetic

    def _check_same_asset(self, other: "Money"):
        if not isinstance(other, Money):
            raise InvalidArgument(
                f"Expected Money, but provided value is: {type(other).__name__}"
            )
        if self._asset != other._asset:
            raise IncompatibleAsset(self._asset.identifier, other._asset.identifier)

    def add(self, other: "Money") -> "Money":
        self._check_same_asset(other)
        return Money(DECIMAL_CONTEXT.add(self._coins, other._coins), self._asset)

    def sub(self, other: "Money") -> "Money":
        self._check_same_asset(other)
        return Money(DECIMAL_CONTEXT.subtract(self._coins, other._coins), self._asset)

    def __add__(self, other):
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, Money):
            return NotImplemented
        return self.sub(other)

    def __neg__(self) -> "Money":
        return Money(DECIMAL_CONTEXT.minus(self._coins), self._asset)

    def __abs__(self) -> "Money":
        return Money(DECIMAL_CONTEXT.abs(self._coins), self._asset)

    # Comparison (same asset required)

    def eq(self, other: "Money") -> bool:
        self._check_same_asset(other)
        return self._coins == other._coins

    def lt(self, other: "Money") -> bool:
        self._check_same_asset(other)
        return self._coins < other._coins

    def lte(self, other: "Money") -> bool:
        self._check_same_asset(other)
        return self._coins <= other._coins

    def gt(self, other: "Money") -> bool:
        self._check_same_asset(other)
        return self._coins > other._coins

    def gte(self, other: "Money") -> bool:
        self._check_same_asset(other)
        return self._coins >= other._coins

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self._asset == other._asset and self._coins == other._coins

    def __lt__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.lt(other)

    def __le__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.lte(other)

    def __gt__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.gt(other)

    def __ge__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.gte(other)

    def __hash__(self) -> int:
        return hash((self._asset.identifier, self._coins))

    # Conversion

    @staticmethod
    def convert(money: "Money", target_asset: AssetDescriptor, rate: DecimalLike) -> "Money":
        """
        Expresses `money` in `target_asset` at `rate` target tokens per source token.
        The result is truncated to the target's precision. Converting to the
        asset `money` already has returns `money` itself.
        """
        if not isinstance(money, Money):
            raise InvalidArgument(
                f"$money must be Money, but provided value is: {type(money).__name__}"
            )
        if not isinstance(target_asset, AssetDescriptor):
            raise InvalidArgument(
                f"$target_asset must be an AssetDescriptor, but provided value is: {target_asset!r}"
            )

        if target_asset == money.asset:
            return money

        factor = as_decimal(rate)
        try:
            tokens = DECIMAL_CONTEXT.multiply(money.get_tokens(), factor)
        except DecimalException as e:
            raise InvalidArgument(f"Cannot convert {money} at rate {factor}: {e!r}") from e
        converted = Money(target_asset.units.to_coins(tokens), target_asset)
        logger.debug(f"Converted {money} to {converted} at rate {factor}")
        return converted

    def convert_to(self, target_asset: AssetDescriptor, rate: DecimalLike) -> "Money":
        return Money.convert(self, target_asset, rate)

    # String representations

    def __str__(self) -> str:
        """Return string like '1000.00000000 WAVES'."""
        return f"{self.to_tokens()} {self._asset.identifier}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_tokens()}, {self._asset.identifier})"


def _check_asset_argument(asset: Any, registry: Optional[AssetRegistry]):
    if isinstance(asset, AssetDescriptor):
        return
    if isinstance(asset, str):
        if registry is None:
            raise InvalidArgument(
                f"Asset {asset!r} given by identifier, but no registry to resolve it"
            )
        return
    raise InvalidArgument(
        f"$asset must be an AssetDescriptor or an identifier, but provided value is: {asset!r}"
    )
