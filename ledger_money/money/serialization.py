import json
from decimal import Decimal
from typing import Any, Dict, Union

import jsonschema

from ledger_money.assets.registry import AssetRegistry
from ledger_money.errors import InvalidArgument
from ledger_money.model import AssetDescriptor
from ledger_money.money.money import Money

# Wire shape of a Money value: the asset id and the token amount, nothing else.
MONEY_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Money",
    "type": "object",
    "properties": {
        "assetId": {"type": "string", "minLength": 1},
        "tokens": {
            "type": "string",
            "pattern": r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$",
        },
    },
    "required": ["assetId", "tokens"],
    "additionalProperties": False,
}


class MoneyEncoder(json.JSONEncoder):
    """JSON encoder for Money values and the types they are made of."""

    def default(self, obj):
        if isinstance(obj, Money):
            return obj.to_json()
        if isinstance(obj, Decimal):
            # Keep every digit; a float would lose them
            return format(obj, "f")
        if isinstance(obj, AssetDescriptor):
            return obj.identifier
        return super(MoneyEncoder, self).default(obj)


def dumps(value: Any, **kwargs) -> str:
    """json.dumps with MoneyEncoder and compact separators."""
    kwargs.setdefault("cls", MoneyEncoder)
    kwargs.setdefault("separators", (",", ":"))
    return json.dumps(value, **kwargs)


def validate_money_json(data: Any):
    try:
        jsonschema.validate(instance=data, schema=MONEY_JSON_SCHEMA)
    except jsonschema.ValidationError as e:
        raise InvalidArgument(f"Invalid Money JSON: {e.message}") from e


async def money_from_json(data: Union[str, bytes, Dict[str, Any]], registry: AssetRegistry) -> Money:
    """
    Builds Money from its JSON form, e.g. {"assetId": "WAVES", "tokens": "1.00000000"}.
    The asset is resolved through `registry`.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise InvalidArgument(f"Invalid Money JSON: {e}") from e

    validate_money_json(data)
    return await Money.from_tokens(data["tokens"], data["assetId"], registry)
