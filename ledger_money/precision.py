import math
import re
from decimal import (
    ROUND_DOWN,
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)
from typing import Union

from ledger_money.constants import MAX_AMOUNT_DIGITS
from ledger_money.errors import InvalidArgument

# All library arithmetic runs under this context, never the thread's default one.
# 1000 significant digits keeps products of amounts and rates exact.
DECIMAL_CONTEXT = Context(
    prec=1000,
    rounding=ROUND_DOWN,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

_DECIMAL_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

DecimalLike = Union[Decimal, int, str, float]


def check_magnitude(value: Decimal, original: object = None) -> Decimal:
    """
    Rejects finite values too large, or too finely written, for DECIMAL_CONTEXT:
    more than MAX_AMOUNT_DIGITS integral or significant digits.
    """
    shown = value if original is None else original
    if value.is_zero():
        return value
    if value.adjusted() >= MAX_AMOUNT_DIGITS:
        raise InvalidArgument(
            f"Amount {shown!r} has more than {MAX_AMOUNT_DIGITS} integral digits"
        )
    if len(value.as_tuple().digits) > MAX_AMOUNT_DIGITS:
        raise InvalidArgument(
            f"Amount {shown!r} has more than {MAX_AMOUNT_DIGITS} significant digits"
        )
    return value


def parse_decimal(text: str) -> Decimal:
    """
    Parses a plain decimal numeral ("12", "-0.5", "1.25e3") into an exact Decimal.
    NaN, Infinity, underscores, non-string input and out-of-range magnitudes are rejected.
    """
    if not isinstance(text, str):
        raise InvalidArgument(
            f"Amount must be a decimal string, got {type(text).__name__}: {text!r}"
        )

    stripped = text.strip()
    if not _DECIMAL_PATTERN.fullmatch(stripped):
        raise InvalidArgument(f"Invalid decimal string: {text!r}")

    return check_magnitude(Decimal(stripped), text)


def as_decimal(value: DecimalLike) -> Decimal:
    """
    Converts a caller-supplied scalar (e.g. a conversion rate) into Decimal.
    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary expansion.
    """
    if isinstance(value, bool):
        raise InvalidArgument(f"Expected a number, got bool: {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidArgument(f"Expected a finite number, got {value!r}")
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = parse_decimal(value)
    else:
        raise InvalidArgument(
            f"Expected a number, got {type(value).__name__}: {value!r}"
        )

    if not result.is_finite():
        raise InvalidArgument(f"Expected a finite number, got {value!r}")
    return check_magnitude(result, value)


def scale(value: Decimal, exponent: int) -> Decimal:
    """Multiplies value by 10 ** exponent. Only the exponent changes, so this is exact."""
    try:
        return value.scaleb(exponent, context=DECIMAL_CONTEXT)
    except DecimalException as e:
        raise InvalidArgument(f"Cannot scale {value!r} by 10**{exponent}: {e!r}") from e


def truncate(value: Decimal, places: int, rounding: str = ROUND_DOWN) -> Decimal:
    """
    Quantizes value to `places` fractional digits.
    The default rounding, ROUND_DOWN, drops excess digits toward zero: 1.239 -> 1.23, -1.239 -> -1.23.
    """
    try:
        result = value.quantize(Decimal(1).scaleb(-places), rounding=rounding, context=DECIMAL_CONTEXT)
    except DecimalException as e:
        raise InvalidArgument(
            f"Cannot represent {value!r} with {places} fractional digits: {e!r}"
        ) from e
    if result.is_zero():
        # "-0.00" is not a meaningful amount
        result = result.copy_abs()
    return result


def format_fixed(value: Decimal, places: int, rounding: str = ROUND_DOWN) -> str:
    """Renders value with exactly `places` fractional digits, never in scientific notation."""
    return format(truncate(value, places, rounding), "f")


def is_integral(value: Decimal) -> bool:
    return value == value.to_integral_value(rounding=ROUND_DOWN, context=DECIMAL_CONTEXT)


class Precision:
    """
    Handles conversion between display units (tokens) and integer ledger units (coins)
    for a specific number of decimal places.
    """
    def __init__(self, decimals: int):
        if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
            raise InvalidArgument(
                f"Precision must be a non-negative integer, got {decimals!r}"
            )
        self.decimals = decimals

    def to_coins(self, tokens: Decimal, rounding: str = ROUND_DOWN) -> Decimal:
        """
        Converts tokens to an integral coin amount.
        e.g. tokens=1.239, decimals=2 -> 123
        """
        return truncate(scale(tokens, self.decimals), 0, rounding)

    def to_tokens(self, coins: Decimal) -> Decimal:
        """
        Converts coins back to tokens. Exact.
        e.g. coins=123, decimals=2 -> 1.23
        """
        return scale(coins, -self.decimals)

    def format_tokens(self, coins: Decimal) -> str:
        return format_fixed(self.to_tokens(coins), self.decimals)

    def __repr__(self) -> str:
        return f"Precision({self.decimals})"
