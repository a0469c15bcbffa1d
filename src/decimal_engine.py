import logging
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Optional, Union

from edifact_errors import InvalidDecimal, DivisionByZero

logger = logging.getLogger(__name__)

DECIMAL_PATTERN = re.compile(r'^[+-]?\d+(\.\d+)?$')
DIVISION_TOLERANCE = Decimal("0.0000001")
WORKING_PRECISION = 60
# Largest significant-digit count accepted for a single input value.
MAX_INPUT_DIGITS = 28

# Repertoires that reserve "." and print decimals with a comma.
COMMA_DECIMAL_CHARSETS = ("UNOA", "UNOB")

DecimalLike = Union[str, int, float, Decimal]


def parse(value: DecimalLike) -> Decimal:
    """Parses a decimal string (or int/Decimal) without going through binary floats."""
    if isinstance(value, bool):
        raise InvalidDecimal(f"Invalid decimal value: {value!r}", details={"value": str(value)})
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidDecimal(f"Invalid decimal value: {value}", details={"value": str(value)})
        return value
    if isinstance(value, float):
        # repr gives the shortest round-tripping string; "f" expands exponents such as 1e16
        text = format(Decimal(repr(value)), "f")
    else:
        text = str(value).strip()
    if not DECIMAL_PATTERN.match(text):
        raise InvalidDecimal(f"Invalid decimal value: {text[:50]}", details={"value": text[:50]})
    return Decimal(text)


def scale_of(precision_template: str) -> int:
    parse(precision_template)
    _, _, fraction = precision_template.strip().partition('.')
    return len(fraction)


def _quantum(scale: int) -> Decimal:
    return Decimal(1).scaleb(-scale)


def _quantize(value: Decimal, scale: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        try:
            return value.quantize(_quantum(scale), rounding=ROUND_HALF_UP)
        except InvalidOperation:
            preview = format(value, "f")[:50]
            raise InvalidDecimal(
                f"Decimal value exceeds {WORKING_PRECISION} working digits: {preview}",
                details={"value": preview, "scale": scale},
            ) from None


def _to_text(value: Decimal, scale: Optional[int]) -> str:
    if scale is None:
        return format(value, 'f')
    return format(_quantize(value, scale), 'f')


def round_decimal(value: DecimalLike, precision_template: str) -> str:
    """Rounds half away from zero and always prints the template's fractional digits."""
    return _to_text(parse(value), scale_of(precision_template))


def add(a: DecimalLike, b: DecimalLike, scale: Optional[int] = None) -> str:
    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        return _to_text(parse(a) + parse(b), scale)


def multiply(a: DecimalLike, b: DecimalLike, scale: Optional[int] = None) -> str:
    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        return _to_text(parse(a) * parse(b), scale)


def divide(a: DecimalLike, b: DecimalLike, scale: Optional[int] = None) -> str:
    divisor = parse(b)
    if abs(divisor) < DIVISION_TOLERANCE:
        raise DivisionByZero("Division by zero or very small number", details={"divisor": str(divisor)})
    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        return _to_text(parse(a) / divisor, scale)


def compare(a: DecimalLike, b: DecimalLike, scale: int) -> int:
    """Returns 0 when the values are within half a unit at `scale`, else -1/1."""
    left, right = parse(a), parse(b)
    with localcontext() as ctx:
        ctx.prec = WORKING_PRECISION
        if abs(left - right) < _quantum(scale) / 2:
            return 0
    return -1 if left < right else 1


def format_for_charset(value: DecimalLike, charset: str, scale: int) -> str:
    text = _to_text(parse(value), scale)
    if charset in COMMA_DECIMAL_CHARSETS:
        return text.replace('.', ',')
    return text


def validate_precision(value: DecimalLike, precision_template: str) -> bool:
    """True when rounding to the template's scale would not alter the value."""
    number = parse(value)
    return _quantize(number, scale_of(precision_template)) == number
