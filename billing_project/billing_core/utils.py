from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from django.core.exceptions import ValidationError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def money(q) -> Decimal:
    return Decimal(q).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value, field_name):
    """
    Coerce a caller-supplied number (str, int, float, Decimal) to Decimal.
    Floats go through str() so 0.1 stays 0.1.
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be a finite number")
    return result
