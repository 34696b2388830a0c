# ledger/services/money.py

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ledger.services.exceptions import ValidationError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value, *, field: str) -> Decimal:
    """
    Strict decimal parser for engine inputs.
    Floats go through str() so 0.1 stays 0.1.
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required", field=field)

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationError(
                f"{field} must be a number, got {value!r}", field=field
            ) from exc

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)

    return result


def quantize(value) -> Decimal:
    return Decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def money(value, *, field: str = "amount") -> Decimal:
    return quantize(to_decimal(value, field=field))


def within_tolerance(a, b, tolerance) -> bool:
    return abs(Decimal(a) - Decimal(b)) <= Decimal(tolerance)
