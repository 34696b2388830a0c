# sales/services/invoice_calculations.py

"""
INVOICE CALCULATIONS (PURE)

No database access. Used by the settlement engine at creation time and by
the integrity check to recompute derived fields from stored raw inputs.

    net_weight   = max(0, gross_weight - cages_weight)
    total_amount = net_weight * unit_price
    final_amount = total_amount * (1 - discount_percentage / 100)

All results are quantized to 2 decimal places (ROUND_HALF_UP).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ledger.services.exceptions import ValidationError
from ledger.services.money import ZERO, quantize, to_decimal

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class InvoiceAmounts:
    net_weight: Decimal
    total_amount: Decimal
    final_amount: Decimal


def _to_positive_int(value, *, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number", field=field)

    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and value.strip().isdigit():
        result = int(value.strip())
    else:
        raise ValidationError(f"{field} must be a whole number", field=field)

    if result <= 0:
        raise ValidationError(f"{field} must be > 0", field=field)
    return result


def validate_discount_percentage(value) -> Decimal:
    discount = quantize(to_decimal(value, field="discount_percentage"))
    if discount < ZERO or discount > HUNDRED:
        raise ValidationError(
            "Discount percentage must be between 0 and 100",
            field="discount_percentage",
        )
    return discount


def validate_invoice_inputs(
    *,
    gross_weight,
    cages_weight,
    cages_count,
    unit_price,
    discount_percentage,
) -> dict:
    """
    Normalize and validate raw invoice inputs. Raises before any write.
    """
    # Validated at stored (2 dp) precision.
    gross = quantize(to_decimal(gross_weight, field="gross_weight"))
    cages = quantize(to_decimal(cages_weight, field="cages_weight"))
    price = quantize(to_decimal(unit_price, field="unit_price"))

    if gross <= ZERO:
        raise ValidationError("Gross weight must be > 0", field="gross_weight")

    if cages < ZERO:
        raise ValidationError("Cages weight cannot be negative", field="cages_weight")

    if cages >= gross:
        raise ValidationError(
            "Cages weight must be less than gross weight (net weight would be non-positive)",
            field="cages_weight",
        )

    if price < ZERO:
        raise ValidationError("Unit price cannot be negative", field="unit_price")

    return {
        "gross_weight": gross,
        "cages_weight": cages,
        "cages_count": _to_positive_int(cages_count, field="cages_count"),
        "unit_price": price,
        "discount_percentage": validate_discount_percentage(discount_percentage),
    }


def calculate_net_weight(gross_weight, cages_weight) -> Decimal:
    return quantize(max(ZERO, Decimal(gross_weight) - Decimal(cages_weight)))


def calculate_total_amount(net_weight, unit_price) -> Decimal:
    return quantize(Decimal(net_weight) * Decimal(unit_price))


def calculate_discount_amount(total_amount, discount_percentage) -> Decimal:
    discount = validate_discount_percentage(discount_percentage)
    return quantize(Decimal(total_amount) * discount / HUNDRED)


def calculate_final_amount(total_amount, discount_percentage) -> Decimal:
    return quantize(
        Decimal(total_amount) - calculate_discount_amount(total_amount, discount_percentage)
    )


def compute_invoice_amounts(
    *, gross_weight, cages_weight, unit_price, discount_percentage
) -> InvoiceAmounts:
    net_weight = calculate_net_weight(gross_weight, cages_weight)
    total_amount = calculate_total_amount(net_weight, unit_price)
    final_amount = calculate_final_amount(total_amount, discount_percentage)

    return InvoiceAmounts(
        net_weight=net_weight,
        total_amount=total_amount,
        final_amount=final_amount,
    )
