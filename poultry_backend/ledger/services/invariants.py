# ledger/services/invariants.py

"""
MATERIALIZED BALANCE INVARIANT

    Customer.total_debt == Σ invoice.final_amount - Σ payment.applied_amount

Voided invoices carry final_amount = 0 and reversed payments are excluded,
so the formula holds across every settlement operation. Read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.db.models import DecimalField, OuterRef, Subquery, Sum, Value
from django.db.models.functions import Coalesce

from customers.models import Customer
from ledger.services.coordinator import ledger_setting
from ledger.services.money import ZERO, quantize, within_tolerance
from payments.models import Payment
from sales.models import Invoice

_MONEY = DecimalField(max_digits=14, decimal_places=2)


@dataclass(frozen=True)
class BalanceDiscrepancy:
    customer_id: str
    customer_name: str
    stored_debt: Decimal
    expected_debt: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored_debt - self.expected_debt


def expected_customer_debt(customer) -> Decimal:
    invoiced = Invoice.objects.filter(customer=customer).aggregate(
        total=Coalesce(Sum("final_amount"), Value(ZERO, output_field=_MONEY))
    )["total"]
    paid = Payment.objects.filter(customer=customer, is_reversed=False).aggregate(
        total=Coalesce(Sum("applied_amount"), Value(ZERO, output_field=_MONEY))
    )["total"]
    return quantize(invoiced - paid)


def _annotated_customers():
    invoiced = (
        Invoice.objects.filter(customer=OuterRef("pk"))
        .order_by()
        .values("customer")
        .annotate(total=Sum("final_amount"))
        .values("total")
    )
    paid = (
        Payment.objects.filter(customer=OuterRef("pk"), is_reversed=False)
        .order_by()
        .values("customer")
        .annotate(total=Sum("applied_amount"))
        .values("total")
    )
    return Customer.objects.annotate(
        invoiced_total=Coalesce(Subquery(invoiced, output_field=_MONEY), Value(ZERO, output_field=_MONEY)),
        paid_total=Coalesce(Subquery(paid, output_field=_MONEY), Value(ZERO, output_field=_MONEY)),
    ).order_by("name")


def find_balance_discrepancies(*, tolerance=None) -> list[BalanceDiscrepancy]:
    tol = Decimal(str(tolerance if tolerance is not None else ledger_setting("INTEGRITY_TOLERANCE", "0.01")))
    found = []

    for customer in _annotated_customers():
        expected = quantize(customer.invoiced_total - customer.paid_total)
        if not within_tolerance(customer.total_debt, expected, tol):
            found.append(
                BalanceDiscrepancy(
                    customer_id=str(customer.pk),
                    customer_name=customer.name,
                    stored_debt=customer.total_debt,
                    expected_debt=expected,
                )
            )

    return found
