# customers/services/balance_service.py

"""
CUSTOMER BALANCE SERVICE (SINGLE WRITER)

This module is the ONLY code allowed to write Customer.total_debt.

Two layers of protection against lost updates:
1) lock_customer() takes a row lock (SELECT ... FOR UPDATE) for the rest of
   the transaction on backends that support it.
2) write_customer_debt() is a compare-and-swap on `version`; if another
   writer got in between the read and the write, zero rows match and
   StaleBalanceError is raised so the coordinator re-runs the operation.

Must be called inside ledger.services.coordinator.run_atomic().
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import F
from django.utils import timezone

from customers.models import Customer
from ledger.services.exceptions import (
    NotFoundError,
    StaleBalanceError,
    ValidationError,
)
from ledger.services.money import ZERO, quantize

logger = logging.getLogger("ledger")


def _fetch_for_update(customer_id) -> Customer:
    return Customer.objects.select_for_update().get(pk=customer_id)


def lock_customer(*, customer_id, require_active: bool = False) -> Customer:
    """
    Read the customer's current balance snapshot under a row lock.
    """
    try:
        customer = _fetch_for_update(customer_id)
    except (Customer.DoesNotExist, DjangoValidationError, ValueError) as exc:
        raise NotFoundError(f"Customer {customer_id} not found") from exc

    if require_active and not customer.is_active:
        raise ValidationError(
            f"Customer {customer_id} is inactive", field="customer_id"
        )

    return customer


def write_customer_debt(*, customer: Customer, new_debt: Decimal) -> Customer:
    """
    Persist `new_debt` only if the row is still at the version we read.
    """
    new_debt = quantize(new_debt)
    now = timezone.now()

    updated = Customer.objects.filter(pk=customer.pk, version=customer.version).update(
        total_debt=new_debt,
        version=F("version") + 1,
        updated_at=now,
    )

    if updated != 1:
        raise StaleBalanceError(
            f"Customer {customer.pk} balance changed concurrently "
            f"(expected version {customer.version})"
        )

    previous = customer.total_debt
    customer.total_debt = new_debt
    customer.version += 1
    customer.updated_at = now
    customer.mark_ledger_synced()

    logger.debug(
        "Customer balance written",
        extra={
            "customer_id": str(customer.pk),
            "previous_debt": str(previous),
            "new_debt": str(new_debt),
            "version": customer.version,
        },
    )
    return customer


def apply_debt_delta(
    *, customer: Customer, delta: Decimal, floor_at_zero: bool = False
) -> tuple[Decimal, Decimal]:
    """
    Add `delta` to the locked customer's balance.

    floor_at_zero is used by payments only: a payment may never push the
    balance below zero, and never moves an existing credit (negative
    balance left by a void or amendment). Returns (previous_debt, new_debt).
    """
    previous = customer.total_debt
    new_debt = previous + Decimal(delta)

    if floor_at_zero and new_debt < ZERO:
        new_debt = max(new_debt, min(previous, ZERO))

    write_customer_debt(customer=customer, new_debt=new_debt)
    return previous, customer.total_debt


def customer_balance_snapshot(customer: Customer) -> dict:
    return {
        "id": str(customer.pk),
        "total_debt": customer.total_debt,
        "version": customer.version,
    }
