# trucks/services/day_lock.py

"""
======================================================
PATH: trucks/services/day_lock.py
======================================================
TRUCK DAY LOCK GUARD

Purpose:
- Serialize every writer that affects a truck's daily figures (invoice
  creation, load intake, reconciliation) on the truck row lock.
- Block new invoices / loads for a (truck, date) that is already reconciled,
  so a finalized reconciliation never goes stale.
"""

from __future__ import annotations

from datetime import date

from django.core.exceptions import ValidationError as DjangoValidationError

from ledger.services.exceptions import ConflictError, NotFoundError, ValidationError
from trucks.models import DailyReconciliation, Truck


def lock_truck(*, truck_id, require_active: bool = False) -> Truck:
    try:
        truck = Truck.objects.select_for_update().get(pk=truck_id)
    except (Truck.DoesNotExist, DjangoValidationError, ValueError) as exc:
        raise NotFoundError(f"Truck {truck_id} not found") from exc

    if require_active and not truck.is_active:
        raise ValidationError(f"Truck {truck.truck_number} is inactive", field="truck_id")

    return truck


def is_day_reconciled(*, truck, on_date: date) -> bool:
    return DailyReconciliation.objects.filter(
        truck=truck,
        reconciliation_date=on_date,
    ).exists()


def assert_day_open(*, truck, on_date: date) -> None:
    """
    Raises:
        ConflictError if (truck, on_date) already has a reconciliation.
    """
    if is_day_reconciled(truck=truck, on_date=on_date):
        raise ConflictError(
            f"Truck {truck} is already reconciled for {on_date}; the day is closed."
        )
