# trucks/services/reconciliation_service.py

"""
======================================================
PATH: trucks/services/reconciliation_service.py
======================================================
RECONCILIATION ENGINE

Per truck, per day:
    load_weight        = Σ TruckLoad.total_weight
    sold_weight        = Σ Invoice.net_weight (active invoices only)
    wastage_weight     = load_weight - sold_weight
    wastage_percentage = wastage_weight / load_weight * 100  (0 if no load)

GUARANTEES:
- Write-once: a second request for the same (truck, date) raises
  ConflictError carrying the existing record and never mutates it
- Consistent snapshot: the truck row lock is held while summing, and
  invoice creation / load intake for the truck take the same lock
- Concurrent duplicates: the unique constraint rejects the loser, which is
  turned into ConflictError after a read-after-conflict check
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import DecimalField, Exists, OuterRef, Sum, Value
from django.db.models.functions import Coalesce

from audit.models import AuditLog
from audit.services.audit_sink import SYSTEM_ACTOR, normalize_actor, record_audit_entry
from ledger.services.coordinator import run_atomic
from ledger.services.exceptions import ConflictError
from ledger.services.money import ZERO, quantize
from sales.models import Invoice
from trucks.models import DailyReconciliation, Truck, TruckLoad
from trucks.services.day_lock import lock_truck

logger = logging.getLogger("reconciliation")

RECONCILIATIONS_TABLE = "DAILY_RECONCILIATIONS"

HUNDRED = Decimal("100")

_DECIMAL_ZERO = Value(ZERO, output_field=DecimalField(max_digits=14, decimal_places=2))


def calculate_wastage(load_weight, sold_weight) -> tuple[Decimal, Decimal]:
    load = quantize(load_weight)
    sold = quantize(sold_weight)

    wastage = quantize(load - sold)
    if load > ZERO:
        percentage = quantize(wastage / load * HUNDRED)
    else:
        percentage = ZERO

    return wastage, percentage


def sum_load_weight(*, truck, on_date) -> Decimal:
    total = TruckLoad.objects.filter(truck=truck, load_date=on_date).aggregate(
        total=Coalesce(Sum("total_weight"), _DECIMAL_ZERO)
    )["total"]
    return quantize(total)


def sum_sold_weight(*, truck, on_date) -> Decimal:
    total = (
        Invoice.objects.filter(truck=truck, invoice_date=on_date)
        .exclude(status=Invoice.STATUS_VOIDED)
        .aggregate(total=Coalesce(Sum("net_weight"), _DECIMAL_ZERO))["total"]
    )
    return quantize(total)


def reconciliation_snapshot(record: DailyReconciliation) -> dict:
    return {
        "id": str(record.pk),
        "truck_id": str(record.truck_id),
        "reconciliation_date": record.reconciliation_date,
        "load_weight": record.load_weight,
        "sold_weight": record.sold_weight,
        "wastage_weight": record.wastage_weight,
        "wastage_percentage": record.wastage_percentage,
        "status": record.status,
    }


def _existing(*, truck, on_date) -> DailyReconciliation | None:
    return DailyReconciliation.objects.filter(
        truck=truck, reconciliation_date=on_date
    ).first()


def _duplicate(existing: DailyReconciliation) -> ConflictError:
    return ConflictError(
        f"Truck {existing.truck_id} is already reconciled for "
        f"{existing.reconciliation_date}",
        existing=existing,
    )


def reconcile_truck_day(
    *,
    truck_id,
    reconciliation_date,
    actor_id=SYSTEM_ACTOR,
    cancel=None,
) -> DailyReconciliation:
    """
    Finalize a truck's day. Raises ConflictError (with .existing) if the day
    was already reconciled, by an earlier or a concurrent request.
    """
    actor = normalize_actor(actor_id)

    def _body() -> DailyReconciliation:
        truck = lock_truck(truck_id=truck_id)

        existing = _existing(truck=truck, on_date=reconciliation_date)
        if existing is not None:
            raise _duplicate(existing)

        load_weight = sum_load_weight(truck=truck, on_date=reconciliation_date)
        sold_weight = sum_sold_weight(truck=truck, on_date=reconciliation_date)
        wastage_weight, wastage_percentage = calculate_wastage(load_weight, sold_weight)

        record = DailyReconciliation(
            truck=truck,
            reconciliation_date=reconciliation_date,
            load_weight=load_weight,
            sold_weight=sold_weight,
            wastage_weight=wastage_weight,
            wastage_percentage=wastage_percentage,
            status=DailyReconciliation.STATUS_COMPLETED,
            created_by=actor,
        )

        try:
            with transaction.atomic():
                record.save(force_insert=True)
        except IntegrityError as exc:
            winner = _existing(truck=truck, on_date=reconciliation_date)
            if winner is None:
                raise
            raise _duplicate(winner) from exc

        TruckLoad.objects.filter(truck=truck, load_date=reconciliation_date).exclude(
            status=TruckLoad.STATUS_RECONCILED
        ).update(status=TruckLoad.STATUS_RECONCILED)

        record_audit_entry(
            table=RECONCILIATIONS_TABLE,
            operation=AuditLog.OP_INSERT,
            new_values=reconciliation_snapshot(record),
            actor_id=actor,
            record_id=record.pk,
        )
        return record

    try:
        record = run_atomic(
            _body,
            operation="reconcile_truck_day",
            entity_id=truck_id,
            cancel=cancel,
        )
    except ConflictError as exc:
        logger.warning(
            "Reconciliation already exists",
            extra={
                "truck_id": str(truck_id),
                "reconciliation_date": str(reconciliation_date),
                "existing_id": str(exc.existing.pk) if exc.existing else None,
            },
        )
        raise

    logger.info(
        "Truck day reconciled",
        extra={
            "truck_id": str(record.truck_id),
            "reconciliation_date": str(record.reconciliation_date),
            "load_weight": str(record.load_weight),
            "sold_weight": str(record.sold_weight),
            "wastage_weight": str(record.wastage_weight),
            "wastage_percentage": str(record.wastage_percentage),
        },
    )
    return record


def trucks_requiring_reconciliation(on_date):
    already_done = DailyReconciliation.objects.filter(
        truck=OuterRef("pk"), reconciliation_date=on_date
    )
    return (
        Truck.objects.filter(loads__load_date=on_date)
        .exclude(Exists(already_done))
        .distinct()
        .order_by("truck_number")
    )
