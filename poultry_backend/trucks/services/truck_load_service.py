# trucks/services/truck_load_service.py

"""
TRUCK LOAD INTAKE

Records the weight loaded onto a truck and advances its status.

Validation (before any write):
- total_weight in (0, MAX_TOTAL_WEIGHT]
- cages_count in (0, MAX_CAGES]
- average kg per cage in [MIN_AVG_CAGE_WEIGHT, MAX_AVG_CAGE_WEIGHT]

A load for a (truck, date) that is already reconciled is rejected: the
reconciliation would no longer match the loads it summed.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from audit.models import AuditLog
from audit.services.audit_sink import SYSTEM_ACTOR, normalize_actor, record_audit_entry
from ledger.services.coordinator import run_atomic
from ledger.services.exceptions import NotFoundError, ValidationError
from ledger.services.money import ZERO, money
from trucks.models import TruckLoad
from trucks.services.day_lock import assert_day_open, lock_truck
from trucks.services.load_lifecycle import validate_transition

logger = logging.getLogger("reconciliation")

TRUCK_LOADS_TABLE = "TRUCK_LOADS"

DEFAULT_LIMITS = {
    "MAX_TOTAL_WEIGHT": 10000,
    "MAX_CAGES": 500,
    "MIN_AVG_CAGE_WEIGHT": 1,
    "MAX_AVG_CAGE_WEIGHT": 50,
}


def load_limit(name: str) -> Decimal:
    limits = getattr(settings, "TRUCK_LOAD_LIMITS", None) or {}
    return Decimal(str(limits.get(name, DEFAULT_LIMITS[name])))


def load_snapshot(load: TruckLoad) -> dict:
    return {
        "id": str(load.pk),
        "truck_id": str(load.truck_id),
        "load_date": load.load_date,
        "total_weight": load.total_weight,
        "cages_count": load.cages_count,
        "status": load.status,
    }


def validate_load_inputs(*, total_weight, cages_count) -> tuple[Decimal, int]:
    weight = money(total_weight, field="total_weight")
    if weight <= ZERO:
        raise ValidationError("Total weight must be > 0", field="total_weight")
    if weight > load_limit("MAX_TOTAL_WEIGHT"):
        raise ValidationError(
            f"Total weight cannot exceed {load_limit('MAX_TOTAL_WEIGHT')} kg",
            field="total_weight",
        )

    if isinstance(cages_count, bool):
        raise ValidationError("cages_count must be a whole number", field="cages_count")
    try:
        cages = int(cages_count)
    except (TypeError, ValueError) as exc:
        raise ValidationError("cages_count must be a whole number", field="cages_count") from exc

    if cages <= 0:
        raise ValidationError("Cages count must be > 0", field="cages_count")
    if cages > load_limit("MAX_CAGES"):
        raise ValidationError(
            f"Cages count cannot exceed {load_limit('MAX_CAGES')}",
            field="cages_count",
        )

    average = weight / Decimal(cages)
    if average < load_limit("MIN_AVG_CAGE_WEIGHT") or average > load_limit("MAX_AVG_CAGE_WEIGHT"):
        raise ValidationError(
            f"Average weight per cage ({average:.2f} kg) is outside the allowed range "
            f"{load_limit('MIN_AVG_CAGE_WEIGHT')}-{load_limit('MAX_AVG_CAGE_WEIGHT')} kg",
            field="total_weight",
        )

    return weight, cages


def create_truck_load(
    *,
    truck_id,
    total_weight,
    cages_count,
    load_date=None,
    notes: str = "",
    actor_id=SYSTEM_ACTOR,
    cancel=None,
) -> TruckLoad:
    weight, cages = validate_load_inputs(total_weight=total_weight, cages_count=cages_count)
    on_date = load_date or timezone.localdate()
    actor = normalize_actor(actor_id)

    def _body() -> TruckLoad:
        truck = lock_truck(truck_id=truck_id, require_active=True)
        assert_day_open(truck=truck, on_date=on_date)

        load = TruckLoad.objects.create(
            truck=truck,
            load_date=on_date,
            total_weight=weight,
            cages_count=cages,
            notes=(notes or "").strip()[:255],
            created_by=actor,
        )

        record_audit_entry(
            table=TRUCK_LOADS_TABLE,
            operation=AuditLog.OP_INSERT,
            new_values=load_snapshot(load),
            actor_id=actor,
            record_id=load.pk,
        )
        return load

    load = run_atomic(
        _body,
        operation="create_truck_load",
        entity_id=truck_id,
        cancel=cancel,
    )

    logger.info(
        "Truck load recorded",
        extra={
            "load_id": str(load.pk),
            "truck_id": str(load.truck_id),
            "load_date": str(load.load_date),
            "total_weight": str(load.total_weight),
            "cages_count": load.cages_count,
        },
    )
    return load


def update_load_status(
    *,
    load_id,
    new_status: str,
    actor_id=SYSTEM_ACTOR,
    cancel=None,
) -> TruckLoad:
    target = (new_status or "").strip().upper()
    actor = normalize_actor(actor_id)

    def _body() -> TruckLoad:
        try:
            load = TruckLoad.objects.select_for_update().get(pk=load_id)
        except (TruckLoad.DoesNotExist, DjangoValidationError, ValueError) as exc:
            raise NotFoundError(f"Truck load {load_id} not found") from exc

        validate_transition(load=load, target_status=target)

        old_values = load_snapshot(load)
        load.status = target
        load.save(update_fields=["status", "updated_at"])

        record_audit_entry(
            table=TRUCK_LOADS_TABLE,
            operation=AuditLog.OP_UPDATE,
            old_values=old_values,
            new_values=load_snapshot(load),
            actor_id=actor,
            record_id=load.pk,
        )
        return load

    load = run_atomic(
        _body,
        operation="update_load_status",
        entity_id=load_id,
        cancel=cancel,
    )

    logger.info(
        "Truck load status changed",
        extra={"load_id": str(load.pk), "status": load.status},
    )
    return load
