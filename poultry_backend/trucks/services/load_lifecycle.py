"""
TRUCK LOAD LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed status transitions
for TruckLoad entities.

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth
"""

from ledger.services.exceptions import InvalidStatusTransitionError
from trucks.models import TruckLoad

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    TruckLoad.STATUS_RECONCILED,
}

ALLOWED_TRANSITIONS = {
    TruckLoad.STATUS_LOADED: {
        TruckLoad.STATUS_IN_TRANSIT,
        TruckLoad.STATUS_RECONCILED,
    },
    TruckLoad.STATUS_IN_TRANSIT: {
        TruckLoad.STATUS_RECONCILED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, load: TruckLoad, target_status: str):
    if not can_transition(
        from_status=load.status,
        to_status=target_status,
    ):
        raise InvalidStatusTransitionError(
            f"Invalid truck load transition: {load.status} -> {target_status}",
            field="status",
        )
