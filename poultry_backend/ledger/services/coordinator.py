# ledger/services/coordinator.py

"""
======================================================
PATH: ledger/services/coordinator.py
======================================================
TRANSACTION COORDINATOR

The ONLY place that opens the atomic unit for ledger mutations.

Every engine operation that touches Customer.total_debt or creates a
reconciliation passes its read-validate-write body here as a callable:

    run_atomic(_body, operation="create_invoice", entity_id=customer_id)

Guarantees:
- The whole body runs inside one transaction.atomic() block
  (a savepoint when the caller already holds a transaction).
- StaleBalanceError / InvoiceNumberCollisionError roll the attempt back and
  re-run the body, up to LEDGER["MAX_ATTEMPTS"] attempts.
- OperationalError (lock timeout, connection loss) -> TransientError.
- A set cancellation signal before commit rolls everything back.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import DatabaseError, OperationalError, transaction

from ledger.services.exceptions import (
    ConcurrencyError,
    ConflictError,
    InvoiceNumberCollisionError,
    OperationCancelledError,
    StaleBalanceError,
    TransientError,
)

logger = logging.getLogger("ledger")

DEFAULT_MAX_ATTEMPTS = 3


def ledger_setting(name: str, default=None):
    return (getattr(settings, "LEDGER", None) or {}).get(name, default)


def _describe(operation: str, entity_id) -> str:
    if entity_id is None:
        return operation
    return f"{operation}[{entity_id}]"


def raise_if_cancelled(cancel, *, operation: str, entity_id=None) -> None:
    """
    `cancel` is anything exposing is_set() (threading.Event in practice).
    """
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError(
            f"{_describe(operation, entity_id)} was cancelled before commit"
        )


def run_atomic(
    fn,
    *,
    operation: str,
    entity_id=None,
    cancel=None,
    max_attempts: int | None = None,
):
    attempts = int(max_attempts or ledger_setting("MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))
    if attempts < 1:
        attempts = 1

    label = _describe(operation, entity_id)
    last_conflict: Exception | None = None

    for attempt in range(1, attempts + 1):
        raise_if_cancelled(cancel, operation=operation, entity_id=entity_id)

        try:
            with transaction.atomic():
                result = fn()
                # Last chance to abort: raising here rolls the block back.
                raise_if_cancelled(cancel, operation=operation, entity_id=entity_id)
            return result

        except (StaleBalanceError, InvoiceNumberCollisionError) as exc:
            last_conflict = exc
            logger.warning(
                "Ledger write conflict, retrying",
                extra={
                    "operation": operation,
                    "entity_id": str(entity_id),
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "reason": str(exc),
                },
            )

        except OperationalError as exc:
            logger.error(
                "Storage unavailable during ledger operation",
                extra={"operation": operation, "entity_id": str(entity_id)},
            )
            raise TransientError(f"{label} failed: storage unavailable ({exc})") from exc

        except DatabaseError:
            logger.exception(
                "Database error during ledger operation",
                extra={"operation": operation, "entity_id": str(entity_id)},
            )
            raise

    if isinstance(last_conflict, InvoiceNumberCollisionError):
        raise ConflictError(
            f"{label} failed: invoice number still colliding after {attempts} attempts"
        ) from last_conflict

    raise ConcurrencyError(
        f"{label} failed: concurrent balance updates after {attempts} attempts, try again"
    ) from last_conflict
