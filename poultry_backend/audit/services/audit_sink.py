# audit/services/audit_sink.py

"""
AUDIT SINK (WRITE-BEHIND)

record_audit_entry() is fire-and-forget from the engine's point of view:
- values are snapshotted immediately (JSON-safe copy)
- the AuditLog row is written only AFTER the business transaction commits
  (transaction.on_commit), so rolled-back operations leave no audit rows
- a failing audit write is logged and never breaks the committed operation
"""

from __future__ import annotations

import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.db import DatabaseError, transaction

from audit.models import AuditLog

logger = logging.getLogger("audit")

SYSTEM_ACTOR = "SYSTEM"


def _snapshot(values):
    if values is None:
        return None
    return json.loads(json.dumps(values, cls=DjangoJSONEncoder))


def normalize_actor(actor_id) -> str:
    actor = str(actor_id).strip() if actor_id is not None else ""
    return actor or SYSTEM_ACTOR


def record_audit_entry(
    *,
    table: str,
    operation: str,
    old_values=None,
    new_values=None,
    actor_id=SYSTEM_ACTOR,
    record_id=None,
) -> None:
    payload = {
        "table_name": table,
        "operation": operation,
        "record_id": "" if record_id is None else str(record_id),
        "old_values": _snapshot(old_values),
        "new_values": _snapshot(new_values),
        "actor_id": normalize_actor(actor_id),
    }

    def _write():
        try:
            AuditLog.objects.create(**payload)
        except DatabaseError:
            logger.exception(
                "Audit write failed",
                extra={
                    "table": table,
                    "operation": operation,
                    "record_id": payload["record_id"],
                },
            )
            return

        logger.info(
            "Audit log created",
            extra={
                "table": table,
                "operation": operation,
                "record_id": payload["record_id"],
                "actor_id": payload["actor_id"],
            },
        )

    transaction.on_commit(_write)
