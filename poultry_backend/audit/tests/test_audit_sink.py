# audit/tests/test_audit_sink.py

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError, transaction
from django.test import TestCase

from audit.models import AuditLog
from audit.services.audit_sink import normalize_actor, record_audit_entry


class AuditSinkTests(TestCase):
    def test_nothing_is_written_before_commit(self):
        record_audit_entry(table="CUSTOMERS", operation=AuditLog.OP_UPDATE)
        self.assertFalse(AuditLog.objects.exists())

    def test_entry_written_after_commit_with_json_safe_values(self):
        record_id = uuid.uuid4()

        with self.captureOnCommitCallbacks(execute=True):
            record_audit_entry(
                table="INVOICES",
                operation=AuditLog.OP_INSERT,
                new_values={"amount": Decimal("12.50"), "day": date(2025, 1, 10), "id": record_id},
                actor_id="11",
                record_id=record_id,
            )

        entry = AuditLog.objects.get()
        self.assertEqual(entry.record_id, str(record_id))
        self.assertEqual(entry.actor_id, "11")
        self.assertIsNone(entry.old_values)
        self.assertEqual(
            entry.new_values,
            {"amount": "12.50", "day": "2025-01-10", "id": str(record_id)},
        )

    def test_values_are_snapshotted_at_call_time(self):
        values = {"total_debt": Decimal("1.00")}

        with self.captureOnCommitCallbacks(execute=True):
            record_audit_entry(table="CUSTOMERS", operation=AuditLog.OP_UPDATE, new_values=values)
            values["total_debt"] = Decimal("999.00")

        self.assertEqual(AuditLog.objects.get().new_values, {"total_debt": "1.00"})

    def test_rolled_back_work_leaves_no_audit(self):
        with self.captureOnCommitCallbacks(execute=True):
            try:
                with transaction.atomic():
                    record_audit_entry(table="PAYMENTS", operation=AuditLog.OP_INSERT)
                    raise RuntimeError("abort")
            except RuntimeError:
                pass

        self.assertFalse(AuditLog.objects.exists())

    def test_audit_failure_is_logged_not_raised(self):
        with mock.patch.object(AuditLog.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertLogs("audit", level="ERROR"):
                with self.captureOnCommitCallbacks(execute=True):
                    record_audit_entry(table="PAYMENTS", operation=AuditLog.OP_INSERT)

    def test_actor_normalization(self):
        self.assertEqual(normalize_actor(None), "SYSTEM")
        self.assertEqual(normalize_actor("  "), "SYSTEM")
        self.assertEqual(normalize_actor(7), "7")

    def test_audit_rows_are_immutable(self):
        with self.captureOnCommitCallbacks(execute=True):
            record_audit_entry(table="PAYMENTS", operation=AuditLog.OP_INSERT)

        entry = AuditLog.objects.get()
        with self.assertRaises(RuntimeError):
            entry.save()
        with self.assertRaises(RuntimeError):
            entry.delete()
