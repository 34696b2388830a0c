# audit/models.py

"""
AUDIT LOG (IMMUTABLE)

One row per ledger mutation with old/new values and the acting user.
Created once. Never updated. Never deleted.
"""

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class AuditLog(models.Model):
    OP_INSERT = "INSERT"
    OP_UPDATE = "UPDATE"
    OP_VOID = "VOID"
    OP_REVERSE = "REVERSE"

    OPERATIONS = [
        (OP_INSERT, "Insert"),
        (OP_UPDATE, "Update"),
        (OP_VOID, "Void"),
        (OP_REVERSE, "Reverse"),
    ]

    table_name = models.CharField(max_length=64)
    operation = models.CharField(max_length=16, choices=OPERATIONS)
    record_id = models.CharField(max_length=64, blank=True, default="")

    old_values = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    new_values = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)

    actor_id = models.CharField(max_length=64, default="SYSTEM")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["table_name", "created_at"]),
            models.Index(fields=["table_name", "record_id"]),
            models.Index(fields=["actor_id", "created_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("AuditLog records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("AuditLog records cannot be deleted")

    def __str__(self):
        return f"{self.operation} {self.table_name}:{self.record_id} by {self.actor_id}"
