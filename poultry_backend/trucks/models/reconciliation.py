# trucks/models/reconciliation.py

"""
DAILY RECONCILIATION (WRITE-ONCE)

Ties a truck's loaded weight for a day to the net weight invoiced from it.

GUARANTEES:
- At most one record per (truck, reconciliation_date), enforced by a
  unique constraint (concurrent duplicates fail at commit)
- Immutable: created once, never updated, never deleted
"""

import uuid
from decimal import Decimal

from django.db import models

from .truck import Truck


class DailyReconciliation(models.Model):
    STATUS_COMPLETED = "COMPLETED"

    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    truck = models.ForeignKey(
        Truck,
        on_delete=models.PROTECT,
        related_name="reconciliations",
    )
    reconciliation_date = models.DateField()

    load_weight = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    sold_weight = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    wastage_weight = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="load_weight - sold_weight (negative when more was sold than loaded).",
    )
    wastage_percentage = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="wastage_weight / load_weight * 100 (0 when nothing was loaded).",
    )

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_COMPLETED,
    )

    created_by = models.CharField(max_length=64, default="SYSTEM")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-reconciliation_date", "truck"]
        constraints = [
            models.UniqueConstraint(
                fields=["truck", "reconciliation_date"],
                name="uniq_truck_reconciliation_date",
            ),
        ]
        indexes = [
            models.Index(fields=["reconciliation_date"]),
            models.Index(fields=["wastage_percentage"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("DailyReconciliation records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("DailyReconciliation records cannot be deleted")

    def __str__(self):
        return f"{self.truck} | {self.reconciliation_date} | wastage {self.wastage_percentage}%"
