# trucks/models/truck_load.py

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from .truck import Truck


class TruckLoad(models.Model):
    """
    Weight loaded onto a truck at the slaughterhouse.

    Status is a one-way progression (see trucks.services.load_lifecycle):
        LOADED -> IN_TRANSIT -> RECONCILED
    """

    STATUS_LOADED = "LOADED"
    STATUS_IN_TRANSIT = "IN_TRANSIT"
    STATUS_RECONCILED = "RECONCILED"

    STATUS_CHOICES = [
        (STATUS_LOADED, "Loaded"),
        (STATUS_IN_TRANSIT, "In transit"),
        (STATUS_RECONCILED, "Reconciled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    truck = models.ForeignKey(
        Truck,
        on_delete=models.PROTECT,
        related_name="loads",
    )

    load_date = models.DateField(default=timezone.localdate)

    total_weight = models.DecimalField(max_digits=10, decimal_places=2)
    cages_count = models.PositiveIntegerField()

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_LOADED,
    )
    notes = models.CharField(max_length=255, blank=True, default="")

    created_by = models.CharField(max_length=64, default="SYSTEM")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-load_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_weight__gt=Decimal("0.00")),
                name="truck_load_total_weight_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(cages_count__gt=0),
                name="truck_load_cages_count_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["truck", "load_date"]),
            models.Index(fields=["status"]),
        ]

    @property
    def average_weight_per_cage(self) -> Decimal:
        if not self.cages_count:
            return Decimal("0.00")
        return (Decimal(self.total_weight) / Decimal(self.cages_count)).quantize(
            Decimal("0.01")
        )

    def __str__(self):
        return f"{self.truck} | {self.load_date} | {self.total_weight} kg"
