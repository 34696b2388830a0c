# trucks/models/truck.py

import uuid

from django.db import models


class Truck(models.Model):
    """
    Delivery truck. Loads and invoices are attributed to a truck so the
    day's loaded weight can be reconciled against the weight sold from it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    truck_number = models.CharField(max_length=32, unique=True)
    driver_name = models.CharField(max_length=120, blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["truck_number"]
        indexes = [
            models.Index(fields=["is_active"]),
        ]

    def save(self, *args, **kwargs):
        if self.truck_number is not None:
            self.truck_number = self.truck_number.strip()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.truck_number
