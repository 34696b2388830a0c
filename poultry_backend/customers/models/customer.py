# customers/models/customer.py

import uuid
from decimal import Decimal

from django.db import models

from ledger.services.exceptions import ValidationError


class Customer(models.Model):
    """
    Customer master with a MATERIALIZED running debt balance.

    GUARANTEES:
    - total_debt is owned by the customer row and written ONLY by
      customers.services.balance_service (settlement + payment engines)
    - Every balance write bumps `version` (optimistic concurrency token)
    - total_debt == sum(invoice.final_amount) - sum(payment.applied_amount)
      at every commit boundary
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)

    total_debt = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Running balance. Mutated only by the settlement/payment engines.",
    )
    version = models.PositiveIntegerField(
        default=0,
        help_text="Incremented on every balance write (compare-and-swap guard).",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"]),
            models.Index(fields=["is_active"]),
            models.Index(fields=["total_debt"]),
        ]

    _LEDGER_OWNED_FIELDS = ("total_debt", "version")

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance.mark_ledger_synced()
        return instance

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self.mark_ledger_synced()

    def mark_ledger_synced(self):
        """Remember the ledger values this instance last saw in the database."""
        self._ledger_snapshot = {
            field: getattr(self, field)
            for field in self._LEDGER_OWNED_FIELDS
            if field in self.__dict__
        }

    def _persistable_fields(self, update_fields):
        snapshot = getattr(self, "_ledger_snapshot", {})
        requested = set(update_fields) if update_fields is not None else None

        for field in self._LEDGER_OWNED_FIELDS:
            edited = field in snapshot and getattr(self, field) != snapshot[field]
            if edited or (requested is not None and field in requested):
                raise ValidationError(
                    f"Customer.{field} is ledger-owned and cannot be changed via save(). "
                    "Use the settlement or payment services.",
                    field=field,
                )

        # Stale in-memory balances are never written back.
        names = [
            f.name
            for f in self._meta.concrete_fields
            if not f.primary_key and f.name not in self._LEDGER_OWNED_FIELDS
        ]
        if requested is not None:
            names = [name for name in names if name in requested]
        return names

    def save(self, *args, **kwargs):
        if self.name is not None:
            self.name = self.name.strip()

        if self.pk and not self._state.adding:
            kwargs["update_fields"] = self._persistable_fields(kwargs.get("update_fields"))
            if not kwargs["update_fields"]:
                return

        super().save(*args, **kwargs)

        if "_ledger_snapshot" not in self.__dict__:
            self.mark_ledger_synced()

    def __str__(self):
        return f"{self.name} | debt {self.total_debt}"
