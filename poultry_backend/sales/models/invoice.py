# sales/models/invoice.py

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from customers.models import Customer
from trucks.models import Truck


class Invoice(models.Model):
    """
    Sales invoice for a weighed delivery of poultry.

    Raw inputs:    gross_weight, cages_weight, cages_count, unit_price,
                   discount_percentage
    Derived:       net_weight, total_amount, final_amount
    Balance trail: previous_balance (customer debt before this invoice),
                   current_balance = previous_balance + final_amount

    GUARANTEES:
    - Created / amended / voided ONLY through
      sales.services.settlement_service (atomic with the customer balance)
    - invoice_number is unique at the database level
    - Voiding reverses exactly `voided_amount` (the stored final_amount),
      never a re-derived figure
    """

    STATUS_ACTIVE = "ACTIVE"
    STATUS_VOIDED = "VOIDED"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_VOIDED, "Voided"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(
        max_length=20,
        unique=True,
        help_text="{YYYYMMDD}{4-digit daily sequence}",
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    truck = models.ForeignKey(
        Truck,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    invoice_date = models.DateField(default=timezone.localdate)

    # ----------------------------
    # Raw inputs
    # ----------------------------
    gross_weight = models.DecimalField(max_digits=10, decimal_places=2)
    cages_weight = models.DecimalField(max_digits=10, decimal_places=2)
    cages_count = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=8, decimal_places=2)
    discount_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )

    # ----------------------------
    # Derived
    # ----------------------------
    net_weight = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    final_amount = models.DecimalField(max_digits=12, decimal_places=2)

    previous_balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    current_balance = models.DecimalField(max_digits=14, decimal_places=2)

    # ----------------------------
    # Lifecycle
    # ----------------------------
    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE,
    )

    original_final_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="final_amount as computed at creation (snapshot).",
    )
    is_amended = models.BooleanField(default=False)

    voided_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Exact amount reversed from the customer balance on void.",
    )
    void_reason = models.CharField(max_length=255, blank=True, default="")
    voided_at = models.DateTimeField(null=True, blank=True)

    created_by = models.CharField(max_length=64, default="SYSTEM")
    updated_by = models.CharField(max_length=64, default="SYSTEM")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-invoice_date", "-invoice_number"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(gross_weight__gt=Decimal("0.00")),
                name="invoice_gross_weight_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(cages_weight__gte=Decimal("0.00")),
                name="invoice_cages_weight_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=Decimal("0.00")),
                name="invoice_unit_price_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(discount_percentage__gte=Decimal("0.00"))
                & models.Q(discount_percentage__lte=Decimal("100.00")),
                name="invoice_discount_percentage_range",
            ),
        ]
        indexes = [
            models.Index(fields=["truck", "invoice_date"]),
            models.Index(fields=["customer", "invoice_date"]),
            models.Index(fields=["status"]),
        ]

    @property
    def is_voided(self) -> bool:
        return self.status == self.STATUS_VOIDED

    def __str__(self):
        return f"{self.invoice_number} | {self.final_amount}"
