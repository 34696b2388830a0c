# payments/models/payment.py

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from customers.models import Customer
from sales.models import Invoice


class Payment(models.Model):
    """
    Money collected from a customer.

    Design:
    - Optional link to an invoice (a payment may be unallocated)
    - `amount` is what the customer handed over; `applied_amount` is the part
      that actually reduced debt (debt floors at zero on overpayment)
    - Reversal re-adds exactly `applied_amount`
    """

    METHOD_CASH = "cash"
    METHOD_BANK = "bank"
    METHOD_OTHER = "other"

    METHODS = [
        (METHOD_CASH, "Cash"),
        (METHOD_BANK, "Bank"),
        (METHOD_OTHER, "Other"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
        help_text="Optional: payment against a specific invoice",
    )

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    applied_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    payment_method = models.CharField(
        max_length=20, choices=METHODS, default=METHOD_CASH
    )
    payment_date = models.DateField(default=timezone.localdate)
    notes = models.CharField(max_length=255, blank=True, default="")

    is_reversed = models.BooleanField(default=False)
    reversed_at = models.DateTimeField(null=True, blank=True)
    reversal_reason = models.CharField(max_length=255, blank=True, default="")

    created_by = models.CharField(max_length=64, default="SYSTEM")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="payment_amount_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(applied_amount__gte=Decimal("0.00")),
                name="payment_applied_amount_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["customer", "created_at"]),
            models.Index(fields=["invoice", "created_at"]),
            models.Index(fields=["payment_date"]),
        ]

    @property
    def excess_amount(self) -> Decimal:
        return Decimal(self.amount) - Decimal(self.applied_amount)

    def __str__(self):
        inv = f" ({self.invoice.invoice_number})" if self.invoice_id else ""
        return f"{self.customer.name}{inv} - {self.amount}"
