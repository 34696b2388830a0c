# payments/services/payment_service.py

"""
======================================================
PATH: payments/services/payment_service.py
======================================================
PAYMENT APPLICATION ENGINE

FLOW (apply):
1) Validate amount (> 0) before any write
2) Lock customer, optionally resolve the invoice (same customer only)
3) new_debt = max(0, total_debt - amount)
4) Persist payment (amount + applied_amount) and the new debt together

FLOW (reverse):
1) Lock payment row
2) Reject already-reversed payments and payments outside the window
3) Re-add EXACTLY applied_amount to the customer debt, mark reversed

GUARANTEES:
- Payments are the only way debt goes down
- Overpayment is recorded in full; debt floors at zero
- A reversal is applied at most once
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from audit.models import AuditLog
from audit.services.audit_sink import SYSTEM_ACTOR, normalize_actor, record_audit_entry
from customers.services.balance_service import (
    apply_debt_delta,
    customer_balance_snapshot,
    lock_customer,
)
from ledger.services.coordinator import ledger_setting, run_atomic
from ledger.services.exceptions import (
    DuplicateReversalError,
    NotFoundError,
    ReversalWindowExpiredError,
    ValidationError,
)
from ledger.services.money import ZERO, money
from payments.models import Payment
from sales.models import Invoice

logger = logging.getLogger("payments")

PAYMENTS_TABLE = "PAYMENTS"
CUSTOMERS_TABLE = "CUSTOMERS"

DEFAULT_REVERSAL_WINDOW_HOURS = 24


def reversal_window() -> timedelta:
    hours = ledger_setting("PAYMENT_REVERSAL_WINDOW_HOURS", DEFAULT_REVERSAL_WINDOW_HOURS)
    return timedelta(hours=float(hours))


def payment_snapshot(payment: Payment) -> dict:
    return {
        "id": str(payment.pk),
        "customer_id": str(payment.customer_id),
        "invoice_id": str(payment.invoice_id) if payment.invoice_id else None,
        "amount": payment.amount,
        "applied_amount": payment.applied_amount,
        "payment_method": payment.payment_method,
        "payment_date": payment.payment_date,
        "is_reversed": payment.is_reversed,
    }


def _normalize_method(payment_method) -> str:
    method = (payment_method or Payment.METHOD_CASH).strip().lower()
    valid = {value for value, _ in Payment.METHODS}
    if method not in valid:
        raise ValidationError(
            f"Invalid payment_method. Use one of: {', '.join(sorted(valid))}",
            field="payment_method",
        )
    return method


def _resolve_invoice(*, invoice_id, customer) -> Invoice | None:
    if not invoice_id:
        return None

    try:
        invoice = Invoice.objects.get(pk=invoice_id)
    except (Invoice.DoesNotExist, DjangoValidationError, ValueError) as exc:
        raise NotFoundError(f"Invoice {invoice_id} not found") from exc

    if invoice.customer_id != customer.pk:
        raise ValidationError(
            "Invoice does not belong to this customer", field="invoice_id"
        )
    return invoice


def apply_payment(
    *,
    customer_id,
    amount,
    payment_method: str = Payment.METHOD_CASH,
    invoice_id=None,
    payment_date=None,
    notes: str = "",
    actor_id=SYSTEM_ACTOR,
    cancel=None,
) -> Payment:
    """
    RECORD A PAYMENT + DECREASE CUSTOMER DEBT (atomic)
    """
    amt = money(amount)
    if amt <= ZERO:
        raise ValidationError("Amount must be > 0", field="amount")

    method = _normalize_method(payment_method)
    pay_date = payment_date or timezone.localdate()
    actor = normalize_actor(actor_id)

    def _body() -> Payment:
        customer = lock_customer(customer_id=customer_id)
        invoice = _resolve_invoice(invoice_id=invoice_id, customer=customer)
        before = customer_balance_snapshot(customer)

        previous, new_debt = apply_debt_delta(
            customer=customer, delta=-amt, floor_at_zero=True
        )
        applied = previous - new_debt

        payment = Payment.objects.create(
            customer=customer,
            invoice=invoice,
            amount=amt,
            applied_amount=applied,
            payment_method=method,
            payment_date=pay_date,
            notes=(notes or "").strip()[:255],
            created_by=actor,
        )

        if amt > previous:
            logger.warning(
                "Overpayment recorded, customer debt floored at zero",
                extra={
                    "customer_id": str(customer.pk),
                    "payment_id": str(payment.pk),
                    "amount": str(amt),
                    "previous_debt": str(previous),
                    "excess": str(payment.excess_amount),
                },
            )

        record_audit_entry(
            table=PAYMENTS_TABLE,
            operation=AuditLog.OP_INSERT,
            new_values=payment_snapshot(payment),
            actor_id=actor,
            record_id=payment.pk,
        )
        record_audit_entry(
            table=CUSTOMERS_TABLE,
            operation=AuditLog.OP_UPDATE,
            old_values=before,
            new_values=customer_balance_snapshot(customer),
            actor_id=actor,
            record_id=customer.pk,
        )
        return payment

    payment = run_atomic(
        _body,
        operation="apply_payment",
        entity_id=customer_id,
        cancel=cancel,
    )

    logger.info(
        "Payment applied",
        extra={
            "payment_id": str(payment.pk),
            "customer_id": str(payment.customer_id),
            "amount": str(payment.amount),
            "applied_amount": str(payment.applied_amount),
        },
    )
    return payment


def reverse_payment(
    *,
    payment_id,
    reason: str,
    actor_id=SYSTEM_ACTOR,
    now=None,
    cancel=None,
) -> Payment:
    """
    Reverse a payment inside its reversibility window.

    Raises:
        NotFoundError, DuplicateReversalError, ReversalWindowExpiredError
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reversal reason is required", field="reason")

    actor = normalize_actor(actor_id)

    def _body() -> Payment:
        try:
            payment = Payment.objects.select_for_update().get(pk=payment_id)
        except (Payment.DoesNotExist, DjangoValidationError, ValueError) as exc:
            raise NotFoundError(f"Payment {payment_id} not found") from exc

        if payment.is_reversed:
            raise DuplicateReversalError(f"Payment {payment.pk} has already been reversed")

        current_time = now or timezone.now()
        if current_time - payment.created_at > reversal_window():
            raise ReversalWindowExpiredError(
                f"Payment {payment.pk} is older than the reversal window and is final",
                field="payment_id",
            )

        customer = lock_customer(customer_id=payment.customer_id)
        old_payment = payment_snapshot(payment)
        before = customer_balance_snapshot(customer)

        apply_debt_delta(customer=customer, delta=payment.applied_amount)

        payment.is_reversed = True
        payment.reversed_at = current_time
        payment.reversal_reason = reason[:255]
        payment.save(update_fields=["is_reversed", "reversed_at", "reversal_reason"])

        record_audit_entry(
            table=PAYMENTS_TABLE,
            operation=AuditLog.OP_REVERSE,
            old_values=old_payment,
            new_values={**payment_snapshot(payment), "reversal_reason": payment.reversal_reason},
            actor_id=actor,
            record_id=payment.pk,
        )
        record_audit_entry(
            table=CUSTOMERS_TABLE,
            operation=AuditLog.OP_UPDATE,
            old_values=before,
            new_values=customer_balance_snapshot(customer),
            actor_id=actor,
            record_id=customer.pk,
        )
        return payment

    payment = run_atomic(
        _body,
        operation="reverse_payment",
        entity_id=payment_id,
        cancel=cancel,
    )

    logger.warning(
        "Payment reversed",
        extra={
            "payment_id": str(payment.pk),
            "customer_id": str(payment.customer_id),
            "restored_amount": str(payment.applied_amount),
            "reason": payment.reversal_reason,
        },
    )
    return payment
