# sales/services/settlement_service.py

"""
======================================================
PATH: sales/services/settlement_service.py
======================================================
INVOICE SETTLEMENT ENGINE

SINGLE SOURCE OF TRUTH for:
- Invoice creation (derived fields + balance trail + numbering)
- Invoice amendment (delta-based balance adjustment)
- Invoice void (exact reversal of the stored final_amount)
- Invoice integrity verification

GUARANTEES:
- Invoice write and customer balance write commit together or not at all
- Balance changes are always deltas against the locked customer row,
  never recomputed from history
- A voided invoice can never be reversed twice
- Lock order: truck -> customer (creation), invoice -> customer (amend/void)
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from audit.models import AuditLog
from audit.services.audit_sink import SYSTEM_ACTOR, normalize_actor, record_audit_entry
from customers.services.balance_service import (
    apply_debt_delta,
    customer_balance_snapshot,
    lock_customer,
    write_customer_debt,
)
from ledger.services.coordinator import ledger_setting, run_atomic
from ledger.services.exceptions import (
    ConflictError,
    DuplicateVoidError,
    InvoiceNumberCollisionError,
    NotFoundError,
    ValidationError,
)
from ledger.services.money import ZERO, money, quantize, within_tolerance
from sales.models import Invoice
from sales.services.invoice_calculations import (
    calculate_final_amount,
    calculate_net_weight,
    calculate_total_amount,
    compute_invoice_amounts,
    validate_invoice_inputs,
)
from sales.services.invoice_numbering import next_invoice_number
from trucks.services.day_lock import assert_day_open, lock_truck

logger = logging.getLogger("settlement")

INVOICES_TABLE = "INVOICES"
CUSTOMERS_TABLE = "CUSTOMERS"


def invoice_snapshot(invoice: Invoice) -> dict:
    return {
        "id": str(invoice.pk),
        "invoice_number": invoice.invoice_number,
        "customer_id": str(invoice.customer_id),
        "truck_id": str(invoice.truck_id),
        "invoice_date": invoice.invoice_date,
        "gross_weight": invoice.gross_weight,
        "cages_weight": invoice.cages_weight,
        "cages_count": invoice.cages_count,
        "unit_price": invoice.unit_price,
        "discount_percentage": invoice.discount_percentage,
        "net_weight": invoice.net_weight,
        "total_amount": invoice.total_amount,
        "final_amount": invoice.final_amount,
        "previous_balance": invoice.previous_balance,
        "current_balance": invoice.current_balance,
        "status": invoice.status,
    }


def _lock_invoice(invoice_id) -> Invoice | None:
    try:
        return Invoice.objects.select_for_update().filter(pk=invoice_id).first()
    except (DjangoValidationError, ValueError):
        return None


def _invoice_truck_id(invoice_id):
    try:
        return Invoice.objects.filter(pk=invoice_id).values_list("truck_id", flat=True).first()
    except (DjangoValidationError, ValueError):
        return None


def _insert_invoice(invoice: Invoice) -> None:
    """
    Insert under its own savepoint so a unique-number collision leaves the
    surrounding transaction usable for the retry decision.
    """
    try:
        with transaction.atomic():
            invoice.save(force_insert=True)
    except IntegrityError as exc:
        if Invoice.objects.filter(invoice_number=invoice.invoice_number).exists():
            raise InvoiceNumberCollisionError(
                f"Invoice number {invoice.invoice_number} already taken"
            ) from exc
        raise


# ============================================================
# CREATE
# ============================================================


def create_invoice(
    *,
    customer_id,
    truck_id,
    gross_weight,
    cages_weight,
    cages_count,
    unit_price,
    discount_percentage=0,
    invoice_date: date | None = None,
    actor_id=SYSTEM_ACTOR,
    cancel=None,
) -> Invoice:
    """
    CREATE INVOICE + CUSTOMER BALANCE INCREMENT (atomic)

    FLOW:
    1) Validate raw inputs (no writes yet)
    2) Lock truck, ensure the (truck, date) is not reconciled
    3) Lock customer, snapshot previous_balance
    4) Number, insert invoice, write customer debt (+final_amount)
    """
    inputs = validate_invoice_inputs(
        gross_weight=gross_weight,
        cages_weight=cages_weight,
        cages_count=cages_count,
        unit_price=unit_price,
        discount_percentage=discount_percentage,
    )
    amounts = compute_invoice_amounts(
        gross_weight=inputs["gross_weight"],
        cages_weight=inputs["cages_weight"],
        unit_price=inputs["unit_price"],
        discount_percentage=inputs["discount_percentage"],
    )
    on_date = invoice_date or timezone.localdate()
    actor = normalize_actor(actor_id)

    def _body() -> Invoice:
        truck = lock_truck(truck_id=truck_id, require_active=True)
        assert_day_open(truck=truck, on_date=on_date)

        customer = lock_customer(customer_id=customer_id, require_active=True)
        before = customer_balance_snapshot(customer)

        previous_balance = customer.total_debt
        current_balance = quantize(previous_balance + amounts.final_amount)

        invoice = Invoice(
            invoice_number=next_invoice_number(on_date),
            customer=customer,
            truck=truck,
            invoice_date=on_date,
            net_weight=amounts.net_weight,
            total_amount=amounts.total_amount,
            final_amount=amounts.final_amount,
            original_final_amount=amounts.final_amount,
            previous_balance=previous_balance,
            current_balance=current_balance,
            created_by=actor,
            updated_by=actor,
            **inputs,
        )
        _insert_invoice(invoice)
        write_customer_debt(customer=customer, new_debt=current_balance)

        record_audit_entry(
            table=INVOICES_TABLE,
            operation=AuditLog.OP_INSERT,
            new_values=invoice_snapshot(invoice),
            actor_id=actor,
            record_id=invoice.pk,
        )
        record_audit_entry(
            table=CUSTOMERS_TABLE,
            operation=AuditLog.OP_UPDATE,
            old_values=before,
            new_values=customer_balance_snapshot(customer),
            actor_id=actor,
            record_id=customer.pk,
        )
        return invoice

    invoice = run_atomic(
        _body,
        operation="create_invoice",
        entity_id=customer_id,
        cancel=cancel,
    )

    logger.info(
        "Invoice created",
        extra={
            "invoice_number": invoice.invoice_number,
            "customer_id": str(invoice.customer_id),
            "final_amount": str(invoice.final_amount),
            "previous_balance": str(invoice.previous_balance),
            "current_balance": str(invoice.current_balance),
        },
    )
    return invoice


# ============================================================
# AMEND
# ============================================================


def amend_invoice_amount(
    *,
    invoice_id,
    new_final_amount,
    actor_id=SYSTEM_ACTOR,
    cancel=None,
) -> bool:
    """
    Change an invoice's final amount and apply ONLY the difference to the
    customer balance. Returns False when the invoice does not exist.
    """
    new_amount = money(new_final_amount, field="new_final_amount")
    if new_amount < ZERO:
        raise ValidationError("Final amount cannot be negative", field="new_final_amount")

    actor = normalize_actor(actor_id)

    def _body() -> bool:
        invoice = _lock_invoice(invoice_id)
        if invoice is None:
            return False

        if invoice.is_voided:
            raise ConflictError(f"Invoice {invoice.invoice_number} is voided and cannot be amended")

        customer = lock_customer(customer_id=invoice.customer_id)
        old_invoice = invoice_snapshot(invoice)
        before = customer_balance_snapshot(customer)

        original_amount = invoice.final_amount
        delta = new_amount - original_amount

        if delta == ZERO:
            return True

        invoice.final_amount = new_amount
        invoice.current_balance = quantize(invoice.previous_balance + new_amount)
        invoice.is_amended = True
        invoice.updated_by = actor
        invoice.save(
            update_fields=[
                "final_amount",
                "current_balance",
                "is_amended",
                "updated_by",
                "updated_at",
            ]
        )

        apply_debt_delta(customer=customer, delta=delta)

        record_audit_entry(
            table=INVOICES_TABLE,
            operation=AuditLog.OP_UPDATE,
            old_values=old_invoice,
            new_values=invoice_snapshot(invoice),
            actor_id=actor,
            record_id=invoice.pk,
        )
        record_audit_entry(
            table=CUSTOMERS_TABLE,
            operation=AuditLog.OP_UPDATE,
            old_values=before,
            new_values=customer_balance_snapshot(customer),
            actor_id=actor,
            record_id=customer.pk,
        )

        logger.info(
            "Invoice amount amended",
            extra={
                "invoice_id": str(invoice.pk),
                "original_amount": str(original_amount),
                "new_amount": str(new_amount),
                "difference": str(delta),
            },
        )
        return True

    return run_atomic(
        _body,
        operation="amend_invoice_amount",
        entity_id=invoice_id,
        cancel=cancel,
    )


# ============================================================
# VOID
# ============================================================


def void_invoice(
    *,
    invoice_id,
    reason: str,
    actor_id=SYSTEM_ACTOR,
    cancel=None,
) -> bool:
    """
    Void an invoice, reversing EXACTLY the final_amount it currently carries.
    Returns False when the invoice does not exist.

    Raises:
        DuplicateVoidError when the invoice is already voided.
        ConflictError when its truck-day is already reconciled.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A void reason is required", field="reason")

    actor = normalize_actor(actor_id)

    def _body() -> bool:
        truck_id = _invoice_truck_id(invoice_id)
        if truck_id is None:
            return False

        # Same lock order as creation and reconciliation: truck, invoice, customer.
        truck = lock_truck(truck_id=truck_id)
        invoice = _lock_invoice(invoice_id)
        if invoice is None:
            return False

        if invoice.is_voided:
            raise DuplicateVoidError(
                f"Invoice {invoice.invoice_number} has already been voided"
            )

        assert_day_open(truck=truck, on_date=invoice.invoice_date)

        customer = lock_customer(customer_id=invoice.customer_id)
        old_invoice = invoice_snapshot(invoice)
        before = customer_balance_snapshot(customer)

        reversal = invoice.final_amount
        apply_debt_delta(customer=customer, delta=-reversal)

        invoice.voided_amount = reversal
        invoice.total_amount = ZERO
        invoice.final_amount = ZERO
        invoice.current_balance = invoice.previous_balance
        invoice.status = Invoice.STATUS_VOIDED
        invoice.void_reason = reason[:255]
        invoice.voided_at = timezone.now()
        invoice.updated_by = actor
        invoice.save(
            update_fields=[
                "voided_amount",
                "total_amount",
                "final_amount",
                "current_balance",
                "status",
                "void_reason",
                "voided_at",
                "updated_by",
                "updated_at",
            ]
        )

        record_audit_entry(
            table=INVOICES_TABLE,
            operation=AuditLog.OP_VOID,
            old_values=old_invoice,
            new_values={**invoice_snapshot(invoice), "void_reason": invoice.void_reason},
            actor_id=actor,
            record_id=invoice.pk,
        )
        record_audit_entry(
            table=CUSTOMERS_TABLE,
            operation=AuditLog.OP_UPDATE,
            old_values=before,
            new_values=customer_balance_snapshot(customer),
            actor_id=actor,
            record_id=customer.pk,
        )

        logger.warning(
            "Invoice voided, customer balance reversed",
            extra={
                "invoice_id": str(invoice.pk),
                "invoice_number": invoice.invoice_number,
                "reversed_amount": str(reversal),
                "reason": invoice.void_reason,
            },
        )
        return True

    return run_atomic(
        _body,
        operation="void_invoice",
        entity_id=invoice_id,
        cancel=cancel,
    )


# ============================================================
# INTEGRITY
# ============================================================


def invoice_integrity_issues(invoice: Invoice, *, tolerance=None) -> list[str]:
    """
    Recompute derived fields from stored raw inputs and list every field
    that drifted beyond `tolerance`.

    Rules:
    - net_weight always follows the weights
    - voided invoices carry zero amounts and current_balance == previous_balance
    - total_amount follows net_weight * unit_price
    - final_amount follows the discount formula unless the amount was amended
    - current_balance == previous_balance + final_amount
    """
    tol = Decimal(str(tolerance if tolerance is not None else ledger_setting("INTEGRITY_TOLERANCE", "0.01")))
    issues: list[str] = []

    expected_net = calculate_net_weight(invoice.gross_weight, invoice.cages_weight)
    if not within_tolerance(invoice.net_weight, expected_net, tol):
        issues.append("net_weight")

    if invoice.is_voided:
        if invoice.total_amount != ZERO:
            issues.append("total_amount")
        if invoice.final_amount != ZERO:
            issues.append("final_amount")
    else:
        expected_total = calculate_total_amount(expected_net, invoice.unit_price)
        if not within_tolerance(invoice.total_amount, expected_total, tol):
            issues.append("total_amount")

        if not invoice.is_amended:
            try:
                expected_final = calculate_final_amount(
                    expected_total, invoice.discount_percentage
                )
            except ValidationError:
                issues.append("discount_percentage")
            else:
                if not within_tolerance(invoice.final_amount, expected_final, tol):
                    issues.append("final_amount")

    if not within_tolerance(
        invoice.current_balance,
        Decimal(invoice.previous_balance) + Decimal(invoice.final_amount),
        tol,
    ):
        issues.append("current_balance")

    return issues


def validate_invoice_integrity(*, invoice_id) -> bool:
    try:
        invoice = Invoice.objects.filter(pk=invoice_id).first()
    except (DjangoValidationError, ValueError):
        invoice = None

    if invoice is None:
        raise NotFoundError(f"Invoice {invoice_id} not found")

    issues = invoice_integrity_issues(invoice)
    if issues:
        logger.error(
            "Invoice integrity drift detected",
            extra={
                "invoice_id": str(invoice.pk),
                "invoice_number": invoice.invoice_number,
                "fields": issues,
            },
        )
        return False

    return True
