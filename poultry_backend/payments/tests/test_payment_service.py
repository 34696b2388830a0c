# payments/tests/test_payment_service.py

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings

from audit.models import AuditLog
from ledger.services.exceptions import (
    DuplicateReversalError,
    NotFoundError,
    ReversalWindowExpiredError,
    ValidationError,
)
from ledger.services.invariants import expected_customer_debt, find_balance_discrepancies
from ledger.tests.fixtures import invoice_kwargs, make_customer, make_truck, refreshed
from payments.models import Payment
from payments.services.payment_service import apply_payment, reverse_payment
from sales.services.settlement_service import create_invoice, void_invoice


class ApplyPaymentTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.truck = make_truck()
        self.invoice = create_invoice(**invoice_kwargs(self.customer, self.truck))

    def test_partial_payment_reduces_debt(self):
        payment = apply_payment(customer_id=self.customer.pk, amount="80", payment_method="bank")

        self.assertEqual(payment.amount, Decimal("80.00"))
        self.assertEqual(payment.applied_amount, Decimal("80.00"))
        self.assertEqual(payment.payment_method, Payment.METHOD_BANK)
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("100.00"))

    def test_overpayment_is_recorded_in_full_and_debt_floors_at_zero(self):
        with self.assertLogs("payments", level="WARNING") as logs:
            payment = apply_payment(customer_id=self.customer.pk, amount=Decimal("200"))

        self.assertIn("Overpayment", "\n".join(logs.output))
        self.assertEqual(payment.amount, Decimal("200.00"))
        self.assertEqual(payment.applied_amount, Decimal("180.00"))
        self.assertEqual(payment.excess_amount, Decimal("20.00"))
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("0.00"))

    def test_invariant_holds_after_overpayment_and_new_invoice(self):
        apply_payment(customer_id=self.customer.pk, amount="200")
        create_invoice(**invoice_kwargs(self.customer, self.truck, gross_weight=Decimal("35")))

        customer = refreshed(self.customer)
        self.assertEqual(customer.total_debt, Decimal("50.00"))
        self.assertEqual(expected_customer_debt(customer), customer.total_debt)
        self.assertEqual(find_balance_discrepancies(), [])

    def test_payment_on_existing_credit_leaves_credit_untouched(self):
        void_invoice(invoice_id=self.invoice.pk, reason="Returned")
        apply_payment(customer_id=self.customer.pk, amount="100")
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("-180.00"))

        payment = apply_payment(customer_id=self.customer.pk, amount="10")

        self.assertEqual(payment.applied_amount, Decimal("0.00"))
        customer = refreshed(self.customer)
        self.assertEqual(customer.total_debt, Decimal("-180.00"))
        self.assertEqual(expected_customer_debt(customer), customer.total_debt)

    def test_amount_must_be_positive(self):
        for amount in ("0", "-5", "", None, "abc"):
            with self.assertRaises(ValidationError):
                apply_payment(customer_id=self.customer.pk, amount=amount)
        self.assertFalse(Payment.objects.exists())

    def test_invalid_method(self):
        with self.assertRaises(ValidationError):
            apply_payment(customer_id=self.customer.pk, amount="1", payment_method="cheque")

    def test_unknown_customer(self):
        with self.assertRaises(NotFoundError):
            apply_payment(customer_id=uuid.uuid4(), amount="10")

    def test_payment_against_invoice(self):
        payment = apply_payment(
            customer_id=self.customer.pk, amount="50", invoice_id=self.invoice.pk
        )
        self.assertEqual(payment.invoice_id, self.invoice.pk)

    def test_invoice_of_another_customer_is_rejected(self):
        stranger = make_customer(name="Stranger")

        with self.assertRaises(ValidationError) as ctx:
            apply_payment(customer_id=stranger.pk, amount="50", invoice_id=self.invoice.pk)

        self.assertEqual(ctx.exception.field, "invoice_id")
        self.assertFalse(Payment.objects.exists())

    def test_unknown_invoice(self):
        with self.assertRaises(NotFoundError):
            apply_payment(customer_id=self.customer.pk, amount="50", invoice_id=uuid.uuid4())

    def test_inactive_customer_can_still_pay(self):
        self.customer.is_active = False
        self.customer.save(update_fields=["is_active"])

        apply_payment(customer_id=self.customer.pk, amount="30")
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("150.00"))

    def test_audit_entries(self):
        with self.captureOnCommitCallbacks(execute=True):
            payment = apply_payment(customer_id=self.customer.pk, amount="30", actor_id="5")

        entry = AuditLog.objects.get(table_name="PAYMENTS")
        self.assertEqual(entry.operation, AuditLog.OP_INSERT)
        self.assertEqual(entry.record_id, str(payment.pk))
        self.assertEqual(entry.actor_id, "5")
        self.assertTrue(AuditLog.objects.filter(table_name="CUSTOMERS").exists())


class ReversePaymentTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.truck = make_truck()
        create_invoice(**invoice_kwargs(self.customer, self.truck))

    def test_reversal_restores_applied_amount(self):
        payment = apply_payment(customer_id=self.customer.pk, amount="80")

        reversed_payment = reverse_payment(payment_id=payment.pk, reason="Bounced")

        self.assertTrue(reversed_payment.is_reversed)
        self.assertEqual(reversed_payment.reversal_reason, "Bounced")
        self.assertIsNotNone(reversed_payment.reversed_at)
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("180.00"))

    def test_reversing_an_overpayment_restores_only_what_it_removed(self):
        payment = apply_payment(customer_id=self.customer.pk, amount="200")
        reverse_payment(payment_id=payment.pk, reason="Counterfeit notes")

        customer = refreshed(self.customer)
        self.assertEqual(customer.total_debt, Decimal("180.00"))
        self.assertEqual(expected_customer_debt(customer), customer.total_debt)

    def test_second_reversal_is_rejected(self):
        payment = apply_payment(customer_id=self.customer.pk, amount="80")
        reverse_payment(payment_id=payment.pk, reason="Bounced")

        with self.assertRaises(DuplicateReversalError):
            reverse_payment(payment_id=payment.pk, reason="Bounced again")

        self.assertEqual(refreshed(self.customer).total_debt, Decimal("180.00"))

    def test_reversal_window(self):
        payment = apply_payment(customer_id=self.customer.pk, amount="80")

        with self.assertRaises(ReversalWindowExpiredError):
            reverse_payment(
                payment_id=payment.pk,
                reason="Too late",
                now=payment.created_at + timedelta(hours=24, seconds=1),
            )

        self.assertFalse(refreshed(payment).is_reversed)
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("100.00"))

        reverse_payment(
            payment_id=payment.pk,
            reason="Just in time",
            now=payment.created_at + timedelta(hours=23, minutes=59),
        )
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("180.00"))

    @override_settings(LEDGER={"PAYMENT_REVERSAL_WINDOW_HOURS": 1})
    def test_reversal_window_is_configurable(self):
        payment = apply_payment(customer_id=self.customer.pk, amount="80")

        with self.assertRaises(ReversalWindowExpiredError):
            reverse_payment(
                payment_id=payment.pk,
                reason="Too late",
                now=payment.created_at + timedelta(hours=2),
            )

    def test_reason_required_and_unknown_payment(self):
        with self.assertRaises(ValidationError):
            reverse_payment(payment_id=uuid.uuid4(), reason="")
        with self.assertRaises(NotFoundError):
            reverse_payment(payment_id=uuid.uuid4(), reason="x")

    def test_reversal_is_audited(self):
        payment = apply_payment(customer_id=self.customer.pk, amount="80")
        with self.captureOnCommitCallbacks(execute=True):
            reverse_payment(payment_id=payment.pk, reason="Bounced")

        entry = AuditLog.objects.get(table_name="PAYMENTS", operation=AuditLog.OP_REVERSE)
        self.assertFalse(entry.old_values["is_reversed"])
        self.assertTrue(entry.new_values["is_reversed"])
