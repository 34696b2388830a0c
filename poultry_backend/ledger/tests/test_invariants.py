# ledger/tests/test_invariants.py

from __future__ import annotations

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from customers.models import Customer
from ledger.services.invariants import expected_customer_debt, find_balance_discrepancies
from ledger.tests.fixtures import invoice_kwargs, make_customer, make_truck, refreshed
from payments.services.payment_service import apply_payment, reverse_payment
from sales.models import Invoice
from sales.services.settlement_service import amend_invoice_amount, create_invoice, void_invoice


class BalanceInvariantTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.truck = make_truck()

    def assertInvariant(self):
        customer = refreshed(self.customer)
        self.assertEqual(customer.total_debt, expected_customer_debt(customer))

    def test_invariant_across_mixed_operations(self):
        first = create_invoice(**invoice_kwargs(self.customer, self.truck))
        self.assertInvariant()

        overpayment = apply_payment(customer_id=self.customer.pk, amount="200")
        self.assertInvariant()

        second = create_invoice(**invoice_kwargs(
            self.customer, self.truck, gross_weight=Decimal("35"), discount_percentage=Decimal("10")
        ))
        self.assertInvariant()

        amend_invoice_amount(invoice_id=second.pk, new_final_amount="40")
        self.assertInvariant()

        void_invoice(invoice_id=first.pk, reason="Returned")
        self.assertInvariant()
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("-140.00"))

        reverse_payment(payment_id=overpayment.pk, reason="Bounced")
        self.assertInvariant()
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("40.00"))

        apply_payment(customer_id=self.customer.pk, amount="15.55")
        self.assertInvariant()

        self.assertEqual(find_balance_discrepancies(), [])

    def test_drift_is_reported(self):
        create_invoice(**invoice_kwargs(self.customer, self.truck))
        Customer.objects.filter(pk=self.customer.pk).update(total_debt=Decimal("175.00"))

        found = find_balance_discrepancies()

        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].customer_id, str(self.customer.pk))
        self.assertEqual(found[0].expected_debt, Decimal("180.00"))
        self.assertEqual(found[0].difference, Decimal("-5.00"))


class LedgerCheckCommandTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.truck = make_truck()
        self.invoice = create_invoice(**invoice_kwargs(self.customer, self.truck))

    def test_clean_ledger_passes(self):
        out = StringIO()
        call_command("check_customer_balances", "--strict", stdout=out)
        self.assertIn("[OK]", out.getvalue())

        out = StringIO()
        call_command("verify_invoice_integrity", "--strict", stdout=out)
        self.assertIn("Invoices checked: 1", out.getvalue())

    def test_strict_balance_check_fails_on_drift(self):
        Customer.objects.filter(pk=self.customer.pk).update(total_debt=Decimal("1.00"))

        with self.assertRaises(SystemExit):
            call_command("check_customer_balances", "--strict", stdout=StringIO(), stderr=StringIO())

    def test_strict_integrity_check_fails_on_corruption(self):
        Invoice.objects.filter(pk=self.invoice.pk).update(total_amount=Decimal("999.00"))
        err = StringIO()

        with self.assertRaises(SystemExit):
            call_command("verify_invoice_integrity", "--strict", stdout=StringIO(), stderr=err)

        self.assertIn(self.invoice.invoice_number, err.getvalue())

    def test_integrity_window_filters_by_invoice_date(self):
        out = StringIO()
        call_command("verify_invoice_integrity", "--from", "2025-02-01", stdout=out)
        self.assertIn("Invoices checked: 0", out.getvalue())
