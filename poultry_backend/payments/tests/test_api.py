# payments/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from ledger.tests.fixtures import invoice_kwargs, make_customer, make_truck, refreshed
from sales.services.settlement_service import create_invoice

User = get_user_model()


class PaymentAPITests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="cashier", password="pass-1234")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.customer = make_customer()
        create_invoice(**invoice_kwargs(self.customer, make_truck()))

    def test_apply_and_reverse(self):
        response = self.client.post(
            "/api/payments/",
            {"customer_id": str(self.customer.pk), "amount": "200.00", "payment_method": "cash"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data["applied_amount"]), Decimal("180.00"))
        self.assertEqual(Decimal(response.data["excess_amount"]), Decimal("20.00"))
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("0.00"))

        payment_id = response.data["id"]
        response = self.client.post(
            f"/api/payments/{payment_id}/reverse/", {"reason": "Bounced"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["is_reversed"])
        self.assertEqual(refreshed(self.customer).total_debt, Decimal("180.00"))

        response = self.client.post(
            f"/api/payments/{payment_id}/reverse/", {"reason": "Again"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "PAYMENT_ALREADY_REVERSED")

    def test_non_positive_amount_is_rejected(self):
        response = self.client.post(
            "/api/payments/",
            {"customer_id": str(self.customer.pk), "amount": "0.00"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["field"], "amount")
