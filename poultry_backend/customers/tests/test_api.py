# customers/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from ledger.tests.fixtures import make_customer

User = get_user_model()


class CustomerAPITests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="clerk", password="pass-1234")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def test_create_customer_ignores_balance_fields(self):
        response = self.client.post(
            "/api/customers/",
            {"name": "  New Shop ", "phone": "0522", "total_debt": "500.00"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["name"], "New Shop")
        self.assertEqual(Decimal(response.data["total_debt"]), Decimal("0.00"))

    def test_list_filter_and_search(self):
        make_customer(name="Active Butcher")
        make_customer(name="Closed Butcher", is_active=False)

        response = self.client.get("/api/customers/", {"is_active": "true"})
        names = [row["name"] for row in response.data["results"]]
        self.assertEqual(names, ["Active Butcher"])

        response = self.client.get("/api/customers/", {"search": "closed"})
        self.assertEqual(response.data["count"], 1)

    def test_patch_contact_details(self):
        customer = make_customer()

        response = self.client.patch(
            f"/api/customers/{customer.pk}/", {"phone": "0599"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["phone"], "0599")

    def test_delete_not_allowed(self):
        customer = make_customer()
        response = self.client.delete(f"/api/customers/{customer.pk}/")
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
