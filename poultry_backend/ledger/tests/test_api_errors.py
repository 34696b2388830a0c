# ledger/tests/test_api_errors.py

from django.contrib.auth import get_user_model
from django.db import connection
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APIClient

from ledger.api.errors import ledger_error_response
from ledger.services.exceptions import (
    ConcurrencyError,
    ConflictError,
    DuplicateVoidError,
    NotFoundError,
    ReversalWindowExpiredError,
    TransientError,
    ValidationError,
)

User = get_user_model()


class LedgerErrorMappingTests(SimpleTestCase):
    def assertMapped(self, exc, http_status, code, retryable=False):
        response = ledger_error_response(exc)
        self.assertEqual(response.status_code, http_status)
        self.assertEqual(response.data["error"]["code"], code)
        self.assertEqual(response.data["error"]["retryable"], retryable)
        return response

    def test_validation(self):
        response = self.assertMapped(
            ValidationError("bad", field="gross_weight"),
            status.HTTP_400_BAD_REQUEST,
            "VALIDATION_ERROR",
        )
        self.assertEqual(response.data["error"]["field"], "gross_weight")

    def test_reversal_window(self):
        self.assertMapped(
            ReversalWindowExpiredError("late"),
            status.HTTP_400_BAD_REQUEST,
            "REVERSAL_WINDOW_EXPIRED",
        )

    def test_not_found(self):
        self.assertMapped(NotFoundError("missing"), status.HTTP_404_NOT_FOUND, "NOT_FOUND")

    def test_conflicts(self):
        self.assertMapped(ConflictError("dup"), status.HTTP_409_CONFLICT, "CONFLICT")
        self.assertMapped(
            DuplicateVoidError("again"), status.HTTP_409_CONFLICT, "INVOICE_ALREADY_VOIDED"
        )

    def test_retryable_errors(self):
        self.assertMapped(
            ConcurrencyError("race"), status.HTTP_409_CONFLICT, "CONCURRENT_UPDATE", retryable=True
        )
        self.assertMapped(
            TransientError("down"),
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "STORAGE_UNAVAILABLE",
            retryable=True,
        )


class ProjectEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_health_is_public(self):
        response = self.client.get("/api/health/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["db"], "ok")
        self.assertEqual(response.data["row_locks"], connection.features.has_select_for_update)

    def test_ledger_endpoints_require_authentication(self):
        for url in ("/api/customers/", "/api/invoices/", "/api/payments/", "/api/trucks/"):
            response = self.client.get(url)
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED, url)

    def test_jwt_login(self):
        User.objects.create_user(username="cashier", password="pass-1234")

        response = self.client.post(
            "/api/auth/jwt/create/",
            {"username": "cashier", "password": "pass-1234"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
