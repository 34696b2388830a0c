# backend/urls.py
"""
PROJECT URLS

Everything is served under /api/:
- ledger modules: customers, invoices, payments, trucks (loads + reconciliations)
- JWT token pair + refresh, OpenAPI schema and Swagger UI
- /api/health/ (public) reports DB reachability and row-lock support

The admin lives at settings.ADMIN_PATH; it is read-only for ledger records.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import DatabaseError, connections
from django.db.utils import OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView


# ------------------ API ROOT (PUBLIC) ------------------
@extend_schema(
    responses={
        200: {
            "type": "object",
            "properties": {
                "message": {"type": "string"},
                "auth": {"type": "object"},
                "docs": {"type": "object"},
                "modules": {"type": "object"},
            },
        }
    },
)
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response(
        {
            "message": "Poultry Ledger API is running",
            "auth": {
                "jwt_create": "/api/auth/jwt/create/",
                "jwt_refresh": "/api/auth/jwt/refresh/",
            },
            "docs": {
                "swagger": "/api/docs/",
                "schema": "/api/schema/",
            },
            "modules": {
                "customers": "/api/customers/",
                "invoices": "/api/invoices/",
                "payments": "/api/payments/",
                "trucks": "/api/trucks/",
                "truck_loads": "/api/trucks/loads/",
                "reconciliations": "/api/trucks/reconciliations/",
            },
        }
    )


# ------------------ HEALTH CHECK (PUBLIC) ------------------
_HEALTH_SCHEMA = {
    "type": "object",
    "properties": {
        "status": {"type": "string"},
        "db": {"type": "string"},
        "row_locks": {"type": "boolean"},
        "error": {"type": "string"},
    },
}


@extend_schema(responses={200: _HEALTH_SCHEMA, 503: _HEALTH_SCHEMA})
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    DB probe for load balancers. `row_locks` is False on SQLite, where the
    ledger falls back to the balance version check alone.
    """
    conn = connections["default"]
    row_locks = conn.features.has_select_for_update
    try:
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except OperationalError as exc:
        db_state, error = "down", str(exc)
    except DatabaseError as exc:
        db_state, error = "unknown", str(exc)
    else:
        return Response({"status": "ok", "db": "ok", "row_locks": row_locks})

    return Response(
        {"status": "degraded", "db": db_state, "row_locks": row_locks, "error": error},
        status=503,
    )


# ------------------ ADMIN ------------------
ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/").rstrip("/") + "/"


# ------------------ API ROUTES (ALL UNDER /api/) ------------------
api_urlpatterns = [
    # Health check / root
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    # OpenAPI / Swagger
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    # JWT (SimpleJWT)
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    # Ledger modules
    path("customers/", include("customers.api.urls")),
    path("invoices/", include("sales.api.urls")),
    path("payments/", include("payments.api.urls")),
    path("trucks/", include("trucks.api.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    # Root convenience: visiting / takes you to Swagger docs
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
