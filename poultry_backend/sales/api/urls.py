# sales/api/urls.py

"""
INVOICE API URLS

Provides:
    GET/POST /api/invoices/
    GET      /api/invoices/<uuid>/
    POST     /api/invoices/<uuid>/amend/
    POST     /api/invoices/<uuid>/void/
    GET      /api/invoices/<uuid>/integrity/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.views import InvoiceViewSet

router = DefaultRouter()
router.register(r"", InvoiceViewSet, basename="invoices")

urlpatterns = [
    path("", include(router.urls)),
]
