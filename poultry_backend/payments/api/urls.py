# payments/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from payments.api.views import PaymentViewSet

router = DefaultRouter()
router.register(r"", PaymentViewSet, basename="payments")

urlpatterns = [
    path("", include(router.urls)),
]
