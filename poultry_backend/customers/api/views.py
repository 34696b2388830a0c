# customers/api/views.py

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import filters, mixins, viewsets
from rest_framework.permissions import IsAuthenticated

from customers.api.serializers import CustomerSerializer
from customers.models import Customer


@extend_schema_view(
    list=extend_schema(tags=["customers"]),
    retrieve=extend_schema(tags=["customers"]),
    create=extend_schema(tags=["customers"]),
    partial_update=extend_schema(tags=["customers"]),
)
class CustomerViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Customer master data.

    total_debt is exposed read-only; there is no delete (invoices and
    payments reference customers with PROTECT).
    """

    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "head", "options"]

    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter,
    ]
    filterset_fields = ["is_active"]
    search_fields = ["name", "phone"]
    ordering_fields = ["name", "total_debt", "created_at"]
