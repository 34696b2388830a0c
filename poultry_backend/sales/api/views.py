# sales/api/views.py

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.context import actor_from_request
from ledger.api.errors import error_response, ledger_error_response
from ledger.services.exceptions import LedgerError
from sales.api.serializers import (
    InvoiceAmendSerializer,
    InvoiceCreateSerializer,
    InvoiceSerializer,
    InvoiceVoidSerializer,
)
from sales.models import Invoice
from sales.services.settlement_service import (
    amend_invoice_amount,
    create_invoice,
    invoice_integrity_issues,
    void_invoice,
)


def _invoice_not_found(pk):
    return error_response(
        code="NOT_FOUND",
        message=f"Invoice {pk} not found",
        http_status=status.HTTP_404_NOT_FOUND,
    )


# ======================================================
# INVOICE VIEWSET (READ + SETTLEMENT COMMANDS)
# ======================================================

@extend_schema_view(
    list=extend_schema(tags=["invoices"]),
    retrieve=extend_schema(tags=["invoices"]),
)
class InvoiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Invoices are never edited through generic update endpoints; every write
    goes through a settlement command so the customer balance moves with it.
    """

    queryset = Invoice.objects.select_related("customer", "truck")
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["customer", "truck", "invoice_date", "status"]
    search_fields = ["invoice_number", "customer__name"]
    ordering_fields = ["invoice_date", "invoice_number", "final_amount", "created_at"]

    def get_serializer_class(self):
        if self.action == "create":
            return InvoiceCreateSerializer
        if self.action == "amend":
            return InvoiceAmendSerializer
        if self.action == "void":
            return InvoiceVoidSerializer
        return InvoiceSerializer

    # --------------------------------------------------
    # CREATE
    # --------------------------------------------------

    @extend_schema(
        tags=["invoices"],
        request=InvoiceCreateSerializer,
        responses={201: InvoiceSerializer},
    )
    def create(self, request):
        command = InvoiceCreateSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        data = command.validated_data

        try:
            invoice = create_invoice(
                customer_id=data["customer_id"],
                truck_id=data["truck_id"],
                gross_weight=data["gross_weight"],
                cages_weight=data["cages_weight"],
                cages_count=data["cages_count"],
                unit_price=data["unit_price"],
                discount_percentage=data["discount_percentage"],
                invoice_date=data.get("invoice_date"),
                actor_id=actor_from_request(request),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    # --------------------------------------------------
    # AMEND
    # --------------------------------------------------

    @extend_schema(
        tags=["invoices"],
        request=InvoiceAmendSerializer,
        responses={200: InvoiceSerializer},
    )
    @action(detail=True, methods=["post"], url_path="amend")
    def amend(self, request, pk=None):
        command = InvoiceAmendSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            found = amend_invoice_amount(
                invoice_id=pk,
                new_final_amount=command.validated_data["new_final_amount"],
                actor_id=actor_from_request(request),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        if not found:
            return _invoice_not_found(pk)

        invoice = self.get_queryset().get(pk=pk)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_200_OK)

    # --------------------------------------------------
    # VOID
    # --------------------------------------------------

    @extend_schema(
        tags=["invoices"],
        request=InvoiceVoidSerializer,
        responses={200: InvoiceSerializer},
    )
    @action(detail=True, methods=["post"], url_path="void")
    def void(self, request, pk=None):
        command = InvoiceVoidSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            found = void_invoice(
                invoice_id=pk,
                reason=command.validated_data["reason"],
                actor_id=actor_from_request(request),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        if not found:
            return _invoice_not_found(pk)

        invoice = self.get_queryset().get(pk=pk)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_200_OK)

    # --------------------------------------------------
    # INTEGRITY
    # --------------------------------------------------

    @extend_schema(
        tags=["invoices"],
        responses={
            200: {
                "type": "object",
                "properties": {
                    "invoice_id": {"type": "string"},
                    "is_valid": {"type": "boolean"},
                    "issues": {"type": "array", "items": {"type": "string"}},
                },
            }
        },
    )
    @action(detail=True, methods=["get"], url_path="integrity")
    def integrity(self, request, pk=None):
        invoice = self.get_object()
        issues = invoice_integrity_issues(invoice)
        return Response(
            {"invoice_id": str(invoice.pk), "is_valid": not issues, "issues": issues},
            status=status.HTTP_200_OK,
        )
