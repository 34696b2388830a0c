# payments/api/views.py

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.context import actor_from_request
from ledger.api.errors import ledger_error_response
from ledger.services.exceptions import LedgerError
from payments.api.serializers import (
    PaymentCreateSerializer,
    PaymentReverseSerializer,
    PaymentSerializer,
)
from payments.models import Payment
from payments.services.payment_service import apply_payment, reverse_payment


@extend_schema_view(
    list=extend_schema(tags=["payments"]),
    retrieve=extend_schema(tags=["payments"]),
)
class PaymentViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Payment.objects.select_related("customer", "invoice")
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated]

    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["customer", "invoice", "payment_method", "payment_date", "is_reversed"]
    ordering_fields = ["payment_date", "amount", "created_at"]

    def get_serializer_class(self):
        if self.action == "create":
            return PaymentCreateSerializer
        if self.action == "reverse":
            return PaymentReverseSerializer
        return PaymentSerializer

    @extend_schema(
        tags=["payments"],
        request=PaymentCreateSerializer,
        responses={201: PaymentSerializer},
    )
    def create(self, request):
        command = PaymentCreateSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        data = command.validated_data

        try:
            payment = apply_payment(
                customer_id=data["customer_id"],
                invoice_id=data.get("invoice_id"),
                amount=data["amount"],
                payment_method=data["payment_method"],
                payment_date=data.get("payment_date"),
                notes=data.get("notes", ""),
                actor_id=actor_from_request(request),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["payments"],
        request=PaymentReverseSerializer,
        responses={200: PaymentSerializer},
    )
    @action(detail=True, methods=["post"], url_path="reverse")
    def reverse(self, request, pk=None):
        command = PaymentReverseSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            payment = reverse_payment(
                payment_id=pk,
                reason=command.validated_data["reason"],
                actor_id=actor_from_request(request),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(PaymentSerializer(payment).data, status=status.HTTP_200_OK)
