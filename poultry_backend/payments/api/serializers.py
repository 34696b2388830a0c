# payments/api/serializers.py

from rest_framework import serializers

from payments.models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    invoice_number = serializers.CharField(
        source="invoice.invoice_number", read_only=True, default=None
    )
    excess_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, read_only=True
    )

    class Meta:
        model = Payment
        fields = (
            "id",
            "customer",
            "customer_name",
            "invoice",
            "invoice_number",
            "amount",
            "applied_amount",
            "excess_amount",
            "payment_method",
            "payment_date",
            "notes",
            "is_reversed",
            "reversed_at",
            "reversal_reason",
            "created_by",
            "created_at",
        )
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    invoice_id = serializers.UUIDField(required=False, allow_null=True)

    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_method = serializers.ChoiceField(
        choices=[value for value, _ in Payment.METHODS], default=Payment.METHOD_CASH
    )
    payment_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentReverseSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)
