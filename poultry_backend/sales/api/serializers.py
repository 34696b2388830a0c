# sales/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from sales.models import Invoice


class InvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    truck_number = serializers.CharField(source="truck.truck_number", read_only=True)

    class Meta:
        model = Invoice
        fields = (
            "id",
            "invoice_number",
            "customer",
            "customer_name",
            "truck",
            "truck_number",
            "invoice_date",
            "gross_weight",
            "cages_weight",
            "cages_count",
            "unit_price",
            "discount_percentage",
            "net_weight",
            "total_amount",
            "final_amount",
            "previous_balance",
            "current_balance",
            "status",
            "original_final_amount",
            "is_amended",
            "voided_amount",
            "void_reason",
            "voided_at",
            "created_by",
            "updated_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class InvoiceCreateSerializer(serializers.Serializer):
    """
    Shape check only. Business validation (weights, discount range, closed
    day) happens in the settlement engine so every caller gets it.
    """

    customer_id = serializers.UUIDField()
    truck_id = serializers.UUIDField()
    invoice_date = serializers.DateField(required=False)

    gross_weight = serializers.DecimalField(max_digits=10, decimal_places=2)
    cages_weight = serializers.DecimalField(max_digits=10, decimal_places=2)
    cages_count = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=8, decimal_places=2)
    discount_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, default=Decimal("0.00")
    )


class InvoiceAmendSerializer(serializers.Serializer):
    new_final_amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class InvoiceVoidSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)

    def validate_reason(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("A void reason is required")
        return value
