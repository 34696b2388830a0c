# customers/api/serializers.py

from rest_framework import serializers

from customers.models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = (
            "id",
            "name",
            "phone",
            "address",
            "is_active",
            "total_debt",
            "version",
            "created_at",
            "updated_at",
        )
        # Balance is ledger-owned: only the settlement/payment engines move it.
        read_only_fields = ("id", "total_debt", "version", "created_at", "updated_at")

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value
