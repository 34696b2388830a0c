# trucks/api/serializers.py

from rest_framework import serializers

from trucks.models import DailyReconciliation, Truck, TruckLoad


class TruckSerializer(serializers.ModelSerializer):
    class Meta:
        model = Truck
        fields = ("id", "truck_number", "driver_name", "is_active", "created_at")
        read_only_fields = ("id", "created_at")


class TruckLoadSerializer(serializers.ModelSerializer):
    truck_number = serializers.CharField(source="truck.truck_number", read_only=True)
    average_weight_per_cage = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True
    )

    class Meta:
        model = TruckLoad
        fields = (
            "id",
            "truck",
            "truck_number",
            "load_date",
            "total_weight",
            "cages_count",
            "average_weight_per_cage",
            "status",
            "notes",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class TruckLoadCreateSerializer(serializers.Serializer):
    truck_id = serializers.UUIDField()
    total_weight = serializers.DecimalField(max_digits=10, decimal_places=2)
    cages_count = serializers.IntegerField()
    load_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class TruckLoadStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[value for value, _ in TruckLoad.STATUS_CHOICES])


class DailyReconciliationSerializer(serializers.ModelSerializer):
    truck_number = serializers.CharField(source="truck.truck_number", read_only=True)

    class Meta:
        model = DailyReconciliation
        fields = (
            "id",
            "truck",
            "truck_number",
            "reconciliation_date",
            "load_weight",
            "sold_weight",
            "wastage_weight",
            "wastage_percentage",
            "status",
            "created_by",
            "created_at",
        )
        read_only_fields = fields


class ReconcileTruckDaySerializer(serializers.Serializer):
    truck_id = serializers.UUIDField()
    reconciliation_date = serializers.DateField()
