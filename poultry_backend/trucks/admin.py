# trucks/admin.py

from django.contrib import admin

from trucks.models import DailyReconciliation, Truck, TruckLoad


@admin.register(Truck)
class TruckAdmin(admin.ModelAdmin):
    list_display = ("truck_number", "driver_name", "is_active", "created_at")
    search_fields = ("truck_number", "driver_name")
    list_filter = ("is_active",)


@admin.register(TruckLoad)
class TruckLoadAdmin(admin.ModelAdmin):
    list_display = ("truck", "load_date", "total_weight", "cages_count", "status")
    list_filter = ("status", "load_date")
    readonly_fields = ("status", "created_by", "created_at", "updated_at")

    def has_add_permission(self, request):
        return False


@admin.register(DailyReconciliation)
class DailyReconciliationAdmin(admin.ModelAdmin):
    list_display = (
        "truck",
        "reconciliation_date",
        "load_weight",
        "sold_weight",
        "wastage_weight",
        "wastage_percentage",
    )
    list_filter = ("reconciliation_date",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
