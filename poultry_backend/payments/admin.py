# payments/admin.py

from django.contrib import admin

from payments.models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "customer",
        "amount",
        "applied_amount",
        "payment_method",
        "payment_date",
        "is_reversed",
    )
    search_fields = ("customer__name",)
    list_filter = ("payment_method", "is_reversed", "payment_date")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
