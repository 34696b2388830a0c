# sales/admin.py

from django.contrib import admin

from sales.models import Invoice


# ======================================================
# INVOICE ADMIN (READ-ONLY: writes go through settlement)
# ======================================================


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "customer",
        "truck",
        "invoice_date",
        "net_weight",
        "final_amount",
        "status",
        "is_amended",
    )
    search_fields = ("invoice_number", "customer__name")
    list_filter = ("status", "is_amended", "invoice_date")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
