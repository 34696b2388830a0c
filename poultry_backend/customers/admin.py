# customers/admin.py

from django.contrib import admin

from customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "is_active", "total_debt", "updated_at")
    readonly_fields = ("total_debt", "version", "created_at", "updated_at")
    search_fields = ("name", "phone")
    list_filter = ("is_active",)
