"""
AUDIT APP CONFIG

Write-behind audit trail for every ledger mutation.
"""

from django.apps import AppConfig


class AuditConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "audit"
    verbose_name = "Audit Trail"
