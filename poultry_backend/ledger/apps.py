"""
LEDGER APP CONFIG

Cross-cutting ledger plumbing:
- Error taxonomy
- Transaction coordinator (atomic unit, retries, cancellation)
- API error normalization
- Balance invariant checks
"""

from django.apps import AppConfig


class LedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ledger"
    verbose_name = "Customer Ledger"
