# sales/management/commands/verify_invoice_integrity.py

from __future__ import annotations

from datetime import datetime

from django.core.management.base import BaseCommand

from sales.models import Invoice
from sales.services.settlement_service import invoice_integrity_issues


def _parse_date(s: str | None):
    """
    Parse YYYY-MM-DD into a date, or None.
    """
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class Command(BaseCommand):
    help = "Recompute invoice derived fields from raw inputs and report drift."

    def add_arguments(self, parser):
        parser.add_argument("--from", dest="date_from", help="Start invoice date YYYY-MM-DD (optional)")
        parser.add_argument("--to", dest="date_to", help="End invoice date YYYY-MM-DD (optional)")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any invoice drifted.",
        )

    def handle(self, *args, **options):
        date_from = _parse_date(options.get("date_from"))
        date_to = _parse_date(options.get("date_to"))
        strict = bool(options.get("strict"))

        if options.get("date_from") and not date_from:
            self.stderr.write(self.style.ERROR("Invalid --from date. Use YYYY-MM-DD"))
            return self._exit(strict)

        if options.get("date_to") and not date_to:
            self.stderr.write(self.style.ERROR("Invalid --to date. Use YYYY-MM-DD"))
            return self._exit(strict)

        qs = Invoice.objects.order_by("invoice_date", "invoice_number")
        if date_from:
            qs = qs.filter(invoice_date__gte=date_from)
        if date_to:
            qs = qs.filter(invoice_date__lte=date_to)

        self.stdout.write(self.style.MIGRATE_HEADING("Invoice integrity check"))
        self.stdout.write(f"Window: {date_from or 'start'} -> {date_to or 'today'}")

        checked = 0
        broken = []

        for invoice in qs.iterator():
            checked += 1
            issues = invoice_integrity_issues(invoice)
            if issues:
                broken.append((invoice.invoice_number, issues))

        self.stdout.write(f"Invoices checked: {checked}")

        for number, issues in broken[:50]:
            self.stderr.write(self.style.ERROR(f"[FAIL] {number}: {', '.join(issues)}"))

        if broken:
            self.stderr.write(self.style.ERROR(f"Integrity drift in {len(broken)} invoice(s)"))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] All invoices consistent"))

        return self._exit(strict and bool(broken))

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
