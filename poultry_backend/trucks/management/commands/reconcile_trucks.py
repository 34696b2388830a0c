# trucks/management/commands/reconcile_trucks.py

from datetime import datetime

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ledger.services.exceptions import ConflictError, LedgerError
from trucks.services.reconciliation_service import (
    reconcile_truck_day,
    trucks_requiring_reconciliation,
)


class Command(BaseCommand):
    help = "Reconcile every truck that has loads on a date and no reconciliation yet."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            dest="on_date",
            help="Reconciliation date YYYY-MM-DD (default: today)",
        )

    def handle(self, *args, **options):
        raw = options.get("on_date")
        if raw:
            try:
                on_date = datetime.strptime(raw, "%Y-%m-%d").date()
            except ValueError as exc:
                raise CommandError("Invalid --date. Use YYYY-MM-DD") from exc
        else:
            on_date = timezone.localdate()

        trucks = list(trucks_requiring_reconciliation(on_date))
        self.stdout.write(self.style.MIGRATE_HEADING(f"Reconciling {len(trucks)} truck(s) for {on_date}"))

        failures = 0
        for truck in trucks:
            try:
                record = reconcile_truck_day(truck_id=truck.pk, reconciliation_date=on_date)
            except ConflictError:
                self.stdout.write(f"[SKIP] {truck.truck_number}: already reconciled")
                continue
            except LedgerError as exc:
                failures += 1
                self.stderr.write(self.style.ERROR(f"[FAIL] {truck.truck_number}: {exc}"))
                continue

            self.stdout.write(
                self.style.SUCCESS(
                    f"[OK] {truck.truck_number}: load={record.load_weight} "
                    f"sold={record.sold_weight} wastage={record.wastage_weight} "
                    f"({record.wastage_percentage}%)"
                )
            )

        if failures:
            raise CommandError(f"{failures} truck(s) could not be reconciled")
