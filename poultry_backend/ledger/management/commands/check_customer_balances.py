# ledger/management/commands/check_customer_balances.py

from django.core.management.base import BaseCommand

from ledger.services.invariants import find_balance_discrepancies


class Command(BaseCommand):
    help = "Verify every customer's total_debt against invoices minus applied payments."

    def add_arguments(self, parser):
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any balance drifted.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))

        self.stdout.write(self.style.MIGRATE_HEADING("Customer balance check"))

        discrepancies = find_balance_discrepancies()

        for d in discrepancies:
            self.stderr.write(
                self.style.ERROR(
                    f"[FAIL] {d.customer_name} ({d.customer_id}): "
                    f"stored={d.stored_debt} expected={d.expected_debt} diff={d.difference}"
                )
            )

        if discrepancies:
            self.stderr.write(self.style.ERROR(f"{len(discrepancies)} customer balance(s) drifted"))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] All customer balances match their ledger"))

        if strict and discrepancies:
            raise SystemExit(1)
