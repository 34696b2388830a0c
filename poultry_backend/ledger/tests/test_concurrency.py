# ledger/tests/test_concurrency.py

"""
Real-thread races. Row locks only exist on backends that support
SELECT ... FOR UPDATE, so these run against PostgreSQL and are skipped on SQLite.
"""

import threading
from decimal import Decimal

from django.db import connection
from django.test import TransactionTestCase, skipUnlessDBFeature

from ledger.services.exceptions import ConflictError
from ledger.tests.fixtures import TRADE_DAY, invoice_kwargs, make_customer, make_truck, refreshed
from sales.models import Invoice
from sales.services.settlement_service import create_invoice
from trucks.models import DailyReconciliation, TruckLoad
from trucks.services.reconciliation_service import reconcile_truck_day


def _run_in_threads(target, count):
    barrier = threading.Barrier(count)
    results, errors = [], []

    def worker():
        try:
            barrier.wait()
            results.append(target())
        except Exception as exc:  # collected for assertions
            errors.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentWriterTests(TransactionTestCase):
    def test_concurrent_invoices_apply_every_amount(self):
        customer = make_customer()
        truck = make_truck()

        # 50 kg net at 1.00 each
        kwargs = invoice_kwargs(
            customer, truck, gross_weight="60.00", cages_weight="10.00", unit_price="1.00"
        )
        results, errors = _run_in_threads(lambda: create_invoice(**kwargs), 3)

        self.assertEqual(errors, [])
        self.assertEqual(len(results), 3)
        self.assertEqual(refreshed(customer).total_debt, Decimal("150.00"))
        self.assertEqual(
            len(set(Invoice.objects.values_list("invoice_number", flat=True))), 3
        )

    def test_concurrent_reconciliation_has_one_winner(self):
        truck = make_truck()
        TruckLoad.objects.create(
            truck=truck, load_date=TRADE_DAY, total_weight=Decimal("400.00"), cages_count=20
        )

        results, errors = _run_in_threads(
            lambda: reconcile_truck_day(truck_id=truck.pk, reconciliation_date=TRADE_DAY), 2
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], ConflictError)
        self.assertEqual(errors[0].existing.pk, results[0].pk)
        self.assertEqual(DailyReconciliation.objects.count(), 1)
