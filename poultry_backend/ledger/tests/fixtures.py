# ledger/tests/fixtures.py

from __future__ import annotations

import itertools
from datetime import date
from decimal import Decimal

from customers.models import Customer
from trucks.models import Truck

TRADE_DAY = date(2025, 1, 10)

_truck_numbers = itertools.count(1)


def make_customer(*, name="Al Noor Butchery", is_active=True) -> Customer:
    return Customer.objects.create(name=name, phone="0500000000", is_active=is_active)


def make_truck(*, truck_number=None, is_active=True) -> Truck:
    number = truck_number or f"TRK-{next(_truck_numbers):03d}"
    return Truck.objects.create(truck_number=number, driver_name="Driver", is_active=is_active)


def invoice_kwargs(customer, truck, **overrides) -> dict:
    """
    Defaults reproduce the reference invoice: 100 kg gross, 10 kg of cages,
    2.00 per kg, no discount -> 90 kg net, 180.00 final.
    """
    data = {
        "customer_id": customer.pk,
        "truck_id": truck.pk,
        "gross_weight": Decimal("100"),
        "cages_weight": Decimal("10"),
        "cages_count": 5,
        "unit_price": Decimal("2"),
        "discount_percentage": Decimal("0"),
        "invoice_date": TRADE_DAY,
    }
    data.update(overrides)
    return data


def refreshed(instance):
    instance.refresh_from_db()
    return instance
