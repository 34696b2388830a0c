# trucks/tests/test_truck_loads.py

from __future__ import annotations

import uuid
from decimal import Decimal

from django.test import TestCase, override_settings

from ledger.services.exceptions import (
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
)
from ledger.tests.fixtures import TRADE_DAY, make_truck
from trucks.models import TruckLoad
from trucks.services.load_lifecycle import can_transition
from trucks.services.truck_load_service import create_truck_load, update_load_status


class TruckLoadIntakeTests(TestCase):
    def setUp(self):
        self.truck = make_truck()

    def _load(self, **overrides):
        data = {
            "truck_id": self.truck.pk,
            "total_weight": "500",
            "cages_count": 25,
            "load_date": TRADE_DAY,
        }
        data.update(overrides)
        return create_truck_load(**data)

    def test_create_load(self):
        load = self._load(notes="  morning batch  ", actor_id="3")

        self.assertEqual(load.total_weight, Decimal("500.00"))
        self.assertEqual(load.status, TruckLoad.STATUS_LOADED)
        self.assertEqual(load.notes, "morning batch")
        self.assertEqual(load.created_by, "3")
        self.assertEqual(load.average_weight_per_cage, Decimal("20.00"))

    def test_weight_limits(self):
        for weight in ("0", "-1", "10000.01"):
            with self.assertRaises(ValidationError):
                self._load(total_weight=weight)

        self._load(total_weight="10000", cages_count=250)

    def test_cage_limits(self):
        for cages in (0, -3, 501, "many"):
            with self.assertRaises(ValidationError):
                self._load(cages_count=cages)

    def test_average_weight_per_cage_must_be_plausible(self):
        with self.assertRaises(ValidationError):
            self._load(total_weight="10", cages_count=20)  # 0.5 kg per cage
        with self.assertRaises(ValidationError):
            self._load(total_weight="510", cages_count=10)  # 51 kg per cage

        self.assertFalse(TruckLoad.objects.exists())

    @override_settings(TRUCK_LOAD_LIMITS={"MAX_TOTAL_WEIGHT": 1000})
    def test_limits_are_configurable(self):
        with self.assertRaises(ValidationError):
            self._load(total_weight="1500", cages_count=50)

    def test_inactive_or_unknown_truck(self):
        parked = make_truck(is_active=False)
        with self.assertRaises(ValidationError):
            self._load(truck_id=parked.pk)
        with self.assertRaises(NotFoundError):
            self._load(truck_id=uuid.uuid4())


class TruckLoadLifecycleTests(TestCase):
    def setUp(self):
        truck = make_truck()
        self.load = create_truck_load(
            truck_id=truck.pk, total_weight="500", cages_count=25, load_date=TRADE_DAY
        )

    def test_forward_progression(self):
        load = update_load_status(load_id=self.load.pk, new_status="in_transit")
        self.assertEqual(load.status, TruckLoad.STATUS_IN_TRANSIT)

        load = update_load_status(load_id=self.load.pk, new_status=TruckLoad.STATUS_RECONCILED)
        self.assertEqual(load.status, TruckLoad.STATUS_RECONCILED)

    def test_no_back_transitions(self):
        update_load_status(load_id=self.load.pk, new_status=TruckLoad.STATUS_IN_TRANSIT)

        with self.assertRaises(InvalidStatusTransitionError):
            update_load_status(load_id=self.load.pk, new_status=TruckLoad.STATUS_LOADED)

        self.load.refresh_from_db()
        self.assertEqual(self.load.status, TruckLoad.STATUS_IN_TRANSIT)

    def test_reconciled_is_terminal(self):
        self.assertFalse(
            can_transition(
                from_status=TruckLoad.STATUS_RECONCILED,
                to_status=TruckLoad.STATUS_IN_TRANSIT,
            )
        )
        self.assertTrue(
            can_transition(
                from_status=TruckLoad.STATUS_LOADED,
                to_status=TruckLoad.STATUS_RECONCILED,
            )
        )

    def test_unknown_status_and_same_status(self):
        with self.assertRaises(InvalidStatusTransitionError):
            update_load_status(load_id=self.load.pk, new_status="LOST")
        with self.assertRaises(InvalidStatusTransitionError):
            update_load_status(load_id=self.load.pk, new_status=TruckLoad.STATUS_LOADED)

    def test_unknown_load(self):
        with self.assertRaises(NotFoundError):
            update_load_status(load_id=uuid.uuid4(), new_status=TruckLoad.STATUS_IN_TRANSIT)
