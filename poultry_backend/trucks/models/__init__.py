# trucks/models/__init__.py

from .reconciliation import DailyReconciliation
from .truck import Truck
from .truck_load import TruckLoad

__all__ = [
    "Truck",
    "TruckLoad",
    "DailyReconciliation",
]
