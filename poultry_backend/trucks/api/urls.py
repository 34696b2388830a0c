# trucks/api/urls.py

from django.urls import path

from trucks.api.views import (
    DailyReconciliationListCreateView,
    TruckListCreateView,
    TruckLoadListCreateView,
    TruckLoadStatusView,
)

urlpatterns = [
    path("", TruckListCreateView.as_view(), name="trucks"),
    path("loads/", TruckLoadListCreateView.as_view(), name="truck-loads"),
    path(
        "loads/<uuid:load_id>/status/",
        TruckLoadStatusView.as_view(),
        name="truck-load-status",
    ),
    path(
        "reconciliations/",
        DailyReconciliationListCreateView.as_view(),
        name="truck-reconciliations",
    ),
]
