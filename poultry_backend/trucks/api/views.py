# trucks/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.context import actor_from_request
from ledger.api.errors import ledger_error_response
from ledger.services.exceptions import ConflictError, LedgerError
from trucks.api.serializers import (
    DailyReconciliationSerializer,
    ReconcileTruckDaySerializer,
    TruckLoadCreateSerializer,
    TruckLoadSerializer,
    TruckLoadStatusSerializer,
    TruckSerializer,
)
from trucks.models import DailyReconciliation, Truck, TruckLoad
from trucks.services.reconciliation_service import reconcile_truck_day
from trucks.services.truck_load_service import create_truck_load, update_load_status


class TruckListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = TruckSerializer

    @extend_schema(tags=["trucks"], responses=TruckSerializer(many=True))
    def get(self, request):
        qs = Truck.objects.filter(is_active=True).order_by("truck_number")
        return Response(TruckSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["trucks"],
        request=TruckSerializer,
        responses={201: TruckSerializer},
    )
    def post(self, request):
        s = TruckSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        truck = s.save()
        return Response(TruckSerializer(truck).data, status=status.HTTP_201_CREATED)


class TruckLoadListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = TruckLoadSerializer

    @extend_schema(tags=["trucks"], responses=TruckLoadSerializer(many=True))
    def get(self, request):
        qs = TruckLoad.objects.select_related("truck")

        truck_id = request.query_params.get("truck")
        if truck_id:
            qs = qs.filter(truck_id=truck_id)
        load_date = request.query_params.get("load_date")
        if load_date:
            qs = qs.filter(load_date=load_date)

        return Response(TruckLoadSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["trucks"],
        request=TruckLoadCreateSerializer,
        responses={201: TruckLoadSerializer},
    )
    def post(self, request):
        s = TruckLoadCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            load = create_truck_load(
                truck_id=data["truck_id"],
                total_weight=data["total_weight"],
                cages_count=data["cages_count"],
                load_date=data.get("load_date"),
                notes=data.get("notes", ""),
                actor_id=actor_from_request(request),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(TruckLoadSerializer(load).data, status=status.HTTP_201_CREATED)


class TruckLoadStatusView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = TruckLoadStatusSerializer

    @extend_schema(
        tags=["trucks"],
        request=TruckLoadStatusSerializer,
        responses={200: TruckLoadSerializer},
    )
    def post(self, request, load_id):
        s = TruckLoadStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            load = update_load_status(
                load_id=load_id,
                new_status=s.validated_data["status"],
                actor_id=actor_from_request(request),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(TruckLoadSerializer(load).data, status=status.HTTP_200_OK)


class DailyReconciliationListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = DailyReconciliationSerializer

    @extend_schema(tags=["trucks"], responses=DailyReconciliationSerializer(many=True))
    def get(self, request):
        qs = DailyReconciliation.objects.select_related("truck")

        truck_id = request.query_params.get("truck")
        if truck_id:
            qs = qs.filter(truck_id=truck_id)
        on_date = request.query_params.get("date")
        if on_date:
            qs = qs.filter(reconciliation_date=on_date)

        return Response(
            DailyReconciliationSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )

    @extend_schema(
        tags=["trucks"],
        request=ReconcileTruckDaySerializer,
        responses={201: DailyReconciliationSerializer},
    )
    def post(self, request):
        s = ReconcileTruckDaySerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            record = reconcile_truck_day(
                truck_id=data["truck_id"],
                reconciliation_date=data["reconciliation_date"],
                actor_id=actor_from_request(request),
            )
        except ConflictError as exc:
            response = ledger_error_response(exc)
            if exc.existing is not None:
                response.data["existing"] = DailyReconciliationSerializer(exc.existing).data
            return response
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(
            DailyReconciliationSerializer(record).data, status=status.HTTP_201_CREATED
        )
