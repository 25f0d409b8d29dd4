import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from orders.serializers import OrderSerializer

from .filters import ProductionRecordFilter
from .models import ProductionRecord
from .serializers import (
    OrderPaymentSerializer,
    ProductionRecordSerializer,
    ProductionSummarySerializer,
    SplitProductionRecordSerializer,
    SummaryQuerySerializer,
    UpdateProductionRecordSerializer,
)
from .services import ProductionService

logger = logging.getLogger(__name__)


class ProductionRecordViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = ProductionRecord.objects.select_related("flavor", "order__customer")
    serializer_class = ProductionRecordSerializer
    filterset_class = ProductionRecordFilter

    def partial_update(self, request: Request, pk=None) -> Response:
        serializer = UpdateProductionRecordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        record = ProductionService.update(
            self.get_object().pk,
            data["status"],
            sale_price=data.get("sale_price"),
            notes=data.get("notes"),
        )
        return Response(self.get_serializer(self.get_queryset().get(pk=record.pk)).data)

    @action(detail=True, methods=["post"], url_path="split")
    def split(self, request: Request, pk=None) -> Response:
        serializer = SplitProductionRecordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        new_record = ProductionService.split(
            self.get_object().pk,
            data["split_quantity"],
            data["new_status"],
            sale_price=data.get("sale_price"),
        )
        return Response(
            self.get_serializer(self.get_queryset().get(pk=new_record.pk)).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"], url_path="order-payment")
    def order_payment(self, request: Request) -> Response:
        serializer = OrderPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = ProductionService.update_order_payment(
            data["order_id"], data["payment_status"], data.get("payment_method")
        )
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request: Request) -> Response:
        query = SummaryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        summary = ProductionService.summary(**query.validated_data)
        return Response(ProductionSummarySerializer(summary).data)
