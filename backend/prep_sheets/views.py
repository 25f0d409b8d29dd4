import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from recipes.serializers import PrepSheetDataSerializer

from .models import PrepSheet
from .serializers import (
    AddExtraSerializer,
    CompleteSheetSerializer,
    CreatePrepSheetSerializer,
    PrepSheetItemSerializer,
    PrepSheetSerializer,
    SheetOrderSerializer,
)
from .services import PrepSheetService

logger = logging.getLogger(__name__)


class PrepSheetViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    queryset = PrepSheet.objects.prefetch_related("items__flavor", "items__order__customer")
    serializer_class = PrepSheetSerializer
    filterset_fields = ["bake_date", "status"]

    def _sheet_response(self, sheet_id, http_status=status.HTTP_200_OK) -> Response:
        sheet = self.get_queryset().get(pk=sheet_id)
        return Response(self.get_serializer(sheet).data, status=http_status)

    def create(self, request: Request) -> Response:
        serializer = CreatePrepSheetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sheet = PrepSheetService.create(**serializer.validated_data)
        return self._sheet_response(sheet.pk, status.HTTP_201_CREATED)

    def destroy(self, request: Request, pk=None) -> Response:
        PrepSheetService.delete(self.get_object().pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="add-order")
    def add_order(self, request: Request, pk=None) -> Response:
        serializer = SheetOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sheet = PrepSheetService.add_order(self.get_object().pk, serializer.validated_data["order_id"])
        return self._sheet_response(sheet.pk)

    @action(detail=True, methods=["post"], url_path="remove-order")
    def remove_order(self, request: Request, pk=None) -> Response:
        serializer = SheetOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sheet = PrepSheetService.remove_order(self.get_object().pk, serializer.validated_data["order_id"])
        return self._sheet_response(sheet.pk)

    @action(detail=True, methods=["post"], url_path="add-eligible-orders")
    def add_eligible_orders(self, request: Request, pk=None) -> Response:
        sheet_id = self.get_object().pk
        PrepSheetService.add_eligible_orders(sheet_id)
        return self._sheet_response(sheet_id)

    @action(detail=True, methods=["post"], url_path="extras")
    def add_extra(self, request: Request, pk=None) -> Response:
        serializer = AddExtraSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = PrepSheetService.add_extra(
            self.get_object().pk,
            serializer.validated_data["flavor_id"],
            serializer.validated_data["quantity"],
        )
        return Response(PrepSheetItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=r"extras/(?P<item_id>\d+)")
    def remove_extra(self, request: Request, pk=None, item_id=None) -> Response:
        self.get_object()
        PrepSheetService.remove_extra(int(item_id))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request: Request, pk=None) -> Response:
        serializer = CompleteSheetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sheet = PrepSheetService.complete(
            self.get_object().pk,
            serializer.validated_data["actual_quantities"],
            acting_user=request.user,
        )
        return self._sheet_response(sheet.pk)

    @action(detail=True, methods=["get"], url_path="prep-data")
    def prep_data(self, request: Request, pk=None) -> Response:
        data = PrepSheetService.prep_data(self.get_object().pk)
        return Response(PrepSheetDataSerializer(data).data)
