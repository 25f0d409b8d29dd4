import logging

from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from .filters import BakeSlotFilter
from .models import BakeSlot
from .serializers import (
    BakeSlotSerializer,
    OpenCapacitySerializer,
    PublicBakeSlotSerializer,
    SetCapacitySerializer,
)
from .services import CapacityService

logger = logging.getLogger(__name__)


class BakeSlotViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Staff listing of bake slots plus capacity actions. ``available`` is the
    public listing used by the order form.
    """

    queryset = BakeSlot.objects.select_related("location").prefetch_related("flavor_caps__flavor")
    serializer_class = BakeSlotSerializer
    filterset_class = BakeSlotFilter

    @action(
        detail=False,
        methods=["get"],
        url_path="available",
        permission_classes=[permissions.AllowAny],
    )
    def available(self, request: Request) -> Response:
        slots = CapacityService.list_available_slots()
        return Response(PublicBakeSlotSerializer(slots, many=True).data)

    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request: Request, pk=None) -> Response:
        slot = CapacityService.close_slot(self.get_object().pk, request.user)
        return Response(self.get_serializer(slot).data)

    @action(detail=True, methods=["post"], url_path="reopen")
    def reopen(self, request: Request, pk=None) -> Response:
        slot = CapacityService.reopen_slot(self.get_object().pk)
        return Response(self.get_serializer(slot).data)

    @action(detail=True, methods=["post"], url_path="capacity")
    def capacity(self, request: Request, pk=None) -> Response:
        serializer = SetCapacitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        slot = CapacityService.set_total_capacity(
            self.get_object().pk, serializer.validated_data["total_capacity"]
        )
        return Response(self.get_serializer(slot).data)

    @action(detail=True, methods=["get"], url_path="open-capacity")
    def open_capacity(self, request: Request, pk=None) -> Response:
        summary = CapacityService.open_capacity(self.get_object())
        return Response(OpenCapacitySerializer(summary).data)
