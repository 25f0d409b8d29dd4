import logging

from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from .filters import OrderFilter
from .models import Order
from .serializers import (
    AdminNotesSerializer,
    OrderConfirmationSerializer,
    OrderSerializer,
    OrderSubmissionSerializer,
    UpdatePaymentSerializer,
)
from .services import OrderService

logger = logging.getLogger(__name__)


class OrderViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Staff order management. ``POST /orders/`` is the public order form
    submission; everything else requires a staff user.
    """

    queryset = (
        Order.objects.select_related("customer", "bake_slot__location")
        .prefetch_related("items")
        .order_by("-created_at")
    )
    serializer_class = OrderSerializer
    filterset_class = OrderFilter

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        return super().get_permissions()

    def create(self, request: Request) -> Response:
        serializer = OrderSubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService.submit(
            bake_slot_id=data["bake_slot_id"],
            items=[dict(item) for item in data["items"]],
            customer=dict(data["customer"]),
            customer_notes=data.get("customer_notes", ""),
        )
        order = self.get_queryset().get(pk=order.pk)
        return Response(OrderConfirmationSerializer(order).data, status=status.HTTP_201_CREATED)

    def _handle_status_change(self, request: Request, service_method) -> Response:
        """Generic handler for status-changing actions."""
        order = service_method(self.get_object())
        return Response(self.get_serializer(self.get_queryset().get(pk=order.pk)).data)

    @action(detail=True, methods=["post"], url_path="pick-up")
    def pick_up(self, request: Request, pk=None) -> Response:
        return self._handle_status_change(request, OrderService.mark_picked_up)

    @action(detail=True, methods=["post"], url_path="no-show")
    def no_show(self, request: Request, pk=None) -> Response:
        return self._handle_status_change(request, OrderService.mark_no_show)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request: Request, pk=None) -> Response:
        return self._handle_status_change(request, OrderService.cancel)

    @action(detail=True, methods=["post"], url_path="payment")
    def payment(self, request: Request, pk=None) -> Response:
        serializer = UpdatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = OrderService.update_payment(
            self.get_object(),
            serializer.validated_data["payment_status"],
            serializer.validated_data.get("payment_method"),
        )
        return Response(self.get_serializer(self.get_queryset().get(pk=order.pk)).data)

    @action(detail=True, methods=["post"], url_path="notes")
    def notes(self, request: Request, pk=None) -> Response:
        serializer = AdminNotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = OrderService.update_admin_notes(self.get_object(), serializer.validated_data["admin_notes"])
        return Response(self.get_serializer(self.get_queryset().get(pk=order.pk)).data)
