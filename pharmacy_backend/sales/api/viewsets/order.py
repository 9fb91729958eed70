# sales/api/viewsets/order.py

"""
======================================================
PATH: sales/api/viewsets/order.py
======================================================
ORDER VIEWSET (STAFF)

Purpose:
- Create orders (settlement engine: totals, advance allocation,
  stock, ledger, customer balance in one transaction)
- Preview totals before submitting
- Retrieve a single order
- Take payments against an open order

Security:
- Requires IsAuthenticated
- create / payment require sales.add_order / sales.change_order
- retrieve / preview require sales.view_order

Listing and search are handled by the reporting front end through
the ledger API; no list endpoint here.
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.errors import jsonable, service_error_response
from accounting.services.exceptions import LedgerServiceError
from sales.models import Order
from sales.serializers.order import (
    OrderCreateSerializer,
    OrderPaymentInputSerializer,
    OrderPreviewSerializer,
    OrderSerializer,
)
from sales.services.order_payments import record_order_payment
from sales.services.settlement import create_order, preview_order_totals

ORDER_VIEW_PERMISSION = "sales.view_order"
ORDER_ADD_PERMISSION = "sales.add_order"
ORDER_CHANGE_PERMISSION = "sales.change_order"


class OrderViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Order.objects.select_related("customer").prefetch_related(
            "items", "payments__ledger_entry"
        )

    def _require(self, perm: str):
        if not self.request.user.has_perm(perm):
            raise PermissionDenied("You do not have permission to perform this action.")

    def retrieve(self, request, *args, **kwargs):
        self._require(ORDER_VIEW_PERMISSION)
        return super().retrieve(request, *args, **kwargs)

    # ======================================================
    # CREATE
    # ======================================================

    @extend_schema(
        tags=["sales"],
        request=OrderCreateSerializer,
        responses={201: OrderSerializer, 400: dict, 404: dict, 409: dict},
    )
    def create(self, request, *args, **kwargs):
        self._require(ORDER_ADD_PERMISSION)

        s = OrderCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            order = create_order(
                customer_id=data["customer_id"],
                items=data["items"],
                payment=data.get("payment"),
                order_discount=data.get("order_discount"),
                notes=data.get("notes", ""),
                date=data.get("date"),
                idempotency_key=data.get("idempotency_key"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        order = self.get_queryset().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # PREVIEW
    # ======================================================

    @extend_schema(
        tags=["sales"],
        request=OrderPreviewSerializer,
        responses={200: dict, 400: dict, 404: dict},
    )
    @action(detail=False, methods=["post"], url_path="preview")
    def preview(self, request):
        self._require(ORDER_VIEW_PERMISSION)

        s = OrderPreviewSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            totals = preview_order_totals(
                customer_id=data["customer_id"],
                items=data["items"],
                payment=data.get("payment"),
                order_discount=data.get("order_discount"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(jsonable(totals.as_dict()), status=status.HTTP_200_OK)

    # ======================================================
    # PAYMENT
    # ======================================================

    @extend_schema(
        tags=["sales"],
        request=OrderPaymentInputSerializer,
        responses={200: OrderSerializer, 400: dict, 404: dict},
    )
    @action(detail=True, methods=["post"], url_path="payment")
    def payment(self, request, pk=None):
        self._require(ORDER_CHANGE_PERMISSION)

        s = OrderPaymentInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            order = record_order_payment(
                order_id=pk,
                amount=data["amount"],
                method=data["method"],
                reference=data.get("reference", ""),
                note=data.get("note", ""),
                date=data.get("date"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        order = self.get_queryset().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)
