# customers/api/views.py

"""
PATH: customers/api/views.py

CUSTOMERS API

POST /api/customers/                      onboard (optional opening advance/debt)
GET  /api/customers/<id>/                 customer + ledger-derived summary
POST /api/customers/<id>/payments/        money received (debt settlement or advance)
POST /api/customers/<id>/advances/        advance received
POST /api/customers/<id>/debts/           debt booked without an order
POST /api/customers/<id>/reconcile/       recompute register from the ledger

Every write goes through customers.services; the register is never
touched by a serializer.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.errors import service_error_response
from accounting.api.serializers import LedgerEntrySerializer
from accounting.services.exceptions import LedgerServiceError
from customers.api.serializers import (
    AdvanceSerializer,
    CustomerLedgerSummarySerializer,
    CustomerOnboardSerializer,
    CustomerPaymentSerializer,
    CustomerSerializer,
    DebtSerializer,
)
from customers.services.advances import (
    onboard_customer,
    record_advance,
    record_customer_payment,
    record_debt,
)
from customers.services.balance_register import get_customer
from customers.services.reconciliation import recalculate_from_ledger, summarize_customer_ledger

CUSTOMER_VIEW_PERMISSION = "customers.view_customer"
CUSTOMER_ADD_PERMISSION = "customers.add_customer"
CUSTOMER_CHANGE_PERMISSION = "customers.change_customer"


def _forbidden(action: str) -> Response:
    return Response(
        {"detail": f"You do not have permission to {action}."},
        status=status.HTTP_403_FORBIDDEN,
    )


def _customer_payload(customer_id) -> dict:
    customer = get_customer(customer_id)
    return {
        "customer": CustomerSerializer(customer).data,
        "ledger": CustomerLedgerSummarySerializer(summarize_customer_ledger(customer.pk)).data,
    }


class CustomerOnboardView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = CustomerOnboardSerializer

    @extend_schema(
        tags=["customers"],
        request=CustomerOnboardSerializer,
        responses={201: CustomerSerializer, 400: dict, 403: dict},
    )
    def post(self, request, *args, **kwargs):
        if not request.user.has_perm(CUSTOMER_ADD_PERMISSION):
            return _forbidden("add customers")

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            customer = onboard_customer(
                first_name=data["first_name"],
                last_name=data.get("last_name", ""),
                phone=data["phone"],
                email=data.get("email", ""),
                address=data.get("address", ""),
                role=data["role"],
                initial_advance=data.get("initial_advance"),
                advance_method=data["advance_method"],
                advance_reference=data.get("advance_reference", ""),
                initial_debt=data.get("initial_debt"),
                debt_reference=data.get("debt_reference", ""),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)


class CustomerDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = CustomerSerializer

    @extend_schema(tags=["customers"], responses={200: dict, 404: dict})
    def get(self, request, pk, *args, **kwargs):
        if not request.user.has_perm(CUSTOMER_VIEW_PERMISSION):
            return _forbidden("view customers")

        try:
            payload = _customer_payload(pk)
        except LedgerServiceError as exc:
            return service_error_response(exc)
        return Response(payload, status=status.HTTP_200_OK)


class CustomerPaymentView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = CustomerPaymentSerializer

    @extend_schema(
        tags=["customers"],
        request=CustomerPaymentSerializer,
        responses={201: dict, 400: dict, 404: dict},
    )
    def post(self, request, pk, *args, **kwargs):
        if not request.user.has_perm(CUSTOMER_CHANGE_PERMISSION):
            return _forbidden("record customer payments")

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_customer_payment(
                pk,
                data["amount"],
                data["method"],
                data["reference"],
                date=data.get("date"),
                note=data.get("note", ""),
                idempotency_key=data.get("idempotency_key"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(
            {
                "type": result["type"],
                "balance": f"{result['balance']:.2f}",
                "ledger_entry": LedgerEntrySerializer(result["ledger_entry"]).data,
            },
            status=status.HTTP_201_CREATED,
        )


class CustomerAdvanceView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AdvanceSerializer

    @extend_schema(tags=["customers"], request=AdvanceSerializer, responses={201: dict, 400: dict, 404: dict})
    def post(self, request, pk, *args, **kwargs):
        if not request.user.has_perm(CUSTOMER_CHANGE_PERMISSION):
            return _forbidden("record advances")

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            balance = record_advance(
                pk,
                data["amount"],
                data["method"],
                data.get("reference", ""),
                date=data.get("date"),
                note=data.get("note", ""),
                idempotency_key=data.get("idempotency_key"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response({"balance": f"{balance:.2f}"}, status=status.HTTP_201_CREATED)


class CustomerDebtView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = DebtSerializer

    @extend_schema(tags=["customers"], request=DebtSerializer, responses={201: dict, 400: dict, 404: dict})
    def post(self, request, pk, *args, **kwargs):
        if not request.user.has_perm(CUSTOMER_CHANGE_PERMISSION):
            return _forbidden("record debts")

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            balance = record_debt(
                pk,
                data["amount"],
                data.get("reference", ""),
                date=data.get("date"),
                note=data.get("note", ""),
                idempotency_key=data.get("idempotency_key"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response({"balance": f"{balance:.2f}"}, status=status.HTTP_201_CREATED)


class CustomerReconcileView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = CustomerLedgerSummarySerializer

    @extend_schema(tags=["customers"], request=None, responses={200: dict, 404: dict})
    def post(self, request, pk, *args, **kwargs):
        if not request.user.has_perm(CUSTOMER_CHANGE_PERMISSION):
            return _forbidden("reconcile balances")

        try:
            recalculate_from_ledger(pk, triggered_by=f"api:{request.user.pk}")
            payload = _customer_payload(pk)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(payload, status=status.HTTP_200_OK)
