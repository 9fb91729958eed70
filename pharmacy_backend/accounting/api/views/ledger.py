# accounting/api/views/ledger.py

"""
PATH: accounting/api/views/ledger.py

LEDGER API

GET  /api/accounting/ledger/
    - Requires permission: accounting.view_ledgerentry
    - Filters: month, type, method, customer, date_from, date_to, q
GET  /api/accounting/ledger/<id>/
POST /api/accounting/ledger/manual/
    - Requires permission: accounting.add_ledgerentry
    - Expense / remittance / commission / refund / adjustment lines only
"""

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.errors import service_error_response
from accounting.api.filters import LedgerEntryFilter
from accounting.api.serializers import LedgerEntrySerializer, ManualEntryCreateSerializer
from accounting.models import LedgerEntry
from accounting.services.cash_book_service import create_manual_entry
from accounting.services.exceptions import LedgerServiceError

LEDGER_VIEW_PERMISSION = "accounting.view_ledgerentry"
LEDGER_POST_PERMISSION = "accounting.add_ledgerentry"


@extend_schema(tags=["accounting"])
class LedgerEntryViewSet(ReadOnlyModelViewSet):
    """
    Read-only access to the cash book (append-only, audit-safe).
    Newest first.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = LedgerEntrySerializer
    http_method_names = ["get", "head", "options"]
    filter_backends = [DjangoFilterBackend]
    filterset_class = LedgerEntryFilter

    queryset = LedgerEntry.objects.all()

    def get_queryset(self):
        if not self.request.user.has_perm(LEDGER_VIEW_PERMISSION):
            raise PermissionDenied("You do not have permission to view ledger entries.")
        return super().get_queryset().select_related("customer", "product").order_by(
            "-date", "-created_at", "-id"
        )


class ManualEntryCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ManualEntryCreateSerializer

    @extend_schema(
        tags=["accounting"],
        request=ManualEntryCreateSerializer,
        responses={201: LedgerEntrySerializer, 400: dict, 403: dict},
    )
    def post(self, request, *args, **kwargs):
        if not request.user.has_perm(LEDGER_POST_PERMISSION):
            return Response(
                {"detail": "You do not have permission to post ledger entries."},
                status=status.HTTP_403_FORBIDDEN,
            )

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            entry = create_manual_entry(
                type=data["type"],
                method=data["method"],
                credit=data.get("credit"),
                debit=data.get("debit"),
                description=data["description"],
                date=data.get("date"),
                party=data.get("party", ""),
                reference=data.get("reference", ""),
                idempotency_key=data.get("idempotency_key"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(LedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)
