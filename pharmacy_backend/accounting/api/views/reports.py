# accounting/api/views/reports.py

"""
PATH: accounting/api/views/reports.py

REPORTS

GET /api/accounting/reports/monthly-summary/?month=YYYY-MM
GET /api/accounting/reports/sales-purchase/?month=YYYY-MM
    - Read-only, computed live from the immutable ledger
    - Requires permission: accounting.view_ledgerentry
    - month defaults to the current month
"""

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import service_error_response
from accounting.api.serializers import MonthlySummarySerializer, SalesPurchaseReportSerializer
from accounting.services.exceptions import LedgerServiceError
from accounting.services.reporting_service import get_monthly_summary, get_sales_purchase_report

MONTH_PARAMETER = OpenApiParameter(
    name="month",
    type=str,
    location=OpenApiParameter.QUERY,
    required=False,
    description="Month to report on (YYYY-MM). Defaults to the current month.",
)


class LedgerReportView(APIView):
    """
    Month-scoped report over the ledger.
    Subclasses set `build_report` and `serializer_class`.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = None

    def build_report(self, month: str) -> dict:
        raise NotImplementedError

    def get(self, request):
        if not request.user.has_perm("accounting.view_ledgerentry"):
            return Response(
                {"detail": "You do not have permission to view reports."},
                status=status.HTTP_403_FORBIDDEN,
            )

        month = (request.query_params.get("month") or "").strip()
        if not month:
            month = timezone.localdate().strftime("%Y-%m")

        try:
            report = self.build_report(month)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(self.serializer_class(report).data, status=status.HTTP_200_OK)


class MonthlySummaryView(LedgerReportView):
    serializer_class = MonthlySummarySerializer

    def build_report(self, month: str) -> dict:
        return get_monthly_summary(month)

    @extend_schema(
        tags=["accounting"],
        parameters=[MONTH_PARAMETER],
        responses={200: MonthlySummarySerializer, 400: dict, 403: dict},
    )
    def get(self, request):
        return super().get(request)


class SalesPurchaseReportView(LedgerReportView):
    serializer_class = SalesPurchaseReportSerializer

    def build_report(self, month: str) -> dict:
        return get_sales_purchase_report(month)

    @extend_schema(
        tags=["accounting"],
        parameters=[MONTH_PARAMETER],
        responses={200: SalesPurchaseReportSerializer, 400: dict, 403: dict},
    )
    def get(self, request):
        return super().get(request)
