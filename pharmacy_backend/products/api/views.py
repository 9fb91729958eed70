# products/api/views.py

"""
POST /api/products/<uuid>/purchase/

Stock intake from a supplier. Adds quantity and books the purchase
debit in the cash book. Requires products.change_product.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.errors import service_error_response
from accounting.api.serializers import LedgerEntrySerializer
from accounting.services.exceptions import LedgerServiceError
from products.api.serializers import ProductSerializer, StockPurchaseSerializer
from products.services.stock import purchase_stock


class StockPurchaseView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = StockPurchaseSerializer

    @extend_schema(
        tags=["products"],
        request=StockPurchaseSerializer,
        responses={201: dict, 400: dict, 403: dict, 404: dict},
    )
    def post(self, request, pk, *args, **kwargs):
        if not request.user.has_perm("products.change_product"):
            return Response(
                {"detail": "You do not have permission to receive stock."},
                status=status.HTTP_403_FORBIDDEN,
            )

        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            product, entry = purchase_stock(
                product_id=pk,
                qty=data["qty"],
                unit_cost=data["unit_cost"],
                method=data["method"],
                supplier=data.get("supplier", ""),
                reference=data.get("reference", ""),
                date=data.get("date"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(
            {
                "product": ProductSerializer(product).data,
                "ledger_entry": LedgerEntrySerializer(entry).data,
            },
            status=status.HTTP_201_CREATED,
        )
