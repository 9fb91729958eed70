# sales/api/urls.py

"""
SALES API URLS

Provides:
    POST /api/sales/orders/                 create order
    POST /api/sales/orders/preview/         totals preview (no writes)
    GET  /api/sales/orders/<uuid>/          order detail
    POST /api/sales/orders/<uuid>/payment/  payment against an open order
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.viewsets.order import OrderViewSet

router = DefaultRouter()
router.register(r"orders", OrderViewSet, basename="orders")

urlpatterns = [
    path("", include(router.urls)),
]
