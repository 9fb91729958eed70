# products/api/urls.py

from django.urls import path

from products.api.views import StockPurchaseView

urlpatterns = [
    path("<uuid:pk>/purchase/", StockPurchaseView.as_view(), name="product-purchase"),
]
