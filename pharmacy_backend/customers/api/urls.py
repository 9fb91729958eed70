# customers/api/urls.py

from django.urls import path

from customers.api.views import (
    CustomerAdvanceView,
    CustomerDebtView,
    CustomerDetailView,
    CustomerOnboardView,
    CustomerPaymentView,
    CustomerReconcileView,
)

urlpatterns = [
    path("", CustomerOnboardView.as_view(), name="customer-onboard"),
    path("<uuid:pk>/", CustomerDetailView.as_view(), name="customer-detail"),
    path("<uuid:pk>/payments/", CustomerPaymentView.as_view(), name="customer-payments"),
    path("<uuid:pk>/advances/", CustomerAdvanceView.as_view(), name="customer-advances"),
    path("<uuid:pk>/debts/", CustomerDebtView.as_view(), name="customer-debts"),
    path("<uuid:pk>/reconcile/", CustomerReconcileView.as_view(), name="customer-reconcile"),
]
