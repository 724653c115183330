from django.urls import path

from . import views

app_name = "ledger_core"

urlpatterns = [
    path("customers/<int:customer_id>/credit-check/", views.credit_check_view, name="credit-check"),
    path("customers/<int:customer_id>/wallet/", views.wallet_view, name="wallet"),
    path("customers/<int:customer_id>/prepayments/", views.create_prepayment_view, name="prepayment-create"),
    path("prepayments/<int:prepayment_id>/apply/", views.apply_prepayment_view, name="prepayment-apply"),
    path("applications/<int:application_id>/reverse/", views.reverse_application_view, name="application-reverse"),
    path("prepayments/reconcile/", views.reconcile_view, name="prepayment-reconcile"),
    path("balances/recompute/", views.recompute_balances_view, name="balances-recompute"),
    path("fiscal-years/", views.create_fiscal_year_view, name="fiscal-year-create"),
    path("fiscal-years/<int:fiscal_year_id>/set-current/", views.set_current_fiscal_year_view, name="fiscal-year-set-current"),
    path("fiscal-years/<int:fiscal_year_id>/close/", views.close_fiscal_year_view, name="fiscal-year-close"),
]
