import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from .exceptions import (DuplicateNumberError, MissingSystemAccountError,
                         StateConflictError)
from .services import (apply_prepayment, close_fiscal_year,
                       create_fiscal_year, create_prepayment, customer_wallet,
                       evaluate_credit, recompute_all_balances,
                       recompute_balance, reconcile_prepayments,
                       reverse_prepayment_application,
                       set_current_fiscal_year)

logger = logging.getLogger(__name__)


def _payload(request):
    """JSON body if sent as JSON, otherwise form data."""
    if request.content_type == "application/json":
        try:
            return json.loads(request.body or b"{}")
        except json.JSONDecodeError:
            raise ValidationError("Request body is not valid JSON.", code="bad_json")
    return request.POST


def _decimal(value, name):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError):
        amount = None
    if amount is None or not amount.is_finite():
        raise ValidationError(f"'{name}' must be a number.", code="invalid_amount")
    return amount


def _date(value, name, required=True):
    if not value:
        if required:
            raise ValidationError(f"'{name}' is required.", code="required")
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{name}' must be an ISO date.", code="invalid_date")


def _int(value, name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{name}' must be an integer.", code="invalid")


def _error(exc, status):
    code = getattr(exc, "code", None) or "error"
    messages = getattr(exc, "messages", None) or [str(exc)]
    return JsonResponse({"ok": False, "code": code, "error": " ".join(messages)}, status=status)


def ledger_endpoint(view):
    """Translate ledger exceptions into JSON error responses."""

    @wraps(view)
    def wrapped(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ObjectDoesNotExist as e:
            return _error(e, 404)
        except StateConflictError as e:  # before ValidationError: it is one
            return _error(e, 409)
        except ValidationError as e:
            return _error(e, 400)
        except DuplicateNumberError as e:
            logger.error("Number allocation exhausted: %s", e)
            return _error(e, 503)
        except MissingSystemAccountError as e:
            logger.error("Ledger misconfigured: %s", e)
            return _error(e, 503)

    return wrapped


# ---------- Credit & wallet ----------
@require_GET
@ledger_endpoint
def credit_check_view(request, customer_id):
    additional = _decimal(request.GET.get("additional_amount", "0"), "additional_amount")
    evaluation = evaluate_credit(customer_id, additional)
    return JsonResponse({"ok": True, **evaluation.as_dict()})


@require_GET
@ledger_endpoint
def wallet_view(request, customer_id):
    prepayments, balance = customer_wallet(customer_id)
    return JsonResponse({
        "ok": True,
        "balance": str(balance),
        "prepayments": [
            {
                "id": p.pk,
                "number": p.number,
                "date": p.date.isoformat(),
                "amount": str(p.amount),
                "used_amount": str(p.used_amount),
                "remaining": str(p.remaining_amount),
            }
            for p in prepayments
        ],
    })


# ---------- Prepayments ----------
@require_POST
@ledger_endpoint
def create_prepayment_view(request, customer_id):
    data = _payload(request)
    prepayment = create_prepayment(
        customer_id,
        _decimal(data.get("amount"), "amount"),
        _date(data.get("date"), "date"),
        method=data.get("method", ""),
        reference=data.get("reference", ""),
        notes=data.get("notes", ""),
        posted_by=request.user if request.user.is_authenticated else None,
    )
    return JsonResponse({
        "ok": True,
        "id": prepayment.pk,
        "number": prepayment.number,
        "journal_entry": prepayment.journal_entry.number if prepayment.journal_entry else None,
    }, status=201)


@require_POST
@ledger_endpoint
def apply_prepayment_view(request, prepayment_id):
    data = _payload(request)
    application = apply_prepayment(
        prepayment_id,
        data.get("invoice_id"),
        _decimal(data.get("amount"), "amount"),
        applied_date=_date(data.get("applied_date"), "applied_date", required=False),
        description=data.get("description", ""),
    )
    return JsonResponse({
        "ok": True,
        "id": application.pk,
        "prepayment_status": application.prepayment.status,
        "invoice_status": application.invoice.status,
    }, status=201)


@require_POST
@ledger_endpoint
def reverse_application_view(request, application_id):
    reversal = reverse_prepayment_application(application_id)
    return JsonResponse({"ok": True, "id": reversal.pk, "amount": str(reversal.applied_amount)})


@require_POST
@ledger_endpoint
def reconcile_view(request):
    customer_id = _payload(request).get("customer_id")
    corrected = reconcile_prepayments(_int(customer_id, "customer_id") if customer_id else None)
    return JsonResponse({"ok": True, "corrected": corrected})


# ---------- Balances ----------
@require_POST
@ledger_endpoint
def recompute_balances_view(request):
    account_id = _payload(request).get("account_id")
    if account_id:
        balance = recompute_balance(_int(account_id, "account_id"))
        if balance is None:
            return JsonResponse({"ok": False, "error": "Account not found."}, status=404)
        return JsonResponse({"ok": True, "balance": str(balance)})
    return JsonResponse({"ok": True, "accounts": recompute_all_balances()})


# ---------- Fiscal years ----------
def _fiscal_year_json(year, status=200):
    return JsonResponse({
        "ok": True,
        "id": year.pk,
        "code": year.code,
        "start_date": year.start_date.isoformat(),
        "end_date": year.end_date.isoformat(),
        "is_current": year.is_current,
        "is_closed": year.is_closed,
    }, status=status)


@require_POST
@ledger_endpoint
def create_fiscal_year_view(request):
    data = _payload(request)
    year = create_fiscal_year(
        data.get("code"),
        _date(data.get("start_date"), "start_date"),
        _date(data.get("end_date"), "end_date"),
    )
    return _fiscal_year_json(year, status=201)


@require_POST
@ledger_endpoint
def set_current_fiscal_year_view(request, fiscal_year_id):
    return _fiscal_year_json(set_current_fiscal_year(fiscal_year_id))


@require_POST
@ledger_endpoint
def close_fiscal_year_view(request, fiscal_year_id):
    return _fiscal_year_json(close_fiscal_year(fiscal_year_id))
