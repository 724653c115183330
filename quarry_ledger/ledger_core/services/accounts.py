"""
System accounts and per-customer sub-accounts.

System accounts are looked up by the codes in settings.LEDGER["SYSTEM_ACCOUNTS"].
There are no fallback ids: a missing or inactive account is a configuration
error and raises MissingSystemAccountError.
"""
import logging

from django.db import IntegrityError, transaction

from ..conf import ledger_setting
from ..exceptions import MissingSystemAccountError
from ..models import Account

logger = logging.getLogger(__name__)

# key in SYSTEM_ACCOUNTS → account-name prefix for the customer's sub-account
CUSTOMER_SUB_ACCOUNTS = {
    "receivable": "Accounts Receivable",
    "prepayment": "Customer Prepayments",
}


def get_system_account(key):
    codes = ledger_setting("SYSTEM_ACCOUNTS")
    if key not in codes:
        raise MissingSystemAccountError(
            f"LEDGER['SYSTEM_ACCOUNTS'] has no entry for '{key}'.")
    account = Account.objects.active().filter(code=codes[key]).first()
    if account is None:
        raise MissingSystemAccountError(
            f"System account '{key}' (code {codes[key]}) is missing or inactive.")
    return account


def missing_system_accounts():
    """[(key, code, "missing" | "inactive"), ...] for every unusable system account."""
    codes = ledger_setting("SYSTEM_ACCOUNTS")
    found = dict(
        Account.objects.filter(code__in=codes.values()).values_list("code", "is_active")
    )
    problems = []
    for key, code in sorted(codes.items()):
        if code not in found:
            problems.append((key, code, "missing"))
        elif not found[code]:
            problems.append((key, code, "inactive"))
    return problems


def validate_system_accounts():
    """Fail fast when any configured system account is unusable."""
    problems = missing_system_accounts()
    if problems:
        detail = ", ".join(f"{key}={code} ({problem})" for key, code, problem in problems)
        raise MissingSystemAccountError(f"System accounts not usable: {detail}")


# ----------------------------
# Per-customer sub-accounts
# ----------------------------
def customer_sub_account_code(base_code, customer_id):
    return f"{base_code}-{customer_id:06d}"


def _sync_sub_account(account, customer, label):
    """Refresh name and active flag only; the balance is left alone."""
    name = f"{label} - {customer.name}"
    changed = []
    if account.name != name:
        account.name = name
        changed.append("name")
    if account.is_active != customer.is_active:
        account.is_active = customer.is_active
        changed.append("is_active")
    if changed:
        account.save(update_fields=changed + ["updated_at"])
    return account


def _ensure_sub_account(customer, key):
    label = CUSTOMER_SUB_ACCOUNTS[key]
    base = get_system_account(key)
    code = customer_sub_account_code(base.code, customer.pk)

    account = Account.objects.filter(code=code).first()
    if account is not None:
        return _sync_sub_account(account, customer, label)

    try:
        with transaction.atomic():
            account = Account.objects.create(
                code=code,
                name=f"{label} - {customer.name}",
                category=base.category,
                subtype=base.subtype,
                parent=base,
                is_active=customer.is_active,
            )
    except IntegrityError:
        # created concurrently
        account = Account.objects.get(code=code)
        return _sync_sub_account(account, customer, label)

    logger.info("Created %s for customer %s", code, customer.pk)
    return account


def ensure_customer_receivable_account(customer):
    return _ensure_sub_account(customer, "receivable")


def ensure_customer_prepayment_account(customer):
    return _ensure_sub_account(customer, "prepayment")


def sync_customer_accounts(customer):
    """Refresh the customer's existing sub-accounts; never creates any."""
    codes = ledger_setting("SYSTEM_ACCOUNTS")
    for key, label in CUSTOMER_SUB_ACCOUNTS.items():
        code = customer_sub_account_code(codes[key], customer.pk)
        account = Account.objects.filter(code=code).first()
        if account is not None:
            _sync_sub_account(account, customer, label)
