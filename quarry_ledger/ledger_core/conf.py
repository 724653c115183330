from django.conf import settings

# Defaults for settings.LEDGER; a project only needs to override what differs
DEFAULTS = {
    "SYSTEM_ACCOUNTS": {
        "cash": "1001",
        "receivable": "1101",
        "payable": "2001",
        "vat_output": "2101",
        "prepayment": "2103",
        "sales": "4001",
        "salary_expense": "6001",
        "salaries_payable": "2201",
        "paye_payable": "2202",
        "pension_payable": "2203",
        "nhis_payable": "2204",
        "nhf_payable": "2205",
    },
    "AUXILIARY_POSTING_POLICY": "best_effort",
    "NUMBER_RETRY_ATTEMPTS": 3,
    "DEFAULT_VAT_RATE": "7.5",
}

POSTING_POLICIES = ("best_effort", "strict")


def ledger_setting(name):
    """Return one LEDGER option, read fresh so override_settings() applies."""
    configured = getattr(settings, "LEDGER", {}) or {}
    if name == "SYSTEM_ACCOUNTS":
        # merge so a project can remap a single code
        merged = dict(DEFAULTS["SYSTEM_ACCOUNTS"])
        merged.update(configured.get("SYSTEM_ACCOUNTS", {}))
        return merged
    return configured.get(name, DEFAULTS[name])


def system_account_code(key):
    return ledger_setting("SYSTEM_ACCOUNTS")[key]


def posting_policy():
    return ledger_setting("AUXILIARY_POSTING_POLICY")
