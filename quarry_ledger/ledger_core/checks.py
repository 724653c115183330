from django.core.checks import Error, Tags, Warning, register
from django.db import DatabaseError

from .conf import POSTING_POLICIES, ledger_setting


@register(Tags.database)
def check_system_accounts(app_configs=None, databases=None, **kwargs):
    """Every configured system account must exist and be active.

    Runs with ``manage.py check --database default`` and from
    ``manage.py check_ledger_config``; Django skips database-tagged
    checks otherwise. An empty chart (fresh database) only warns.
    """
    if not databases:
        return []

    from .models import Account
    from .services.accounts import missing_system_accounts

    try:
        if not Account.objects.exists():
            return [
                Warning(
                    "The chart of accounts is empty.",
                    hint="Run `manage.py seed_chart_of_accounts`.",
                    id="ledger_core.W001",
                )
            ]
        missing = missing_system_accounts()
    except DatabaseError as exc:  # tables not migrated yet
        return [
            Warning(
                f"Could not read the chart of accounts: {exc}",
                hint="Run `manage.py migrate` first.",
                id="ledger_core.W002",
            )
        ]

    return [
        Error(
            f"System account '{key}' (code {code}) is {problem}.",
            hint="Run `manage.py seed_chart_of_accounts` or fix settings.LEDGER['SYSTEM_ACCOUNTS'].",
            id="ledger_core.E001",
        )
        for key, code, problem in missing
    ]


@register()
def check_posting_policy(app_configs=None, **kwargs):
    policy = ledger_setting("AUXILIARY_POSTING_POLICY")
    if policy not in POSTING_POLICIES:
        return [
            Error(
                f"Unknown AUXILIARY_POSTING_POLICY {policy!r}.",
                hint=f"Use one of {', '.join(POSTING_POLICIES)}.",
                id="ledger_core.E003",
            )
        ]
    return []
