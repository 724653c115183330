from io import StringIO

from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from ..checks import check_posting_policy, check_system_accounts
from ..conf import ledger_setting
from ..exceptions import MissingSystemAccountError
from ..models import Account
from ..services import get_system_account, validate_system_accounts
from .base import LedgerFixtureMixin


class SystemAccountConfigTests(LedgerFixtureMixin, TestCase):

    def test_seeded_chart_satisfies_configuration(self):
        validate_system_accounts()
        self.assertEqual(check_system_accounts(databases=["default"]), [])
        self.assertEqual(get_system_account("cash").code, "1001")

    def test_missing_or_inactive_account_fails_fast(self):
        Account.objects.filter(code="2103").update(is_active=False)

        with self.assertRaises(MissingSystemAccountError) as ctx:
            validate_system_accounts()
        self.assertIsInstance(ctx.exception, ImproperlyConfigured)
        self.assertIn("prepayment=2103 (inactive)", str(ctx.exception))

        errors = check_system_accounts(databases=["default"])
        self.assertEqual([e.id for e in errors], ["ledger_core.E001"])

    @override_settings(LEDGER={"SYSTEM_ACCOUNTS": {"cash": "1999"}})
    def test_remapped_code_that_does_not_exist(self):
        # other keys keep their defaults
        self.assertEqual(ledger_setting("SYSTEM_ACCOUNTS")["sales"], "4001")
        with self.assertRaises(MissingSystemAccountError):
            get_system_account("cash")

    def test_unknown_key_has_no_fallback(self):
        with self.assertRaises(MissingSystemAccountError):
            get_system_account("petty_cash")

    def test_database_check_is_skipped_without_databases(self):
        Account.objects.filter(code="1001").update(is_active=False)
        self.assertEqual(check_system_accounts(databases=None), [])

    @override_settings(LEDGER={"AUXILIARY_POSTING_POLICY": "sometimes"})
    def test_unknown_posting_policy_is_reported(self):
        self.assertEqual([e.id for e in check_posting_policy()], ["ledger_core.E003"])

    def test_check_ledger_config_command(self):
        out = StringIO()
        call_command("check_ledger_config", stdout=out)
        self.assertIn("Ledger configuration OK", out.getvalue())

        Account.objects.filter(code="6001").update(is_active=False)
        with self.assertRaises(CommandError):
            call_command("check_ledger_config", stdout=StringIO(), stderr=StringIO())


class SeedCommandTests(TestCase):

    def test_seed_is_idempotent(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        count = Account.objects.count()
        call_command("seed_chart_of_accounts", stdout=StringIO())

        self.assertEqual(Account.objects.count(), count)
        self.assertEqual(Account.objects.get(code="2103").category, "liability")
        # input VAT sits in the 2xxx range but is a recoverable asset
        self.assertEqual(Account.objects.get(code="2102").category, "asset")

    def test_empty_chart_only_warns(self):
        self.assertEqual(
            [e.id for e in check_system_accounts(databases=["default"])],
            ["ledger_core.W001"],
        )
