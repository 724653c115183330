from django.core.exceptions import ValidationError
from django.db.models.signals import post_save, pre_delete
from django.dispatch import receiver

from .models import (Account, Customer, CustomerPrepayment, JournalEntry,
                     JournalLine, PrepaymentApplication)

"""Block deletion if account has ever been used in a journal line."""


@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_journal_lines(sender, instance, **kwargs):
    if JournalLine.objects.filter(account=instance).exists():
        raise ValidationError("Cannot delete account used in journal lines.")


"""Posted journals are immutable: corrections go through a reversing entry."""


@receiver(pre_delete, sender=JournalEntry)
def prevent_delete_journal_entry(sender, instance, **kwargs):
    raise ValidationError("Journal entries cannot be deleted; post a reversal.")


@receiver(pre_delete, sender=JournalLine)
def prevent_delete_journal_line(sender, instance, **kwargs):
    raise ValidationError("Journal lines cannot be deleted.")


"""The wallet history is append-only."""


@receiver(pre_delete, sender=PrepaymentApplication)
def prevent_delete_prepayment_application(sender, instance, **kwargs):
    raise ValidationError(
        "Prepayment applications cannot be deleted; reverse them instead.")


@receiver(pre_delete, sender=CustomerPrepayment)
def prevent_delete_used_prepayment(sender, instance, **kwargs):
    if instance.applications.exists():
        raise ValidationError("Cannot delete a prepayment that has been applied.")


"""
    Keep per-customer sub-accounts (1101-NNNNNN, 2103-NNNNNN) named after
    the customer and active only while the customer is.
    Balances are never touched here.
"""


@receiver(post_save, sender=Customer)
def sync_customer_sub_accounts(sender, instance, created, raw=False,
                              update_fields=None, **kwargs):
    if created or raw:
        return
    # balance-only saves (outstanding_balance) cannot affect the accounts
    if update_fields is not None and not {"name", "status"} & set(update_fields):
        return
    from .services.accounts import sync_customer_accounts

    sync_customer_accounts(instance)
