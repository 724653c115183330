import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # queued by `recompute_balances --async`
def recompute_all_balances_task():
    # import services lazily to avoid circular imports at module import time
    from .services import recompute_all_balances

    count = recompute_all_balances()
    logger.info("Recomputed balances for %d account(s)", count)
    return count


@shared_task
def reconcile_prepayments_task(customer_id=None):
    from .services import reconcile_prepayments

    return reconcile_prepayments(customer_id)


@shared_task
def backfill_missing_postings_task():
    from .services import backfill_missing_postings

    return backfill_missing_postings()
