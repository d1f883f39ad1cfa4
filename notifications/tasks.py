import logging

from celery import shared_task
from django.db import transaction

from .models import NotificationLedger
from .pruning import prune_orphans
from .store import LedgerStore

logger = logging.getLogger(__name__)


@shared_task
def prune_orphaned_notifications_task():
    store = LedgerStore()
    total = 0
    for user_id in NotificationLedger.objects.order_by("user_id").values_list("user_id", flat=True):
        with transaction.atomic():
            ledger = store.load_ledger(user_id)
            pruned = prune_orphans(ledger)
            if pruned:
                store.save_ledger(user_id, ledger)
                total += pruned
    logger.info(f"Pruned {total} orphaned notifications")
    return total
