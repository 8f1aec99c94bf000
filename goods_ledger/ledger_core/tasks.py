import logging

from celery import shared_task
from django.db import transaction

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def rebuild_inventory_projection():
    """
    Recompute every InventoryLine from the receipt lines (repair job).
    Rows for items no receipt mentions any more are removed.
    Returns the number of items rebuilt.
    """
    # import lazily to avoid circular imports at module import time
    from .models import InventoryLine, ReceiptLine
    from .services.inventory import lock_inventory, recompute_item

    with transaction.atomic():
        names = set(ReceiptLine.objects.values_list("item_name", flat=True).distinct())
        # hold the row locks so no receipt mutation interleaves with the rebuild
        lock_inventory(names | set(InventoryLine.objects.values_list("item_name", flat=True)))

        stale = InventoryLine.objects.exclude(item_name__in=names)
        removed, _ = stale.delete()
        for name in sorted(names):
            recompute_item(name)

    logger.info("inventory projection rebuilt: %d items, %d stale rows removed",
                len(names), removed)
    return len(names)
