from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import ReceiptLine
from .services.inventory import recompute_item

"""
    Keep the inventory projection in step with receipt lines.
    Receivers run inside the transaction that saved / deleted the line,
    so the projection commits (or rolls back) together with the receipt.
"""


@receiver((post_save, post_delete), sender=ReceiptLine)
def receipt_line_changed(sender, instance, **kwargs):
    recompute_item(instance.item_name)
