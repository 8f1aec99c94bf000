from decimal import Decimal
from django.db import models


# ---------- InventoryLine (stock projection) ----------
class InventoryLine(models.Model):
    """
    Per-item stock derived from receipt lines:
    available = quantity_in (goods in) - quantity_out (goods out).
    Rows are rewritten by the ReceiptLine receivers in signals.py, inside
    the transaction that changed the lines. Nothing else writes here.
    """

    item_name = models.CharField(max_length=200, unique=True)
    quantity_in = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0")
    )
    quantity_out = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0")
    )
    available = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0")
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["item_name"]
        constraints = [
            # Last line of defence against overselling
            models.CheckConstraint(
                condition=models.Q(available__gte=0),
                name="inventory_available_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.item_name}: {self.available}"
