from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import ReceiptManager
from ..money import multiply_money
from .account import Account

INBOUND = "inbound"
OUTBOUND = "outbound"

DIRECTION_CHOICES = [
    (INBOUND, "Goods in"),  # stock received from the account
    (OUTBOUND, "Goods out"),  # stock issued to the account
]


# ---------- Receipts / ReceiptLines ----------

# Header of a goods-in or goods-out document
class Receipt(models.Model):
    # Owning trading partner
    account = models.ForeignKey(
        Account,
        # an account with receipts cannot be deleted
        on_delete=models.PROTECT,
        related_name="receipts",
    )

    # Fixed at creation: moving stock the other way is a new receipt
    direction = models.CharField(max_length=10, choices=DIRECTION_CHOICES)

    date = models.DateField()
    notes = models.TextField(blank=True, default="")

    # Sum of rounded line totals, always recomputed server-side
    total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReceiptManager()

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["account", "direction"], name="receipt_account_direction_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="receipt_total_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.get_direction_display()} #{self.pk} ({self.account})"

    @property
    def is_outbound(self):
        return self.direction == OUTBOUND

    def clean(self):
        # Direction is immutable once stored
        if self.pk:
            orig = (
                Receipt.objects.filter(pk=self.pk)
                .values_list("direction", flat=True)
                .first()
            )
            if orig is not None and orig != self.direction:
                raise ValidationError("Cannot change the direction of a receipt.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# Detail line: one item moved on the receipt
class ReceiptLine(models.Model):
    receipt = models.ForeignKey(
        Receipt, on_delete=models.CASCADE, related_name="lines"
    )
    # Keeps the order the items were entered in
    position = models.PositiveIntegerField(default=0)

    item_name = models.CharField(max_length=200)
    quantity = models.DecimalField(max_digits=14, decimal_places=4)
    unit = models.CharField(max_length=32, blank=True, default="")
    unit_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00")
    )
    # quantity × unit_price rounded to cents
    line_total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        ordering = ["receipt", "position", "id"]
        indexes = [
            models.Index(fields=["item_name"], name="receipt_line_item_name_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=Decimal("0.01")) &
                models.Q(unit_price__gte=0),
                name="receipt_line_valid_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.item_name} × {self.quantity}"

    """ Ensure no line with a stale line_total can ever be persisted """

    def save(self, *args, **kwargs):
        self.line_total = multiply_money(self.quantity, self.unit_price)
        return super().save(*args, **kwargs)
