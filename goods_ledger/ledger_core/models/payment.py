from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import PaymentManager
from .account import Account
from .receipt import OUTBOUND, Receipt

PAYMENT_MODE_CHOICES = [
    ("Cash", "Cash"),
    ("UPI", "UPI"),
    ("Bank Transfer", "Bank Transfer"),
    ("Cheque", "Cheque"),
    ("Card", "Card"),
]

PAYMENT_IN = "in"
PAYMENT_OUT = "out"


# ---------- Payment ----------
# Money settling exactly one receipt:
# goods-out receipts are settled by payments in,
# goods-in receipts by payments out.
class Payment(models.Model):
    receipt = models.ForeignKey(
        Receipt,
        # a receipt with payments cannot be deleted
        on_delete=models.PROTECT,
        related_name="payments",
    )
    # Must equal receipt.account
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="payments"
    )

    amount = models.DecimalField(max_digits=18, decimal_places=2)
    date = models.DateField()
    mode = models.CharField(
        max_length=20, choices=PAYMENT_MODE_CHOICES, default="Cash"
    )
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PaymentManager()

    class Meta:
        ordering = ["date", "id"]
        indexes = [
            models.Index(fields=["account"], name="payment_account_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_amount_positive",
            ),
        ]

    def __str__(self):
        return f"Payment {self.direction} #{self.pk}: {self.amount}"

    @property
    def direction(self):
        # derived from the receipt it settles, never stored
        return PAYMENT_IN if self.receipt.direction == OUTBOUND else PAYMENT_OUT

    def clean(self):
        if self.amount is not None and self.amount <= Decimal("0.00"):
            raise ValidationError("Payment amount must be greater than 0")
        # Tenant-style safety check: payment and receipt share one account
        if self.receipt_id and self.account_id:
            receipt_account_id = (
                Receipt.objects.only("account_id").get(pk=self.receipt_id).account_id
            )
            if receipt_account_id != self.account_id:
                raise ValidationError(
                    "Payment.account must match Receipt.account")

    def save(self, *args, **kwargs):
        self.full_clean()  # backstop for the checks done by services.payment
        return super().save(*args, **kwargs)
