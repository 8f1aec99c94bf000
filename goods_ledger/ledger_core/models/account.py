from django.db import models

# Informational only, balances never depend on it
ACCOUNT_KIND_CHOICES = [
    ("creditor", "Creditor"),  # we mostly buy from them (goods in)
    ("debitor", "Debitor"),  # we mostly sell to them (goods out)
]


# ---------- Account (trading partner) ----------
class Account(models.Model):
    """
    A supplier or customer the business trades goods with.
    Owns receipts and payments in both directions; has no stored balance,
    see services.balance for the derived position.
    """

    name = models.CharField(max_length=200, unique=True)
    kind = models.CharField(
        max_length=10, choices=ACCOUNT_KIND_CHOICES, default="debitor"
    )

    # Free-text contact fields
    contact_info = models.CharField(max_length=200, blank=True, default="")
    address = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
