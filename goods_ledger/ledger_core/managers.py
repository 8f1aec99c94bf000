from decimal import Decimal
from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce

# -----------------------------------------
# Direction-aware querysets for receipts
# and the payments that settle them
# -----------------------------------------
INBOUND = "inbound"
OUTBOUND = "outbound"

ZERO_MONEY = models.Value(Decimal("0.00"), output_field=models.DecimalField(
    max_digits=18, decimal_places=2))


class ReceiptQuerySet(models.QuerySet):
    def inbound(self):  # goods in
        return self.filter(direction=INBOUND)

    def outbound(self):  # goods out
        return self.filter(direction=OUTBOUND)

    def for_account(self, account):
        return self.filter(account=account)

    def total_amount(self):
        return self.aggregate(total=Coalesce(Sum("total"), ZERO_MONEY))["total"]

    # Enables query:
    # Receipt.objects.for_account(acc).outbound().total_amount()


class ReceiptManager(models.Manager.from_queryset(ReceiptQuerySet)):
    def locked(self, pk):
        """
        Row-lock a receipt until the surrounding transaction ends.
        Every payment mutation takes this lock first, so payments of one
        receipt are admitted strictly one after another.
        """
        return self.get_queryset().select_for_update().get(pk=pk)


class PaymentQuerySet(models.QuerySet):
    def incoming(self):  # payments in settle goods-out receipts
        return self.filter(receipt__direction=OUTBOUND)

    def outgoing(self):  # payments out settle goods-in receipts
        return self.filter(receipt__direction=INBOUND)

    def for_account(self, account):
        return self.filter(account=account)

    def for_receipt(self, receipt):
        return self.filter(receipt=receipt)

    def total_amount(self):
        return self.aggregate(total=Coalesce(Sum("amount"), ZERO_MONEY))["total"]


class PaymentManager(models.Manager.from_queryset(PaymentQuerySet)):
    def settled_total(self, receipt, exclude_payment_id=None):
        """Sum of payments on a receipt, optionally leaving one out (the one being edited)."""
        qs = self.get_queryset().for_receipt(receipt)
        if exclude_payment_id is not None:
            qs = qs.exclude(pk=exclude_payment_id)
        return qs.total_amount()
