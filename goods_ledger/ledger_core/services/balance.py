from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from ..models import Account, Payment, Receipt
from ..money import ZERO, money_sum, to_money
from .access import Capability


# ----------------------------
# Balance calculator (pure)
# ----------------------------
@dataclass(frozen=True)
class ReceiptBalance:
    total: Decimal
    settled: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class AccountBalance:
    """
    Net position with one trading partner.
    Values are not clamped: a negative to_collect / to_pay means the partner
    (or we) paid ahead of the receipts, which is allowed at account level.
    """
    account_id: int
    account_name: str
    total_goods_in: Decimal
    total_goods_out: Decimal
    total_payments_in: Decimal
    total_payments_out: Decimal
    to_collect: Decimal  # goods out - payments in (owed to us)
    to_pay: Decimal  # goods in - payments out (owed by us)

    @property
    def is_settled_to_collect(self):
        return self.to_collect <= ZERO

    @property
    def is_settled_to_pay(self):
        return self.to_pay <= ZERO


def receipt_balance(receipt_total, payments: Iterable, exclude_payment_id=None) -> ReceiptBalance:
    """
    {total, settled, remaining} for one receipt.
    `exclude_payment_id` leaves out the payment being edited, so its old
    amount does not count against its new one.
    """
    total = to_money(receipt_total)
    settled = money_sum(
        p.amount for p in payments
        if exclude_payment_id is None or p.pk != exclude_payment_id
    )
    return ReceiptBalance(total=total, settled=settled, remaining=total - settled)


def account_balance(account, inbound_receipts, outbound_receipts,
                    inbound_payments, outbound_payments) -> AccountBalance:
    goods_in = money_sum(r.total for r in inbound_receipts)
    goods_out = money_sum(r.total for r in outbound_receipts)
    payments_in = money_sum(p.amount for p in inbound_payments)
    payments_out = money_sum(p.amount for p in outbound_payments)
    return AccountBalance(
        account_id=account.pk,
        account_name=account.name,
        total_goods_in=goods_in,
        total_goods_out=goods_out,
        total_payments_in=payments_in,
        total_payments_out=payments_out,
        to_collect=goods_out - payments_in,
        to_pay=goods_in - payments_out,
    )


# ----------------------------
# Read-only queries
# ----------------------------
# Advisory reads: no locks, mutations re-check everything themselves.
def get_receipt_balance(receipt_id, *, capability: Capability,
                        exclude_payment_id: Optional[int] = None) -> ReceiptBalance:
    capability.require("read")
    receipt = Receipt.objects.get(pk=receipt_id)
    return receipt_balance(
        receipt.total, receipt.payments.all(), exclude_payment_id=exclude_payment_id
    )


def _balance_for(account):
    receipts = Receipt.objects.for_account(account)
    payments = Payment.objects.for_account(account).select_related("receipt")
    return account_balance(
        account,
        inbound_receipts=receipts.inbound(),
        outbound_receipts=receipts.outbound(),
        inbound_payments=payments.incoming(),
        outbound_payments=payments.outgoing(),
    )


def get_account_balance(account_id, *, capability: Capability) -> AccountBalance:
    capability.require("read")
    return _balance_for(Account.objects.get(pk=account_id))


def list_account_balances(*, capability: Capability) -> List[AccountBalance]:
    capability.require("read")
    return [_balance_for(account) for account in Account.objects.all()]
