from ..exceptions import (AmountExceedsRemainingError,
                          CrossAccountMismatchError, InvalidAmountError)
from ..models import Payment, Receipt
from ..money import ZERO, to_exact_money
from .access import Capability
from .balance import receipt_balance
from .transactions import ledger_transaction


# ----------------------------
# Helpers
# ----------------------------
def _positive_amount(value):
    amount = to_exact_money(value)
    if amount <= ZERO:
        raise InvalidAmountError("Amount must be greater than 0", value=value)
    return amount


def _check_account(receipt, account_id):
    if account_id is not None and str(account_id) != str(receipt.account_id):
        raise CrossAccountMismatchError(
            "Payment account must match the receipt's account",
            receipt_id=receipt.pk,
            expected_account_id=receipt.account_id,
            account_id=account_id,
        )


def _check_remaining(receipt, amount, exclude_payment_id=None):
    """
    Authoritative ceiling check. Must run after the receipt row is locked,
    so the payments read here cannot change before commit.
    """
    balance = receipt_balance(
        receipt.total,
        Payment.objects.for_receipt(receipt),
        exclude_payment_id=exclude_payment_id,
    )
    if amount > balance.remaining:
        raise AmountExceedsRemainingError(
            f"Amount cannot exceed remaining amount. "
            f"Remaining: {balance.remaining}, Attempted: {amount}",
            receipt_id=receipt.pk,
            requested=amount,
            remaining=balance.remaining,
        )
    return balance


# ----------------------------
# Payment workflows
# ----------------------------
def create_payment(receipt_id, account_id, amount, date, mode="Cash", notes="",
                   *, capability: Capability):
    """
    Record a payment against one receipt.
    Locks the receipt row, so of two racing payments the second one sees
    the first and is refused if both together would overpay.
    """
    capability.require("create")
    amount = _positive_amount(amount)

    with ledger_transaction("create_payment", receipt_id=receipt_id, amount=str(amount)) as mutation:
        receipt = Receipt.objects.locked(receipt_id)
        _check_account(receipt, account_id)
        _check_remaining(receipt, amount)

        mutation.committing()
        payment = Payment.objects.create(
            receipt=receipt,
            account_id=receipt.account_id,
            amount=amount,
            date=date,
            mode=mode,
            notes=notes or "",
        )
        mutation.context["payment_id"] = payment.pk
    return payment


def update_payment(payment_id, *, capability: Capability, amount=None, receipt_id=None,
                   account_id=None, date=None, mode=None, notes=None):
    """
    Edit a payment, optionally moving it to another receipt.
    The payment's own current amount is left out of `settled`.
    """
    capability.require("update")
    new_amount = _positive_amount(amount) if amount is not None else None

    with ledger_transaction("update_payment", payment_id=payment_id) as mutation:
        payment = Payment.objects.select_for_update().get(pk=payment_id)
        target_id = receipt_id if receipt_id is not None else payment.receipt_id

        # lock old and new receipt in pk order (no deadlock between movers)
        locked = {}
        for pk in sorted({int(payment.receipt_id), int(target_id)}):
            locked[pk] = Receipt.objects.locked(pk)
        receipt = locked[int(target_id)]

        _check_account(
            receipt, account_id if account_id is not None else payment.account_id)
        if new_amount is None:
            new_amount = payment.amount
        _check_remaining(receipt, new_amount, exclude_payment_id=payment.pk)

        mutation.committing()
        payment.receipt = receipt
        payment.account_id = receipt.account_id
        payment.amount = new_amount
        if date is not None:
            payment.date = date
        if mode is not None:
            payment.mode = mode
        if notes is not None:
            payment.notes = notes
        payment.save()
    return payment


def delete_payment(payment_id, *, capability: Capability):
    """Always allowed: it only frees remaining balance on the receipt."""
    capability.require("delete")

    with ledger_transaction("delete_payment", payment_id=payment_id):
        payment = Payment.objects.select_for_update().get(pk=payment_id)
        payment.delete()
