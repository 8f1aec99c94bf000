from django.core.exceptions import ValidationError

from ..exceptions import (CrossAccountMismatchError, HasSettledPaymentsError,
                          InvalidLineItemError, TotalBelowSettledError)
from ..models import Account, Payment, Receipt, ReceiptLine
from ..models.receipt import INBOUND, OUTBOUND
from .access import Capability
from .inventory import guard_movement, lock_inventory
from .totals import LineItem, coerce_items, quantities_by_item, receipt_total
from .transactions import ledger_transaction


# ----------------------------
# Helpers
# ----------------------------
def _prepare_items(items):
    """Normalise and total the submitted lines before any lock is taken."""
    line_items = coerce_items(items)
    if not line_items:
        raise InvalidLineItemError(
            "At least one item is required", position=None, item_name=None)
    return line_items, receipt_total(line_items)


def _write_lines(receipt, line_items):
    # one save per line so the ReceiptLine receivers refresh the projection
    for position, item in enumerate(line_items):
        ReceiptLine.objects.create(
            receipt=receipt,
            position=position,
            item_name=item.item_name,
            quantity=item.quantity,
            unit=item.unit,
            unit_price=item.unit_price,
        )


def _replace_lines(receipt, line_items):
    """
    Wholesale replace, never a merge. The projection is refreshed after
    every line write and `available` may not dip below zero even
    transiently: goods out drops its old lines first, goods in adds its
    new lines first.
    """
    old_ids = list(receipt.lines.values_list("pk", flat=True))
    if receipt.is_outbound:
        ReceiptLine.objects.filter(pk__in=old_ids).delete()
        _write_lines(receipt, line_items)
    else:
        _write_lines(receipt, line_items)
        ReceiptLine.objects.filter(pk__in=old_ids).delete()


def _stored_quantities(receipt):
    return quantities_by_item(LineItem.from_line(line) for line in receipt.lines.all())


# ----------------------------
# Receipt workflows
# ----------------------------
def create_receipt(direction, account_id, date, notes="", items=(), *, capability: Capability):
    """
    Create a goods-in or goods-out receipt with its lines.
    Goods out is checked against locked inventory rows for every item,
    and the whole receipt is refused if any single item is short.
    """
    capability.require("create")
    if direction not in (INBOUND, OUTBOUND):
        raise ValidationError(f"Unknown receipt direction {direction!r}")
    line_items, total = _prepare_items(items)

    with ledger_transaction("create_receipt", direction=direction, account_id=account_id) as mutation:
        account = Account.objects.get(pk=account_id)

        requested = quantities_by_item(line_items)
        # lock inbound items too: their projection rows are rewritten below
        stock = lock_inventory(requested)
        guard_movement(direction, {}, requested, stock)

        mutation.committing()
        receipt = Receipt.objects.create(
            account=account,
            direction=direction,
            date=date,
            notes=notes or "",
            total=total,
        )
        _write_lines(receipt, line_items)
        mutation.context["receipt_id"] = receipt.pk
    return receipt


def update_receipt(receipt_id, *, capability: Capability, items=None,
                   account_id=None, date=None, notes=None):
    """
    Edit a receipt. `items`, when given, replaces the whole line list
    (old lines deleted, new ones inserted) in the same transaction that
    re-checks stock, so the receipt's own previous quantities are handed
    back before the new ones are measured.
    """
    capability.require("update")
    line_items, new_total = _prepare_items(items) if items is not None else (None, None)

    with ledger_transaction("update_receipt", receipt_id=receipt_id) as mutation:
        receipt = Receipt.objects.locked(receipt_id)
        payments = Payment.objects.for_receipt(receipt)

        if account_id is not None and str(account_id) != str(receipt.account_id):
            account = Account.objects.get(pk=account_id)
            # payments stay with their account, so the receipt cannot move
            if payments.exists():
                raise CrossAccountMismatchError(
                    "Cannot move a receipt with payments to another account",
                    receipt_id=receipt.pk,
                    expected_account_id=receipt.account_id,
                    account_id=account_id,
                )
            receipt.account = account

        if line_items is not None:
            old = _stored_quantities(receipt)
            new = quantities_by_item(line_items)
            stock = lock_inventory(set(old) | set(new))
            guard_movement(receipt.direction, old, new, stock)

            settled = payments.total_amount()
            if new_total < settled:
                raise TotalBelowSettledError(
                    f"Receipt total {new_total} would be below the "
                    f"{settled} already paid",
                    receipt_id=receipt.pk,
                    total=new_total,
                    settled=settled,
                )

        if date is not None:
            receipt.date = date
        if notes is not None:
            receipt.notes = notes

        mutation.committing()
        if line_items is not None:
            _replace_lines(receipt, line_items)
            receipt.total = new_total
        receipt.save()
    return receipt


def delete_receipt(receipt_id, *, capability: Capability):
    """
    Delete a receipt and its lines. Blocked while payments reference it:
    those must be deleted first.
    """
    capability.require("delete")

    with ledger_transaction("delete_receipt", receipt_id=receipt_id) as mutation:
        receipt = Receipt.objects.locked(receipt_id)

        payments = Payment.objects.for_receipt(receipt)
        payment_count = payments.count()
        if payment_count:
            raise HasSettledPaymentsError(
                "Cannot delete a receipt with applied payments.",
                receipt_id=receipt.pk,
                payment_count=payment_count,
                settled=payments.total_amount(),
            )

        old = _stored_quantities(receipt)
        stock = lock_inventory(old)
        # removing goods in that were already issued would oversell
        guard_movement(receipt.direction, old, {}, stock)

        mutation.committing()
        receipt.delete()  # lines cascade, receivers refresh the projection
