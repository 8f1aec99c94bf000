from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce

from ..exceptions import InsufficientStockError
from ..models import InventoryLine, ReceiptLine
from ..models.receipt import INBOUND, OUTBOUND
from .access import Capability

ZERO_QTY = Decimal("0")


# ----------------------------
# Inventory guard (pure)
# ----------------------------
@dataclass(frozen=True)
class Allow:
    item_name: str
    available: Decimal  # what is left after the movement


def check_availability(item_name, requested_qty, current_available, previous_qty=ZERO_QTY):
    """
    Decide whether `requested_qty` of an item may leave stock.

    `previous_qty` is what the same receipt already took for this item
    before an edit; it is handed back first, so shrinking or re-ordering a
    receipt's own lines is never rejected.
    """
    effective_available = current_available + previous_qty
    if requested_qty > effective_available:
        raise InsufficientStockError(
            f"Insufficient inventory for {item_name}. "
            f"Available: {effective_available}, Required: {requested_qty}",
            item_name=item_name,
            requested=requested_qty,
            available=effective_available,
        )
    return Allow(item_name=item_name, available=effective_available - requested_qty)


def stock_deltas(direction: str, old: Mapping[str, Decimal], new: Mapping[str, Decimal]) -> Dict[str, Decimal]:
    """
    Per item, how much a receipt mutation takes away from `available`.
    Positive values must pass the guard; zero / negative ones only add stock.

    Goods out consumes what it ships (new - old). Goods in consumes what it
    stops receiving (old - new): shrinking a goods-in receipt whose stock
    was already issued would otherwise push `available` below zero.
    """
    deltas = {}
    for name in set(old) | set(new):
        before = old.get(name, ZERO_QTY)
        after = new.get(name, ZERO_QTY)
        deltas[name] = after - before if direction == OUTBOUND else before - after
    return deltas


def guard_movement(direction, old, new, locked_lines: Mapping[str, InventoryLine]):
    """Run the guard for every item a receipt mutation would deplete."""
    for name, delta in sorted(stock_deltas(direction, old, new).items()):
        if delta <= 0:
            continue
        line = locked_lines.get(name)
        current = line.available if line is not None else ZERO_QTY
        if direction == OUTBOUND:
            # express as "ship new qty, after handing back the old one"
            check_availability(name, new.get(name, ZERO_QTY), current, old.get(name, ZERO_QTY))
        else:
            check_availability(name, delta, current)


# ----------------------------
# Projection access (storage side)
# ----------------------------
def lock_inventory(item_names: Iterable[str]) -> Dict[str, InventoryLine]:
    """
    Make sure a projection row exists for each item and row-lock them all.
    Locks are taken in item_name order so two receipts touching the same
    items can never deadlock each other.
    """
    names = sorted(set(item_names))
    for name in names:
        InventoryLine.objects.get_or_create(item_name=name)
    locked = (
        InventoryLine.objects.select_for_update()
        .filter(item_name__in=names)
        .order_by("item_name")
    )
    return {line.item_name: line for line in locked}


def _sum_quantity(item_name, direction):
    return ReceiptLine.objects.filter(
        item_name=item_name, receipt__direction=direction
    ).aggregate(
        qty=Coalesce(
            Sum("quantity"),
            models.Value(ZERO_QTY, output_field=models.DecimalField(max_digits=18, decimal_places=4)),
        )
    )["qty"]


def recompute_item(item_name: str) -> InventoryLine:
    """
    Upsert one projection row from the receipt lines visible to the current
    transaction. Called from the ReceiptLine receivers and the rebuild task.
    """
    quantity_in = _sum_quantity(item_name, INBOUND)
    quantity_out = _sum_quantity(item_name, OUTBOUND)
    line, _ = InventoryLine.objects.update_or_create(
        item_name=item_name,
        defaults={
            "quantity_in": quantity_in,
            "quantity_out": quantity_out,
            "available": quantity_in - quantity_out,
        },
    )
    return line


def get_available(item_name: str) -> Decimal:
    """Unlocked read for display; validation always goes through lock_inventory()."""
    line = InventoryLine.objects.filter(item_name=item_name).only("available").first()
    return line.available if line is not None else ZERO_QTY


def list_inventory(*, capability: Capability) -> List[InventoryLine]:
    """Stock on hand for every item ever received or issued, by item name."""
    capability.require("read")
    return list(InventoryLine.objects.order_by("item_name"))
