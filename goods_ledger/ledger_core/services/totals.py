from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Sequence

from ..exceptions import InvalidLineItemError
from ..money import (MIN_QUANTITY, ZERO, fits_quantity_step, multiply_money,
                     to_decimal)


# ----------------------------
# Receipt totals
# ----------------------------
@dataclass(frozen=True)
class LineItem:
    """One item on a receipt as submitted by a caller (no id, no total)."""
    item_name: str
    quantity: Decimal
    unit: str = ""
    unit_price: Decimal = ZERO

    @classmethod
    def from_mapping(cls, data: Mapping) -> "LineItem":
        # A client-supplied "total" is ignored on purpose: it is recomputed
        return cls(
            item_name=(data.get("item_name") or "").strip(),
            quantity=to_decimal(data.get("quantity", 0)),
            unit=data.get("unit") or "",
            unit_price=to_decimal(data.get("unit_price", 0)),
        )

    @classmethod
    def from_line(cls, line) -> "LineItem":
        """Build from a stored ReceiptLine."""
        return cls(
            item_name=line.item_name,
            quantity=line.quantity,
            unit=line.unit,
            unit_price=line.unit_price,
        )


def coerce_items(items: Iterable) -> List[LineItem]:
    """Accept LineItem instances or plain dicts. Values are parsed, never rounded."""
    result = []
    for item in items:
        if isinstance(item, LineItem):
            item = replace(
                item,
                item_name=item.item_name.strip(),
                quantity=to_decimal(item.quantity),
                unit_price=to_decimal(item.unit_price),
            )
        else:
            item = LineItem.from_mapping(item)
        result.append(item)
    return result


def validate_item(item: LineItem, position: int = 0) -> None:
    if not item.item_name:
        raise InvalidLineItemError(
            f"Line {position}: item name is required",
            position=position, item_name=item.item_name,
        )
    if item.quantity < MIN_QUANTITY:
        raise InvalidLineItemError(
            f"Line {position}: quantity must be at least {MIN_QUANTITY}",
            position=position, item_name=item.item_name,
        )
    if item.unit_price < 0:
        raise InvalidLineItemError(
            f"Line {position}: unit price must be 0 or greater",
            position=position, item_name=item.item_name,
        )
    for field in ("quantity", "unit_price"):
        if not fits_quantity_step(getattr(item, field)):
            raise InvalidLineItemError(
                f"Line {position}: {field} has more than 4 decimal places",
                position=position, item_name=item.item_name,
            )


def line_total(item: LineItem) -> Decimal:
    """quantity × unit_price rounded half-even to cents, as printed per line."""
    validate_item(item)
    return multiply_money(item.quantity, item.unit_price)


def receipt_total(items: Sequence[LineItem]) -> Decimal:
    """
    Sum of the rounded line totals (not the rounded sum),
    so the grand total matches what a printed receipt adds up to.
    """
    total = ZERO
    for position, item in enumerate(items):
        validate_item(item, position)
        total += multiply_money(item.quantity, item.unit_price)
    return total


def quantities_by_item(items: Iterable[LineItem]) -> Dict[str, Decimal]:
    """Total quantity per item name; one item may appear on several lines."""
    totals: Dict[str, Decimal] = {}
    for item in items:
        totals[item.item_name] = totals.get(item.item_name, Decimal("0")) + item.quantity
    return totals
