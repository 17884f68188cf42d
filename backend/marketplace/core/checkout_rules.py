"""Checkout Rules — which cart entries can be bought and what they cost.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - A cart entry is purchasable iff its item is a sell listing that is not sold
    - Barter and sold entries are excluded silently, never individually rejected
    - Totals are exact Decimal sums quantized to cents; floats never appear
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol, Sequence
from uuid import UUID

from marketplace.core.domain_types import ItemType, to_money
from marketplace.core.errors import EmptyCartError, NoSellableItemsError


class PurchasableLike(Protocol):
    """Structural contract for the item side of a cart entry (ORM Item fits)."""
    id: UUID
    item_type: str
    is_sold: bool
    price: Decimal | None


@dataclass(frozen=True)
class OrderLine:
    item_id: UUID
    price: Decimal


def is_purchasable(item: PurchasableLike) -> bool:
    return item.item_type == ItemType.SELL.value and not item.is_sold and item.price is not None


def select_order_lines(items: Sequence[PurchasableLike]) -> list[OrderLine]:
    """Snapshot one line per distinct purchasable item, preserving cart order.

    The same item added to the cart twice yields a single line. Raises
    EmptyCartError when items is empty and NoSellableItemsError when nothing
    survives the filter.
    """
    if not items:
        raise EmptyCartError()
    lines: list[OrderLine] = []
    seen: set[UUID] = set()
    for item in items:
        if item.id in seen or not is_purchasable(item):
            continue
        seen.add(item.id)
        lines.append(OrderLine(item_id=item.id, price=to_money(item.price)))
    if not lines:
        raise NoSellableItemsError()
    return lines


def order_total(lines: Iterable[OrderLine]) -> Decimal:
    return to_money(sum((line.price for line in lines), Decimal("0")))
