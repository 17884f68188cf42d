"""Listing Terms — price / expected-exchange rules per item type.

Invariants:
    - sell   => price present (>= 0), expected_exchange absent
    - barter => expected_exchange present (non-blank), price absent
    - normalize_listing_terms is the only place these rules live; schemas and the
      item-update path both call it
"""

from dataclasses import dataclass
from decimal import Decimal

from marketplace.core.domain_types import ItemType, to_money
from marketplace.core.errors import ValidationError


@dataclass(frozen=True)
class ListingTerms:
    item_type: ItemType
    price: Decimal | None
    expected_exchange: str | None


def normalize_listing_terms(
    item_type: ItemType | str,
    price: Decimal | None,
    expected_exchange: str | None,
) -> ListingTerms:
    """Validate and drop the field that does not apply to item_type.

    Raises ValidationError on an unknown type, a sell item without price, a
    negative price, or a barter item without expected exchange.
    """
    try:
        kind = ItemType(item_type)
    except ValueError:
        raise ValidationError(
            f"item_type must be one of: {', '.join(t.value for t in ItemType)}",
            field="item_type",
        )

    if kind is ItemType.SELL:
        if price is None:
            raise ValidationError("price is required for items for sale", field="price")
        if price < 0:
            raise ValidationError("price must not be negative", field="price")
        return ListingTerms(kind, to_money(price), None)

    exchange = expected_exchange.strip() if expected_exchange else ""
    if not exchange:
        raise ValidationError(
            "expected_exchange is required for barter items", field="expected_exchange",
        )
    return ListingTerms(kind, None, exchange)
