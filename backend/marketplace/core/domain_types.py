"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, ItemId, OrderId wrap UUIDs — never use bare UUID in domain logic
    - Money is always Decimal quantized to cents, never float
    - All valid states encoded as Enums — no raw string matching
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
ItemId = NewType("ItemId", UUID)
MessageId = NewType("MessageId", UUID)
OrderId = NewType("OrderId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

CENT = Decimal("0.01")


def to_money(value: Decimal | str | int) -> Decimal:
    """Quantize to two decimal places. Floats are rejected to keep sums exact."""
    if isinstance(value, float):
        raise TypeError("money values must not be floats")
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ─── Enums ───────────────────────────────────────────────────────

class ItemType(str, Enum):
    """Listing kind — maps to the items.item_type column."""
    SELL = "sell"
    BARTER = "barter"


class AttachmentKind(str, Enum):
    """Message attachment classification — maps to messages.file_type."""
    IMAGE = "image"
    DOCUMENT = "document"

    @classmethod
    def from_content_type(cls, content_type: str | None) -> "AttachmentKind":
        if content_type and content_type.startswith("image/"):
            return cls.IMAGE
        return cls.DOCUMENT
