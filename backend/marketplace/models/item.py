"""Item ORM — a listing for sale or barter, owned by one user.

Invariants:
    - price present iff item_type = 'sell'; expected_exchange present iff
      item_type = 'barter' (CHECK constraint + core/listing_terms.py)
    - is_sold flips false -> true once, only inside the checkout transaction
    - Deleting an item cascades to its messages, cart and wishlist rows
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String, Text, Boolean, DateTime, ForeignKey, Numeric, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from marketplace.db.base import Base


class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint(
            "(item_type = 'sell' AND price IS NOT NULL AND expected_exchange IS NULL) OR "
            "(item_type = 'barter' AND expected_exchange IS NOT NULL AND price IS NULL)",
            name="ck_items_terms_match_type",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    item_type: Mapped[str] = mapped_column(String(10), nullable=False)
    expected_exchange: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    is_sold: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
