"""Projections — denormalized read views joining entities for API consumers.

Invariants:
    - Pure reads: no writes, no commits
    - Joined rows are fetched with OUTER joins so a dangling reference is
      detected and raised as IntegrityFault instead of silently dropping the row
    - Orderings: items, inbox, cart and wishlist newest first; item threads oldest first
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from marketplace.core.errors import ErrorContext, IntegrityFault, ResourceNotFoundError
from marketplace.models import CartItem, Item, Message, User, WishlistItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemWithOwner:
    item: Item
    owner: User


@dataclass(frozen=True)
class ThreadMessage:
    message: Message
    sender: User


@dataclass(frozen=True)
class InboxMessage:
    message: Message
    sender: User
    receiver: User
    item: Item


@dataclass(frozen=True)
class SavedEntry:
    entry: Any
    item: Item


def _require(row_value, what: str, ref: UUID):
    """Raise IntegrityFault when an outer-joined row is missing."""
    if row_value is None:
        logger.error(
            f"Integrity fault: {what} {ref} referenced but missing",
            extra={"error_code": "INTEGRITY_FAULT"},
        )
        raise IntegrityFault(
            f"{what} {ref} is referenced but missing",
            ErrorContext(debug_info={"missing": what, "ref": str(ref)}),
        )
    return row_value


async def list_items_with_owner(db: AsyncSession) -> list[ItemWithOwner]:
    result = await db.execute(
        select(Item, User)
        .outerjoin(User, Item.user_id == User.id)
        .order_by(Item.created_at.desc()),
    )
    return [
        ItemWithOwner(item, _require(owner, "user", item.user_id))
        for item, owner in result.all()
    ]


async def get_item_with_owner(db: AsyncSession, item_id: UUID) -> ItemWithOwner:
    result = await db.execute(
        select(Item, User)
        .outerjoin(User, Item.user_id == User.id)
        .where(Item.id == item_id),
    )
    row = result.first()
    if row is None:
        raise ResourceNotFoundError("Item", str(item_id))
    item, owner = row
    return ItemWithOwner(item, _require(owner, "user", item.user_id))


async def list_item_messages_for_user(
    db: AsyncSession, item_id: UUID, user_id: UUID,
) -> list[ThreadMessage]:
    """Messages on one item where user_id is sender or receiver, oldest first."""
    result = await db.execute(
        select(Message, User)
        .outerjoin(User, Message.sender_id == User.id)
        .where(
            Message.item_id == item_id,
            or_(Message.sender_id == user_id, Message.receiver_id == user_id),
        )
        .order_by(Message.created_at.asc()),
    )
    return [
        ThreadMessage(message, _require(sender, "user", message.sender_id))
        for message, sender in result.all()
    ]


async def list_user_messages(db: AsyncSession, user_id: UUID) -> list[InboxMessage]:
    """Every message the user sent or received, newest first."""
    sender = aliased(User)
    receiver = aliased(User)
    result = await db.execute(
        select(Message, sender, receiver, Item)
        .outerjoin(sender, Message.sender_id == sender.id)
        .outerjoin(receiver, Message.receiver_id == receiver.id)
        .outerjoin(Item, Message.item_id == Item.id)
        .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
        .order_by(Message.created_at.desc()),
    )
    return [
        InboxMessage(
            message,
            _require(s, "user", message.sender_id),
            _require(r, "user", message.receiver_id),
            _require(i, "item", message.item_id),
        )
        for message, s, r, i in result.all()
    ]


async def _list_saved(db: AsyncSession, model, user_id: UUID) -> list[SavedEntry]:
    result = await db.execute(
        select(model, Item)
        .outerjoin(Item, model.item_id == Item.id)
        .where(model.user_id == user_id)
        .order_by(model.created_at.desc()),
    )
    return [
        SavedEntry(entry, _require(item, "item", entry.item_id))
        for entry, item in result.all()
    ]


async def list_cart(db: AsyncSession, user_id: UUID) -> list[SavedEntry]:
    return await _list_saved(db, CartItem, user_id)


async def list_wishlist(db: AsyncSession, user_id: UUID) -> list[SavedEntry]:
    return await _list_saved(db, WishlistItem, user_id)
