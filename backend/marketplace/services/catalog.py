"""Catalog — create, update and delete listings; cart and wishlist membership.

Invariants:
    - Only the owner updates or deletes an item (AuthorizationError otherwise)
    - Updates re-validate the merged listing terms; is_sold is never written here
    - A sold item keeps its price and listing type; only descriptive fields change
    - Adding to cart/wishlist only checks that the item exists: no sold check,
      no de-duplication
    - Removing a membership that does not exist is a no-op
"""

import logging
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import (
    AuthorizationError, ErrorContext, ResourceNotFoundError, ValidationError,
)
from marketplace.core.listing_terms import normalize_listing_terms
from marketplace.models import CartItem, Item, WishlistItem
from marketplace.schemas.item import ItemCreate, ItemUpdate

logger = logging.getLogger(__name__)


async def create_item(db: AsyncSession, owner_id: UUID, body: ItemCreate) -> Item:
    item = Item(user_id=owner_id, **body.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)
    logger.info("Item listed", extra={"user_id": owner_id, "item_id": item.id})
    return item


async def get_owned_item(db: AsyncSession, item_id: UUID, user_id: UUID, action: str) -> Item:
    item = await db.get(Item, item_id)
    if item is None:
        raise ResourceNotFoundError("Item", str(item_id))
    if item.user_id != user_id:
        raise AuthorizationError(
            f"Not authorized to {action} this item",
            ErrorContext(user_id=str(user_id), item_id=str(item_id)),
        )
    return item


_TERM_FIELDS = ("item_type", "price", "expected_exchange")


def _changes_terms(item: Item, data: dict) -> bool:
    return any(
        field in data and data[field] != getattr(item, field) for field in _TERM_FIELDS
    )


async def update_item(db: AsyncSession, item_id: UUID, user_id: UUID, body: ItemUpdate) -> Item:
    item = await get_owned_item(db, item_id, user_id, "update")
    data = body.model_dump(exclude_unset=True)
    if item.is_sold and _changes_terms(item, data):
        raise ValidationError(
            "Price and listing type of a sold item cannot change",
            field="price",
            context=ErrorContext(user_id=str(user_id), item_id=str(item_id)),
        )

    terms = normalize_listing_terms(
        data.get("item_type", item.item_type),
        data.get("price", item.price),
        data.get("expected_exchange", item.expected_exchange),
    )
    for field in ("title", "description", "category", "image_url"):
        if data.get(field) is not None:
            setattr(item, field, data[field])
    item.item_type = terms.item_type.value
    item.price = terms.price
    item.expected_exchange = terms.expected_exchange

    await db.commit()
    await db.refresh(item)
    return item


async def delete_item(db: AsyncSession, item_id: UUID, user_id: UUID) -> None:
    """Delete the item; messages, cart and wishlist rows cascade at the FK level."""
    item = await get_owned_item(db, item_id, user_id, "delete")
    await db.execute(delete(Item).where(Item.id == item.id))
    await db.commit()
    logger.info("Item deleted", extra={"user_id": user_id, "item_id": item_id})


async def _add_saved(db: AsyncSession, model, user_id: UUID, item_id: UUID):
    if await db.get(Item, item_id) is None:
        raise ResourceNotFoundError("Item", str(item_id))
    entry = model(user_id=user_id, item_id=item_id)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def _remove_saved(db: AsyncSession, model, user_id: UUID, item_id: UUID) -> None:
    await db.execute(
        delete(model).where(model.user_id == user_id, model.item_id == item_id),
    )
    await db.commit()


async def add_to_cart(db: AsyncSession, user_id: UUID, item_id: UUID) -> CartItem:
    return await _add_saved(db, CartItem, user_id, item_id)


async def remove_from_cart(db: AsyncSession, user_id: UUID, item_id: UUID) -> None:
    await _remove_saved(db, CartItem, user_id, item_id)


async def add_to_wishlist(db: AsyncSession, user_id: UUID, item_id: UUID) -> WishlistItem:
    return await _add_saved(db, WishlistItem, user_id, item_id)


async def remove_from_wishlist(db: AsyncSession, user_id: UUID, item_id: UUID) -> None:
    await _remove_saved(db, WishlistItem, user_id, item_id)
