"""Checkout Transaction Engine — converts a user's cart into one order, atomically.

Invariants:
    - One transaction: cart read, order insert, line inserts, is_sold flips and the
      cart wipe either all commit or all roll back
    - Item rows are locked (SELECT ... FOR UPDATE OF items, ordered by id) before
      the valid-line filter runs, so a concurrent checkout of the same item
      waits and then sees is_sold = true
    - is_sold is flipped with a conditional UPDATE (WHERE is_sold = false); a
      zero rowcount aborts the whole checkout with ConcurrencyError
    - Every line price is the item price at lock time; total is their exact
      Decimal sum
    - On success the user's cart is empty, including barter/sold/duplicate entries
    - Empty cart and no-sellable-items failures leave every row untouched

Design Decisions:
    - The AsyncSession is the unit of work passed into every step
    - populate_existing on the locking read: identity-map copies of items loaded
      earlier in the same session must not hide a concurrent sale
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.checkout_rules import OrderLine, order_total, select_order_lines
from marketplace.core.errors import ConcurrencyError, ErrorContext, MarketplaceError
from marketplace.models import CartItem, Item, Order, OrderItem

logger = logging.getLogger(__name__)


async def checkout(db: AsyncSession, user_id: UUID) -> Order:
    """Run the checkout for user_id and commit; roll back on any failure."""
    try:
        order = await _checkout_in_transaction(db, user_id)
        await db.commit()
    except MarketplaceError as e:
        await db.rollback()
        logger.info(
            f"Checkout rejected: {e.message}",
            extra={"user_id": user_id, "error_code": e.code},
        )
        raise
    except Exception:
        await db.rollback()
        logger.error("Checkout failed, rolled back", extra={"user_id": user_id}, exc_info=True)
        raise

    logger.info(
        f"Order {order.id} created, total {order.total}",
        extra={"user_id": user_id, "order_id": order.id, "line_count": len(order.items)},
    )
    return order


async def _checkout_in_transaction(db: AsyncSession, user_id: UUID) -> Order:
    items = await _lock_cart_items(db, user_id)
    lines = select_order_lines(items)
    order = await _create_order(db, user_id, lines)
    await _mark_sold(db, lines, user_id)
    await _clear_cart(db, user_id)
    return order


async def _lock_cart_items(db: AsyncSession, user_id: UUID) -> list[Item]:
    """Cart items for user_id in cart order, with their item rows locked."""
    result = await db.execute(
        select(CartItem.created_at, Item)
        .join(Item, CartItem.item_id == Item.id)
        .where(CartItem.user_id == user_id)
        .order_by(Item.id)
        .with_for_update(of=Item)
        .execution_options(populate_existing=True),
    )
    # locks are taken in item id order; lines follow the order items were added
    rows = sorted(result.all(), key=lambda row: row[0])
    return [item for _, item in rows]


async def _create_order(db: AsyncSession, user_id: UUID, lines: list[OrderLine]) -> Order:
    order = Order(
        user_id=user_id,
        total=order_total(lines),
        items=[OrderItem(item_id=line.item_id, price=line.price) for line in lines],
    )
    db.add(order)
    await db.flush()
    return order


async def _mark_sold(db: AsyncSession, lines: list[OrderLine], user_id: UUID) -> None:
    for line in lines:
        result = await db.execute(
            update(Item)
            .where(Item.id == line.item_id, Item.is_sold.is_(False))
            .values(is_sold=True)
            .execution_options(synchronize_session="evaluate"),
        )
        if result.rowcount != 1:
            raise ConcurrencyError(
                "Item was sold by another checkout",
                ErrorContext(user_id=str(user_id), item_id=str(line.item_id)),
            )


async def _clear_cart(db: AsyncSession, user_id: UUID) -> None:
    await db.execute(
        delete(CartItem).where(CartItem.user_id == user_id),
    )
