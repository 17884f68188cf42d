"""Cart and Wishlist Routes — per-user (user, item) memberships."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import CurrentUser
from marketplace.infrastructure.database import get_db
from marketplace.schemas.item import ItemResponse
from marketplace.schemas.saved_item import (
    SavedItemRequest, SavedItemResponse, SavedItemWithItemResponse,
)
from marketplace.services import catalog, projections

cart_router = APIRouter(prefix="/api/cart", tags=["cart"])
wishlist_router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


def _with_item(rows: list[projections.SavedEntry]) -> list[SavedItemWithItemResponse]:
    return [
        SavedItemWithItemResponse(
            **SavedItemResponse.model_validate(row.entry).model_dump(),
            item=ItemResponse.model_validate(row.item),
        )
        for row in rows
    ]


@cart_router.get("", response_model=list[SavedItemWithItemResponse])
async def list_cart(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return _with_item(await projections.list_cart(db, current_user.id))


@cart_router.post("", response_model=SavedItemResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    body: SavedItemRequest, current_user: CurrentUser, db: AsyncSession = Depends(get_db),
):
    return await catalog.add_to_cart(db, current_user.id, body.item_id)


@cart_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_cart(
    item_id: UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db),
):
    await catalog.remove_from_cart(db, current_user.id, item_id)


@wishlist_router.get("", response_model=list[SavedItemWithItemResponse])
async def list_wishlist(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return _with_item(await projections.list_wishlist(db, current_user.id))


@wishlist_router.post("", response_model=SavedItemResponse, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    body: SavedItemRequest, current_user: CurrentUser, db: AsyncSession = Depends(get_db),
):
    return await catalog.add_to_wishlist(db, current_user.id, body.item_id)


@wishlist_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_wishlist(
    item_id: UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db),
):
    await catalog.remove_from_wishlist(db, current_user.id, item_id)
