"""Item Routes — public catalog reads, owner-only writes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import CurrentUser
from marketplace.infrastructure.database import get_db
from marketplace.schemas.item import (
    ItemCreate, ItemResponse, ItemUpdate, ItemWithOwnerResponse,
)
from marketplace.schemas.user import UserResponse
from marketplace.services import catalog, projections

router = APIRouter(prefix="/api/items", tags=["items"])


def to_item_with_owner(row: projections.ItemWithOwner) -> ItemWithOwnerResponse:
    return ItemWithOwnerResponse(
        **ItemResponse.model_validate(row.item).model_dump(),
        user=UserResponse.model_validate(row.owner),
    )


@router.get("", response_model=list[ItemWithOwnerResponse])
async def list_items(db: AsyncSession = Depends(get_db)):
    """All listings, newest first, each with its owner."""
    rows = await projections.list_items_with_owner(db)
    return [to_item_with_owner(row) for row in rows]


@router.get("/{item_id}", response_model=ItemWithOwnerResponse)
async def get_item(item_id: UUID, db: AsyncSession = Depends(get_db)):
    return to_item_with_owner(await projections.get_item_with_owner(db, item_id))


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    body: ItemCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db),
):
    return await catalog.create_item(db, current_user.id, body)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: UUID,
    body: ItemUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    return await catalog.update_item(db, item_id, current_user.id, body)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db),
):
    await catalog.delete_item(db, item_id, current_user.id)
