"""Cart and Wishlist Schemas — both are (user, item) membership rows."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from marketplace.schemas.item import ItemResponse


class SavedItemRequest(BaseModel):
    item_id: UUID


class SavedItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    item_id: UUID
    created_at: datetime


class SavedItemWithItemResponse(SavedItemResponse):
    item: ItemResponse
