"""Message Schemas — send payload and the joined read shapes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from marketplace.schemas.item import ItemResponse
from marketplace.schemas.user import UserResponse


class MessageCreate(BaseModel):
    item_id: UUID
    receiver_id: UUID
    message_text: str = Field(min_length=1, max_length=5000)

    @field_validator("message_text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message_text cannot be empty or whitespace")
        return v


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender_id: UUID
    receiver_id: UUID
    item_id: UUID
    message_text: str | None
    file_url: str | None
    file_type: str | None
    file_name: str | None
    created_at: datetime


class ItemThreadMessageResponse(MessageResponse):
    sender: UserResponse


class InboxMessageResponse(MessageResponse):
    sender: UserResponse
    receiver: UserResponse
    item: ItemResponse
