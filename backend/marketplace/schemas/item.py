"""Item Schemas — listing payloads with per-type term validation.

Invariants:
    - ItemCreate always satisfies core/listing_terms.py after validation
    - ItemUpdate is partial; the merged result is re-validated by the route
    - is_sold is read-only (absent from both request models)
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from marketplace.core.errors import ValidationError
from marketplace.core.listing_terms import normalize_listing_terms
from marketplace.schemas.user import UserResponse


class ItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    category: str = Field(min_length=1, max_length=100)
    image_url: str = Field(min_length=1, max_length=2000)
    item_type: Literal["sell", "barter"]
    price: Decimal | None = Field(None, max_digits=10, decimal_places=2)
    expected_exchange: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_terms(self):
        try:
            terms = normalize_listing_terms(self.item_type, self.price, self.expected_exchange)
        except ValidationError as e:
            raise ValueError(e.message)
        self.price = terms.price
        self.expected_exchange = terms.expected_exchange
        return self


class ItemUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=5000)
    category: str | None = Field(None, min_length=1, max_length=100)
    image_url: str | None = Field(None, min_length=1, max_length=2000)
    item_type: Literal["sell", "barter"] | None = None
    price: Decimal | None = Field(None, max_digits=10, decimal_places=2)
    expected_exchange: str | None = Field(None, max_length=1000)


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    description: str
    category: str
    image_url: str
    item_type: str
    price: Decimal | None
    expected_exchange: str | None
    is_sold: bool
    created_at: datetime


class ItemWithOwnerResponse(ItemResponse):
    user: UserResponse
