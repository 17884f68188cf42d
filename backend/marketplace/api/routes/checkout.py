"""Checkout Route — POST /api/checkout turns the caller's cart into an order."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import CurrentUser
from marketplace.infrastructure.database import get_db
from marketplace.schemas.order import OrderResponse
from marketplace.services import checkout as checkout_service

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def checkout(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await checkout_service.checkout(db, current_user.id)
