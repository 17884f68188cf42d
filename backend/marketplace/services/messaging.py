"""Messaging — authorize and persist buyer/owner messages about an item.

Invariants:
    - Lookup order: item (404) -> receiver (404) -> authorization (403); nothing
      is written unless all three pass
    - Authorization is re-derived from the message log on every send
    - A stored message has text, an attachment, or both
"""

import logging
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import (
    AuthorizationError, ErrorContext, ResourceNotFoundError, ValidationError,
)
from marketplace.core.message_authorization import (
    MessageRoute, can_view_item_thread, check_message_permission, classify_message_route,
)
from marketplace.infrastructure.file_storage import StoredAttachment
from marketplace.models import Item, Message, User
from marketplace.services.projections import ThreadMessage, list_item_messages_for_user

logger = logging.getLogger(__name__)


async def has_buyer_initiated(
    db: AsyncSession, item_id: UUID, buyer_id: UUID, owner_id: UUID,
) -> bool:
    """True once buyer_id has sent owner_id at least one message about item_id."""
    result = await db.execute(
        select(
            exists().where(
                Message.item_id == item_id,
                Message.sender_id == buyer_id,
                Message.receiver_id == owner_id,
            ),
        ),
    )
    return bool(result.scalar())


async def authorize_message(
    db: AsyncSession, sender_id: UUID, receiver_id: UUID, item_id: UUID,
) -> Item:
    """Return the item when sender may message receiver about it."""
    item = await db.get(Item, item_id)
    if item is None:
        raise ResourceNotFoundError("Item", str(item_id))
    receiver = await db.get(User, receiver_id)
    if receiver is None:
        raise ResourceNotFoundError("Receiver", str(receiver_id))

    route = classify_message_route(item.user_id, sender_id, receiver_id)
    buyer_initiated = False
    if route is MessageRoute.OWNER_REPLY:
        buyer_initiated = await has_buyer_initiated(db, item.id, receiver_id, item.user_id)

    denial = check_message_permission(route, buyer_initiated)
    if denial:
        logger.info(
            f"Message denied ({route.value})",
            extra={"user_id": sender_id, "item_id": item_id, "error_code": "AUTHORIZATION_DENIED"},
        )
        raise AuthorizationError(
            denial, ErrorContext(user_id=str(sender_id), item_id=str(item_id)),
        )
    return item


async def send_message(
    db: AsyncSession,
    sender_id: UUID,
    receiver_id: UUID,
    item_id: UUID,
    message_text: str | None = None,
    attachment: StoredAttachment | None = None,
    authorized: bool = False,
) -> Message:
    """Authorize (unless the caller already did) and insert one message."""
    if not message_text and attachment is None:
        raise ValidationError("message needs text or an attachment", field="message_text")
    if not authorized:
        await authorize_message(db, sender_id, receiver_id, item_id)

    message = Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        item_id=item_id,
        message_text=message_text or None,
        file_url=attachment.url if attachment else None,
        file_type=attachment.kind.value if attachment else None,
        file_name=attachment.original_name if attachment else None,
    )
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return message


async def get_item_thread(
    db: AsyncSession, item_id: UUID, viewer_id: UUID,
) -> list[ThreadMessage]:
    """Messages on item_id visible to viewer_id, oldest first."""
    item = await db.get(Item, item_id)
    if item is None:
        raise ResourceNotFoundError("Item", str(item_id))
    thread = await list_item_messages_for_user(db, item_id, viewer_id)
    if not can_view_item_thread(item.user_id, viewer_id, len(thread)):
        raise AuthorizationError(
            "Not authorized to view these messages",
            ErrorContext(user_id=str(viewer_id), item_id=str(item_id)),
        )
    return thread
