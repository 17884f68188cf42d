"""Message Routes — inbox, per-item threads, text and file messages.

Invariants:
    - Every endpoint requires a bearer token
    - File messages are validated (type, size) and authorized before anything is
      written to disk; a stored file is removed if the message insert fails
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import CurrentUser
from marketplace.core.errors import UploadRejectedError
from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.file_storage import (
    AttachmentStorage, get_attachment_storage,
)
from marketplace.schemas.item import ItemResponse
from marketplace.schemas.message import (
    InboxMessageResponse, ItemThreadMessageResponse, MessageCreate, MessageResponse,
)
from marketplace.schemas.user import UserResponse
from marketplace.services import messaging, projections

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/messages", tags=["messages"])
uploads_router = APIRouter(prefix="/uploads/messages", tags=["messages"])


@router.get("", response_model=list[InboxMessageResponse])
async def list_my_messages(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    """Everything the caller sent or received, newest first."""
    rows = await projections.list_user_messages(db, current_user.id)
    return [
        InboxMessageResponse(
            **MessageResponse.model_validate(row.message).model_dump(),
            sender=UserResponse.model_validate(row.sender),
            receiver=UserResponse.model_validate(row.receiver),
            item=ItemResponse.model_validate(row.item),
        )
        for row in rows
    ]


@router.get("/{item_id}", response_model=list[ItemThreadMessageResponse])
async def list_item_messages(
    item_id: UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db),
):
    rows = await messaging.get_item_thread(db, item_id, current_user.id)
    return [
        ItemThreadMessageResponse(
            **MessageResponse.model_validate(row.message).model_dump(),
            sender=UserResponse.model_validate(row.sender),
        )
        for row in rows
    ]


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    body: MessageCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db),
):
    return await messaging.send_message(
        db,
        sender_id=current_user.id,
        receiver_id=body.receiver_id,
        item_id=body.item_id,
        message_text=body.message_text,
    )


@router.post("/upload", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_file_message(
    current_user: CurrentUser,
    item_id: UUID = Form(...),
    receiver_id: UUID = Form(...),
    message_text: str | None = Form(None),
    file: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    storage: AttachmentStorage = Depends(get_attachment_storage),
):
    if file is None:
        raise UploadRejectedError("No file uploaded")
    data = await storage.read_upload(file)
    storage.check(file.filename, file.content_type, len(data))
    await messaging.authorize_message(db, current_user.id, receiver_id, item_id)

    stored = storage.save(file.filename, file.content_type, data)
    try:
        return await messaging.send_message(
            db,
            sender_id=current_user.id,
            receiver_id=receiver_id,
            item_id=item_id,
            message_text=(message_text or "").strip() or None,
            attachment=stored,
            authorized=True,
        )
    except Exception:
        storage.discard(stored)
        raise


@uploads_router.get("/{filename}")
async def download_attachment(
    filename: str,
    current_user: CurrentUser,
    storage: AttachmentStorage = Depends(get_attachment_storage),
):
    return FileResponse(storage.resolve(filename))
