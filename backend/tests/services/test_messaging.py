"""Messaging — verifies who may message whom and who sees which thread.

Invariants:
    - Buyer -> owner always allowed; owner -> buyer only after buyer wrote first
    - Buyer -> another buyer never allowed, even after both talked to the owner
    - Lookup order: item 404, receiver 404, then 403; nothing stored on failure
    - Thread reads: owner always, other users only once they took part

Tests cover:
    - Authorization matrix through the service and POST /api/messages
    - Inbox and per-item thread projections with ordering
    - File messages: upload, type/size rejection, download
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from marketplace.core.errors import AuthorizationError, ResourceNotFoundError, ValidationError
from marketplace.core.message_authorization import NON_OWNER_DENIED, OWNER_REPLY_DENIED
from marketplace.models import Message
from marketplace.services import messaging


async def _message_count(db) -> int:
    result = await db.execute(select(func.count()).select_from(Message))
    return result.scalar_one()


@pytest.fixture
async def listing(seller, make_item):
    return await make_item(seller, title="Desk")


# ─── Service: authorization matrix ───────────────────────────────

async def test_buyer_may_message_owner(test_db, seller, buyer, listing):
    message = await messaging.send_message(
        test_db, buyer.id, seller.id, listing.id, message_text="Still available?",
    )
    assert message.sender_id == buyer.id
    assert message.receiver_id == seller.id


async def test_owner_cannot_message_first(test_db, seller, buyer, listing):
    seller_id, buyer_id, item_id = seller.id, buyer.id, listing.id
    with pytest.raises(AuthorizationError) as exc_info:
        await messaging.send_message(test_db, seller_id, buyer_id, item_id, message_text="Hi")
    assert exc_info.value.message == OWNER_REPLY_DENIED
    assert await _message_count(test_db) == 0


async def test_owner_may_reply_after_buyer_wrote(test_db, seller, buyer, listing, make_message):
    await make_message(buyer, seller, listing)

    reply = await messaging.send_message(
        test_db, seller.id, buyer.id, listing.id, message_text="Yes it is",
    )
    assert reply.receiver_id == buyer.id


async def test_owner_reply_is_scoped_to_item(test_db, seller, buyer, listing, make_item, make_message):
    """A conversation about one item does not unlock replies about another."""
    other_listing = await make_item(seller, title="Chair")
    await make_message(buyer, seller, listing)

    with pytest.raises(AuthorizationError):
        await messaging.send_message(
            test_db, seller.id, buyer.id, other_listing.id, message_text="Want this too?",
        )


async def test_owner_reply_is_scoped_to_buyer(test_db, seller, buyer, other_buyer, listing, make_message):
    """One buyer opening a thread does not let the owner message a second buyer."""
    await make_message(buyer, seller, listing)
    seller_id, other_buyer_id, item_id = seller.id, other_buyer.id, listing.id
    before = await _message_count(test_db)

    with pytest.raises(AuthorizationError) as exc_info:
        await messaging.send_message(
            test_db, seller_id, other_buyer_id, item_id, message_text="Interested too?",
        )

    assert exc_info.value.message == OWNER_REPLY_DENIED
    assert await _message_count(test_db) == before


async def test_second_buyer_opens_own_thread_then_owner_replies(
    test_db, seller, buyer, other_buyer, listing, make_message,
):
    await make_message(buyer, seller, listing)

    opened = await messaging.send_message(
        test_db, other_buyer.id, seller.id, listing.id, message_text="Can I see it?",
    )
    reply = await messaging.send_message(
        test_db, seller.id, other_buyer.id, listing.id, message_text="Sure, tomorrow",
    )

    assert opened.receiver_id == seller.id
    assert reply.receiver_id == other_buyer.id


async def test_buyers_cannot_message_each_other(
    test_db, seller, buyer, other_buyer, listing, make_message,
):
    await make_message(buyer, seller, listing)
    await make_message(other_buyer, seller, listing)

    with pytest.raises(AuthorizationError) as exc_info:
        await messaging.send_message(
            test_db, buyer.id, other_buyer.id, listing.id, message_text="Hey",
        )
    assert exc_info.value.message == NON_OWNER_DENIED


async def test_owner_may_message_self(test_db, seller, listing):
    message = await messaging.send_message(
        test_db, seller.id, seller.id, listing.id, message_text="note to self",
    )
    assert message.sender_id == message.receiver_id == seller.id


async def test_missing_item_checked_before_receiver(test_db, buyer):
    with pytest.raises(ResourceNotFoundError) as exc_info:
        await messaging.send_message(test_db, buyer.id, uuid4(), uuid4(), message_text="x")
    assert exc_info.value.message == "Item not found"


async def test_missing_receiver_is_404(test_db, buyer, listing):
    with pytest.raises(ResourceNotFoundError) as exc_info:
        await messaging.send_message(test_db, buyer.id, uuid4(), listing.id, message_text="x")
    assert exc_info.value.message == "Receiver not found"


async def test_message_needs_text_or_attachment(test_db, seller, buyer, listing):
    with pytest.raises(ValidationError):
        await messaging.send_message(test_db, buyer.id, seller.id, listing.id)


# ─── Service: thread visibility ──────────────────────────────────

async def test_owner_sees_every_thread_on_item(
    test_db, seller, buyer, other_buyer, listing, make_message,
):
    await make_message(buyer, seller, listing, "first")
    await make_message(other_buyer, seller, listing, "second")

    thread = await messaging.get_item_thread(test_db, listing.id, seller.id)

    assert [row.message.message_text for row in thread] == ["first", "second"]


async def test_buyer_sees_only_own_thread(
    test_db, seller, buyer, other_buyer, listing, make_message,
):
    await make_message(buyer, seller, listing, "mine")
    await make_message(other_buyer, seller, listing, "theirs")

    thread = await messaging.get_item_thread(test_db, listing.id, buyer.id)

    assert [row.message.message_text for row in thread] == ["mine"]
    assert thread[0].sender.id == buyer.id


async def test_owner_sees_empty_thread(test_db, seller, listing):
    assert await messaging.get_item_thread(test_db, listing.id, seller.id) == []


async def test_outsider_cannot_read_thread(test_db, seller, buyer, other_buyer, listing, make_message):
    await make_message(buyer, seller, listing)

    with pytest.raises(AuthorizationError):
        await messaging.get_item_thread(test_db, listing.id, other_buyer.id)


async def test_thread_for_missing_item_is_404(test_db, buyer):
    with pytest.raises(ResourceNotFoundError):
        await messaging.get_item_thread(test_db, uuid4(), buyer.id)


# ─── Routes ──────────────────────────────────────────────────────

async def test_post_message_route(client, auth_headers, seller, buyer, listing):
    res = await client.post(
        "/api/messages",
        json={"item_id": str(listing.id), "receiver_id": str(seller.id), "message_text": " hi "},
        headers=auth_headers(buyer),
    )
    assert res.status_code == 201
    assert res.json()["message_text"] == "hi"
    assert res.json()["file_url"] is None


async def test_post_message_route_denied_is_403(client, auth_headers, seller, buyer, listing):
    res = await client.post(
        "/api/messages",
        json={"item_id": str(listing.id), "receiver_id": str(buyer.id), "message_text": "hi"},
        headers=auth_headers(seller),
    )
    assert res.status_code == 403
    assert res.json()["error"]["message"] == OWNER_REPLY_DENIED


async def test_post_message_route_blank_text_is_400(client, auth_headers, seller, buyer, listing):
    res = await client.post(
        "/api/messages",
        json={"item_id": str(listing.id), "receiver_id": str(seller.id), "message_text": "   "},
        headers=auth_headers(buyer),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_inbox_lists_sent_and_received_newest_first(
    client, auth_headers, seller, buyer, other_buyer, listing, make_message,
):
    await make_message(buyer, seller, listing, "question")
    await make_message(seller, buyer, listing, "answer")
    await make_message(other_buyer, seller, listing, "not for buyer")

    res = await client.get("/api/messages", headers=auth_headers(buyer))

    assert res.status_code == 200
    body = res.json()
    assert [m["message_text"] for m in body] == ["answer", "question"]
    assert body[0]["sender"]["id"] == str(seller.id)
    assert body[0]["receiver"]["id"] == str(buyer.id)
    assert body[0]["item"]["id"] == str(listing.id)
    assert "password_hash" not in body[0]["sender"]


async def test_item_thread_route_forbidden_for_outsider(
    client, auth_headers, seller, buyer, other_buyer, listing, make_message,
):
    await make_message(buyer, seller, listing)

    res = await client.get(f"/api/messages/{listing.id}", headers=auth_headers(other_buyer))

    assert res.status_code == 403


async def test_item_thread_route_for_owner(client, auth_headers, seller, buyer, listing, make_message):
    await make_message(buyer, seller, listing, "hello")

    res = await client.get(f"/api/messages/{listing.id}", headers=auth_headers(seller))

    assert res.status_code == 200
    assert [m["message_text"] for m in res.json()] == ["hello"]
    assert res.json()[0]["sender"]["name"] == "Bea Buyer"


# ─── File messages ───────────────────────────────────────────────

def _upload_form(item, receiver, text: str | None = None) -> dict:
    data = {"item_id": str(item.id), "receiver_id": str(receiver.id)}
    if text is not None:
        data["message_text"] = text
    return data


async def test_upload_image_message(client, auth_headers, seller, buyer, listing, tmp_path):
    res = await client.post(
        "/api/messages/upload",
        data=_upload_form(listing, seller, "photo of the scratch"),
        files={"file": ("scratch.png", b"\x89PNG fake", "image/png")},
        headers=auth_headers(buyer),
    )

    assert res.status_code == 201
    body = res.json()
    assert body["file_type"] == "image"
    assert body["file_name"] == "scratch.png"
    assert body["message_text"] == "photo of the scratch"
    assert body["file_url"].startswith("/uploads/messages/")
    assert body["file_url"].endswith(".png")
    assert len(list((tmp_path / "messages").iterdir())) == 1

    download = await client.get(body["file_url"], headers=auth_headers(seller))
    assert download.status_code == 200
    assert download.content == b"\x89PNG fake"


async def test_upload_pdf_without_text(client, auth_headers, seller, buyer, listing):
    res = await client.post(
        "/api/messages/upload",
        data=_upload_form(listing, seller),
        files={"file": ("receipt.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers(buyer),
    )
    assert res.status_code == 201
    assert res.json()["file_type"] == "document"
    assert res.json()["message_text"] is None


async def test_upload_rejects_disallowed_type(client, auth_headers, seller, buyer, listing):
    res = await client.post(
        "/api/messages/upload",
        data=_upload_form(listing, seller),
        files={"file": ("run.exe", b"MZ", "application/octet-stream")},
        headers=auth_headers(buyer),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "UPLOAD_REJECTED"


async def test_upload_rejects_oversized_file(client, auth_headers, seller, buyer, listing):
    res = await client.post(
        "/api/messages/upload",
        data=_upload_form(listing, seller),
        files={"file": ("big.jpg", b"0" * (5 * 1024 * 1024 + 1), "image/jpeg")},
        headers=auth_headers(buyer),
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "File exceeds 5MB"


async def test_upload_without_file_is_400(client, auth_headers, seller, buyer, listing):
    res = await client.post(
        "/api/messages/upload",
        data=_upload_form(listing, seller),
        headers=auth_headers(buyer),
    )
    assert res.status_code == 400


async def test_denied_upload_writes_nothing(
    client, auth_headers, seller, buyer, other_buyer, listing, tmp_path,
):
    res = await client.post(
        "/api/messages/upload",
        data=_upload_form(listing, other_buyer),
        files={"file": ("pic.jpg", b"jpeg", "image/jpeg")},
        headers=auth_headers(buyer),
    )
    assert res.status_code == 403
    messages_dir = tmp_path / "messages"
    assert not messages_dir.exists() or not any(messages_dir.iterdir())


async def test_download_missing_file_is_404(client, auth_headers, buyer):
    res = await client.get("/uploads/messages/nope.png", headers=auth_headers(buyer))
    assert res.status_code == 404


async def test_download_requires_token(client):
    res = await client.get("/uploads/messages/anything.png")
    assert res.status_code == 401
