"""Service test fixtures — async DB, FastAPI test client and marketplace factories.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys enforced
    - get_db dependency overridden to use the test DB
    - db_manager patched so readiness checks hit the test DB
    - Attachments are written under tmp_path
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

import marketplace.infrastructure.database as db_module
from marketplace.config import Settings
from marketplace.db.base import Base
from marketplace.infrastructure.database import (
    DatabaseSessionManager, enable_sqlite_foreign_keys, get_db,
)
from marketplace.infrastructure.file_storage import AttachmentStorage, get_attachment_storage
from marketplace.infrastructure.security import create_access_token
from marketplace.main import app
from marketplace.models import CartItem, Item, Message, User

_BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def attachment_storage(tmp_path):
    return AttachmentStorage(Settings(upload_dir=tmp_path))


@pytest.fixture
async def client(test_engine, test_session_factory, attachment_storage):
    """FastAPI test client with DB and storage dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attachment_storage] = lambda: attachment_storage

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Factories ───────────────────────────────────────────────────

@pytest.fixture
def make_user(test_db):
    counter = {"n": 0}

    async def _make(name: str | None = None, **fields) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=fields.pop("email", f"user{n}@campus.edu"),
            college_id=fields.pop("college_id", f"C-{n:04d}"),
            **fields,
        )
        test_db.add(user)
        await test_db.commit()
        return user

    return _make


@pytest.fixture
def make_item(test_db):
    """Items get increasing created_at so newest-first ordering is deterministic."""
    counter = {"n": 0}

    async def _make(owner: User, item_type: str = "sell", price: str | None = "15.00", **fields) -> Item:
        counter["n"] += 1
        item = Item(
            user_id=owner.id,
            title=fields.pop("title", f"Item {counter['n']}"),
            description=fields.pop("description", "Gently used"),
            category=fields.pop("category", "books"),
            image_url=fields.pop("image_url", "https://img.example/item.jpg"),
            item_type=item_type,
            price=Decimal(price) if item_type == "sell" and price is not None else None,
            expected_exchange=(
                fields.pop("expected_exchange", "A desk lamp") if item_type == "barter" else None
            ),
            created_at=_BASE_TIME + timedelta(minutes=counter["n"]),
            **fields,
        )
        test_db.add(item)
        await test_db.commit()
        return item

    return _make


@pytest.fixture
def add_to_cart(test_db):
    counter = {"n": 0}

    async def _add(user: User, item: Item) -> CartItem:
        counter["n"] += 1
        entry = CartItem(
            user_id=user.id, item_id=item.id,
            created_at=_BASE_TIME + timedelta(seconds=counter["n"]),
        )
        test_db.add(entry)
        await test_db.commit()
        return entry

    return _add


@pytest.fixture
def make_message(test_db):
    counter = {"n": 0}

    async def _make(sender: User, receiver: User, item: Item, text: str = "Is this available?") -> Message:
        counter["n"] += 1
        message = Message(
            sender_id=sender.id, receiver_id=receiver.id, item_id=item.id,
            message_text=text,
            created_at=_BASE_TIME + timedelta(minutes=counter["n"]),
        )
        test_db.add(message)
        await test_db.commit()
        return message

    return _make


@pytest.fixture
def auth_headers():
    """Bearer header builder for a given user."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
async def seller(make_user):
    return await make_user("Sam Seller")


@pytest.fixture
async def buyer(make_user):
    return await make_user("Bea Buyer")


@pytest.fixture
async def other_buyer(make_user):
    return await make_user("Otto Buyer")
