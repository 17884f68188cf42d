"""Initial schema — users, items, messages, cart, wishlist, orders.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )


def _fk(column: str, target: str, ondelete: str = "CASCADE", nullable: bool = False) -> sa.Column:
    return sa.Column(
        column, UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete), nullable=nullable, index=True,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=True),
        sa.Column("google_id", sa.String(255), nullable=True, unique=True),
        sa.Column("college_id", sa.Text, nullable=False),
        _created_at(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _fk("user_id", "users.id"),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("category", sa.Text, nullable=False),
        sa.Column("image_url", sa.Text, nullable=False),
        sa.Column("item_type", sa.String(10), nullable=False),
        sa.Column("expected_exchange", sa.Text, nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_sold", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
        sa.CheckConstraint(
            "(item_type = 'sell' AND price IS NOT NULL AND expected_exchange IS NULL) OR "
            "(item_type = 'barter' AND expected_exchange IS NOT NULL AND price IS NULL)",
            name="ck_items_terms_match_type",
        ),
    )

    op.create_table(
        "messages",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _fk("sender_id", "users.id"),
        _fk("receiver_id", "users.id"),
        _fk("item_id", "items.id"),
        sa.Column("message_text", sa.Text, nullable=True),
        sa.Column("file_url", sa.Text, nullable=True),
        sa.Column("file_type", sa.String(20), nullable=True),
        sa.Column("file_name", sa.Text, nullable=True),
        _created_at(),
        sa.CheckConstraint(
            "message_text IS NOT NULL OR file_url IS NOT NULL",
            name="ck_messages_has_body",
        ),
    )

    for table in ("cart_items", "wishlist_items"):
        op.create_table(
            table,
            sa.Column("id", UUID(as_uuid=True), primary_key=True),
            _fk("user_id", "users.id"),
            _fk("item_id", "items.id"),
            _created_at(),
        )

    op.create_table(
        "orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _fk("user_id", "users.id"),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        _created_at(),
    )

    op.create_table(
        "order_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _fk("order_id", "orders.id"),
        _fk("item_id", "items.id", ondelete="SET NULL", nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("wishlist_items")
    op.drop_table("cart_items")
    op.drop_table("messages")
    op.drop_table("items")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
