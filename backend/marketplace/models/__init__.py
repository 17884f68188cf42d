"""ORM Models — SQLAlchemy declarative models for all marketplace entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every child row cascades from its parent at the FK level, except
      order_items.item_id which is SET NULL so purchase history survives

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from marketplace.models.user import User  # noqa: F401
from marketplace.models.item import Item  # noqa: F401
from marketplace.models.message import Message  # noqa: F401
from marketplace.models.cart_item import CartItem  # noqa: F401
from marketplace.models.wishlist_item import WishlistItem  # noqa: F401
from marketplace.models.order import Order, OrderItem  # noqa: F401
