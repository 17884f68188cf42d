"""Message Authorization — who may message whom about an item.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Messages addressed to the item owner are always permitted (this is how a
      buyer opens a thread)
    - The owner may reply to a user only after that user has messaged the owner
      about the same item
    - Threads exist only between the owner and one other user; a message where
      neither side is the owner is never permitted
    - Nothing here is cached: the caller re-derives buyer_initiated from the
      message log on every send

Design Decisions:
    - classify_message_route is split from check_message_permission so the shell
      only queries message history for owner replies
    - Self-messaging by the owner classifies as TO_OWNER and is permitted
"""

from enum import Enum
from uuid import UUID


class MessageRoute(str, Enum):
    """Direction of a prospective message relative to the item owner."""
    TO_OWNER = "to_owner"
    OWNER_REPLY = "owner_reply"
    BETWEEN_NON_OWNERS = "between_non_owners"


OWNER_REPLY_DENIED = "You can only reply to users who have contacted you about this item"
NON_OWNER_DENIED = "You can only message the item owner"


def classify_message_route(owner_id: UUID, sender_id: UUID, receiver_id: UUID) -> MessageRoute:
    """Rule order matters: receiver == owner is checked first."""
    if receiver_id == owner_id:
        return MessageRoute.TO_OWNER
    if sender_id == owner_id:
        return MessageRoute.OWNER_REPLY
    return MessageRoute.BETWEEN_NON_OWNERS


def check_message_permission(route: MessageRoute, buyer_initiated: bool) -> str | None:
    """Return a denial message, or None when the message may be created.

    buyer_initiated: a message on the item exists from the receiver to the owner.
    Only consulted for OWNER_REPLY.
    """
    if route is MessageRoute.TO_OWNER:
        return None
    if route is MessageRoute.OWNER_REPLY:
        return None if buyer_initiated else OWNER_REPLY_DENIED
    return NON_OWNER_DENIED


def can_view_item_thread(owner_id: UUID, viewer_id: UUID, visible_message_count: int) -> bool:
    """The owner always sees the item's threads; others only once they took part."""
    return viewer_id == owner_id or visible_message_count > 0
