"""Credentials — bcrypt password hashing and JWT issue/verify.

Invariants:
    - Tokens carry {"userId": <uuid str>, "exp": <unix ts>} signed with session_secret
    - decode_access_token raises AuthenticationError for every invalid token shape
    - verify_password never raises on a malformed stored hash; it returns False
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from marketplace.config import get_settings
from marketplace.core.errors import AuthenticationError


def hash_password(password: str) -> str:
    rounds = get_settings().password_hash_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    expires_delta = expires_delta or timedelta(days=settings.access_token_expire_days)
    payload = {
        "userId": str(user_id),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """Return the user id carried by token."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token, settings.session_secret, algorithms=[settings.jwt_algorithm],
        )
        return UUID(payload["userId"])
    except (JWTError, KeyError, ValueError, TypeError):
        raise AuthenticationError()
