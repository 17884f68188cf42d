"""Accounts — signup, password login and external-identity find-or-create.

Invariants:
    - Emails are unique; signup with a taken email raises EmailAlreadyRegisteredError,
      including when the unique index rejects a concurrent insert
    - Password login fails identically for unknown email, password-less account
      and wrong password
    - External login resolution order: external id -> email (links the external
      id onto that user) -> new user without a password
"""

import logging
import secrets
import string
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import AuthenticationError, EmailAlreadyRegisteredError
from marketplace.infrastructure.google_identity import ExternalIdentity
from marketplace.infrastructure.security import hash_password, verify_password
from marketplace.models import User
from marketplace.schemas.user import SignupRequest

logger = logging.getLogger(__name__)

_COLLEGE_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_external_college_id() -> str:
    return "G-" + "".join(secrets.choice(_COLLEGE_ID_ALPHABET) for _ in range(9))


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: UUID) -> User | None:
    return await db.get(User, user_id)


async def signup(db: AsyncSession, body: SignupRequest) -> User:
    if await get_user_by_email(db, body.email):
        raise EmailAlreadyRegisteredError()
    user = User(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        college_id=body.college_id,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # a concurrent signup took the email between the lookup and the insert
        await db.rollback()
        raise EmailAlreadyRegisteredError()
    await db.refresh(user)
    logger.info("User signed up", extra={"user_id": user.id})
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if user is None or not user.password_hash:
        raise AuthenticationError("Invalid credentials")
    if not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return user


async def find_or_create_external_user(db: AsyncSession, identity: ExternalIdentity) -> User:
    result = await db.execute(select(User).where(User.google_id == identity.external_id))
    user = result.scalar_one_or_none()
    if user is not None:
        return user

    user = await get_user_by_email(db, identity.email)
    if user is not None:
        user.google_id = identity.external_id
        await db.commit()
        await db.refresh(user)
        logger.info("Linked external identity to existing user", extra={"user_id": user.id})
        return user

    user = User(
        name=identity.display_name or "Google User",
        email=identity.email,
        password_hash=None,
        google_id=identity.external_id,
        college_id=generate_external_college_id(),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("User created from external identity", extra={"user_id": user.id})
    return user
