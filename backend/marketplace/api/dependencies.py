"""Request Dependencies — bearer-token authentication.

Invariants:
    - Missing Authorization header -> 401 "No token provided"
    - Invalid/expired token or a token for a deleted user -> 401 "Invalid or expired token"
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import AuthenticationError
from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.security import decode_access_token
from marketplace.models import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("No token provided")
    user_id = decode_access_token(credentials.credentials)
    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError()
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
