"""Auth Routes — signup, password login, Google sign-in, current user.

Invariants:
    - Every successful login/signup returns {token, user}; user never carries a hash
    - Password tokens live access_token_expire_days; Google tokens external_token_expire_hours
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import CurrentUser
from marketplace.config import get_settings
from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.google_identity import (
    GoogleIdentityVerifier, get_identity_verifier,
)
from marketplace.infrastructure.security import create_access_token
from marketplace.schemas.user import (
    AuthResponse, GoogleLoginRequest, LoginRequest, SignupRequest, UserResponse,
)
from marketplace.services import accounts

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, db: AsyncSession = Depends(get_db)):
    user = await accounts.signup(db, body)
    return AuthResponse(
        token=create_access_token(user.id), user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await accounts.authenticate(db, body.email, body.password)
    return AuthResponse(
        token=create_access_token(user.id), user=UserResponse.model_validate(user),
    )


@router.post("/google", response_model=AuthResponse)
async def google_login(
    body: GoogleLoginRequest,
    db: AsyncSession = Depends(get_db),
    verifier: GoogleIdentityVerifier = Depends(get_identity_verifier),
):
    identity = await verifier.verify(body.token)
    user = await accounts.find_or_create_external_user(db, identity)
    expires = timedelta(hours=get_settings().external_token_expire_hours)
    return AuthResponse(
        token=create_access_token(user.id, expires),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def me(current_user: CurrentUser):
    return current_user
