"""User Schemas — signup/login payloads and public user shapes.

Invariants:
    - No response model exposes password_hash or google_id
    - name and college_id are stripped and non-empty
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class SignupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(min_length=1, max_length=200)
    college_id: str = Field(min_length=1, max_length=100)

    @field_validator("name", "college_id")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty or whitespace")
        return v


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class GoogleLoginRequest(BaseModel):
    token: str = Field(min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    college_id: str
    created_at: datetime


class AuthResponse(BaseModel):
    token: str
    user: UserResponse
