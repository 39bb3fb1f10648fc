"""
Pydantic models for users, registration, login and token responses.

Passwords are accepted on registration and login only and are never
part of a response shape.
"""

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


Role = Literal["customer", "provider"]


def _clean_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("Name must be at least 2 characters")
    return v


class UserRegister(BaseModel):
    """Schema for registering a user."""

    name: str = Field(..., min_length=2, examples=["Jane Doe"])
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=6, examples=["s3cret!"])
    role: Role = Field(..., description="Either 'customer' or 'provider'")
    phone: Optional[str] = None
    location: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _clean_name(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class UserRead(BaseModel):
    """Schema for reading a user (profile) from the API."""

    id: int
    name: str
    email: str
    role: Role
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    rating: float = 0
    is_verified: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class ProfileUpdate(BaseModel):
    """Partial profile update; only provided fields are written."""

    name: Optional[str] = Field(None, min_length=2)
    phone: Optional[str] = None
    location: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_name(v)


class TokenPairRead(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class AuthResult(TokenPairRead):
    user: UserRead
