"""
Twinshot Backend — Account Schemas
===================================

What:  Request bodies for register/login/profile edit and the public shapes
       an account is exposed in. `password_hash` never appears here.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=32)
    username: str = Field(min_length=1, max_length=50)
    display_name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=256)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        """Addresses are stored lower-cased."""
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("username", "display_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be blank")
        return v

    @field_validator("phone")
    @classmethod
    def blank_phone_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ProfileUpdateRequest(BaseModel):
    """Only fields present in the request body are changed."""
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    avatar_url: Optional[str] = Field(default=None, max_length=500)


class PublicAccount(BaseModel):
    """What other users see: search results, feed authors."""
    id: int
    username: str
    display_name: str
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class AccountResponse(PublicAccount):
    """What an account sees about itself."""
    email: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    """Returned by register and login."""
    token: str = Field(description="Bearer access token (JWT)")
    token_type: str = Field(default="bearer")
    user: AccountResponse
