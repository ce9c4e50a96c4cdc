"""
Twinshot Backend — Friendship Schemas
======================================
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class FriendRequestCreate(BaseModel):
    friend_id: int = Field(description="Account to send the request to")


class FriendSearchRequest(BaseModel):
    """Body form of the account search, as sent by the mobile client."""
    query: str = Field(default="", max_length=100, description="Case-insensitive substring")


class FriendRespondRequest(BaseModel):
    friend_id: int = Field(description="Account that sent the pending request")
    # Checked by the service so an unknown value is a 400 with a clear message
    status: str = Field(description="'accepted' or 'declined'")


class FriendResponse(BaseModel):
    """An entry in the caller's friend list."""
    id: int
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


class FriendRequestItem(BaseModel):
    """A pending request addressed to the caller; `id` is the requester."""
    id: int
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
