"""
Twinshot Backend — Post, Reaction and Report Schemas
=====================================================

Image fields are relative paths under the storage root; clients fetch them
from `/uploads/<path>`.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class PostResponse(BaseModel):
    id: int
    owner_id: int
    front_image_path: str
    back_image_path: str
    composite_image_path: str
    caption: Optional[str] = None
    post_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class FeedItem(PostResponse):
    """A friend's post for today, with its author's public profile."""
    username: str
    display_name: str
    avatar_url: Optional[str] = None


class PostCreatedResponse(BaseModel):
    message: str = Field(default="Post created successfully")
    post_id: int
    post: PostResponse


class ReactionCreate(BaseModel):
    post_id: int
    reaction_type: Optional[str] = Field(
        default=None,
        max_length=32,
        description="Reaction kind; defaults to 'like'",
    )


class ReactionResponse(BaseModel):
    post_id: int
    account_id: int
    kind: str

    model_config = {"from_attributes": True}


class ReportCreate(BaseModel):
    post_id: int
    reason: str = Field(max_length=2000)
