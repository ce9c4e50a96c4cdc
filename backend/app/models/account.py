"""
Twinshot Backend — Account SQLAlchemy Model
=============================================

What:  ORM model for the `accounts` table: identity plus credential hash.

Table notes:
    - email, username: globally unique (enforced by unique constraints)
    - phone: optional, unique when present (NULLs never collide)
    - password_hash: bcrypt hash, never returned by the API
    - avatar_url: free-form reference set through profile edit
    - Accounts are never hard-deleted
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    """A registered user of the app."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.current_timestamp(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.current_timestamp(),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, username='{self.username}')>"
