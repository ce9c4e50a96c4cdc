"""
Twinshot Backend — Post SQLAlchemy Model
==========================================

What:  ORM model for the `posts` table, the daily post ledger.

Table Design:
    - front/back/composite_image_path: relative paths under STORAGE_ROOT
      (format YYYY/MM/DD/<uuid>.<ext>)
    - post_date: the server-local calendar day the post was admitted on.
      It is stored rather than derived from created_at so that the
      UNIQUE(owner_id, post_date) constraint can be enforced by the database.
      That constraint is the authoritative one-post-per-day guard.
    - created_at: UTC instant, used for newest-first ordering
    - Posts are immutable after creation
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Post(Base):
    """One daily dual-camera post."""

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )

    front_image_path: Mapped[str] = mapped_column(String(255), nullable=False)
    back_image_path: Mapped[str] = mapped_column(String(255), nullable=False)
    composite_image_path: Mapped[str] = mapped_column(String(255), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    post_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.current_timestamp(),
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "post_date", name="uq_posts_owner_day"),
        Index("idx_posts_post_date", "post_date"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, owner_id={self.owner_id}, post_date='{self.post_date}')>"
