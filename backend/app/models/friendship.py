"""
Twinshot Backend — Friendship SQLAlchemy Model
================================================

What:  One directed edge of the friendship graph.

Modelling:
    A request from A to B is the edge (owner=A, target=B, status=pending).
    When B accepts, that edge becomes accepted and the reciprocal edge
    (owner=B, target=A, status=accepted) is added, so a bidirectional
    friendship is two rows. Declining marks the edge declined and adds nothing.
    Unfriending deletes both rows.

    UNIQUE(owner_id, target_id) allows at most one edge per ordered pair.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class FriendshipStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Friendship(Base):
    """Directed friendship edge owner → target."""

    __tablename__ = "friendships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    target_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    # Stored as the plain string value so raw SQL and Alembic stay simple
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=FriendshipStatus.PENDING.value
    )

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

    __table_args__ = (
        UniqueConstraint("owner_id", "target_id", name="uq_friendships_owner_target"),
        Index("idx_friendships_target_status", "target_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Friendship(owner_id={self.owner_id}, target_id={self.target_id}, "
            f"status='{self.status}')>"
        )
