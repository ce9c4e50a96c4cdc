"""
Twinshot Backend — ORM Models
==============================

Importing this package registers every table on `app.database.Base.metadata`
(used by `Database.create_all()` and Alembic autogenerate).
"""

from app.models.account import Account
from app.models.friendship import Friendship, FriendshipStatus
from app.models.post import Post
from app.models.reaction import Reaction, Report
from app.models.meta import Meta

__all__ = [
    "Account",
    "Friendship",
    "FriendshipStatus",
    "Post",
    "Reaction",
    "Report",
    "Meta",
]
