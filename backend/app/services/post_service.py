"""
Twinshot Backend — Post Service (Daily-Post Admission and Feed)
=================================================================

What:  Admits at most one post per account per calendar day, builds the
       composite, and answers the own-posts and friend-feed queries.
Who:   Called by the posts/feed routes and by ReactionService (post lookup).

Admission Flow (POST /posts):
    ┌──────────┐   ┌────────────┐   ┌──────────┐   ┌───────────┐   ┌──────────┐
    │ Validate │──▶│ Same-day   │──▶│ Store    │──▶│ Composite │──▶│ Insert   │
    │ uploads  │   │ pre-check  │   │ raw      │   │ (thread)  │   │ Post row │
    └──────────┘   └────────────┘   └──────────┘   └───────────┘   └──────────┘

    - Pre-check hit → DuplicatePostError; nothing has been written yet.
    - Composite failure → CompositionFailedError; no Post row.
    - Insert rejected by UNIQUE(owner_id, post_date) → DuplicatePostError.
      This is the case where two requests from the same account both passed
      the pre-check; only the first commit wins.
    In both failure cases after files were written, those files are removed
    best-effort. Any that survive are unreferenced orphans.

Calendar day:
    "Today" is the server's local date, taken from an injectable clock
    (default `datetime.now`). It is a calendar day, not a rolling 24 hours.
"""

import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    CompositionFailedError,
    DuplicatePostError,
    FileStorageError,
    NotFoundError,
    StorageError,
)
from app.models.account import Account
from app.models.friendship import Friendship, FriendshipStatus
from app.models.post import Post
from app.schemas.post import FeedItem, PostCreatedResponse, PostResponse
from app.services.file_service import FileService, ImageUpload
from app.services.image_service import image_compositor

logger = logging.getLogger(__name__)

COMPOSITE_EXTENSION = ".png"


class PostService:
    """
    Business logic for daily posts.

    Args:
        clock: Returns the current local time. Tests pass a fixed clock to
               simulate specific days.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self.now().date()

    async def has_posted_on(self, db: AsyncSession, owner_id: int, day: date) -> bool:
        stmt = select(Post.id).where(Post.owner_id == owner_id, Post.post_date == day).limit(1)
        try:
            return (await db.execute(stmt)).scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            logger.error("Database error checking daily post for %s: %s", owner_id, str(e))
            raise StorageError(context={"owner_id": owner_id})

    async def create_post(
        self,
        db: AsyncSession,
        files: FileService,
        owner_id: int,
        front: ImageUpload,
        back: ImageUpload,
        caption: Optional[str] = None,
    ) -> PostCreatedResponse:
        """
        Run the admission rule and persist the post.

        `files` is the application's FileService; captures and the composite
        are stored under its root in the post's own YYYY/MM/DD directory.

        Raises:
            ValidationError:        bad extension or size on either capture
            DuplicatePostError:     already posted today (pre-check or constraint)
            CompositionFailedError: captures could not be combined
            FileStorageError:       raw capture could not be written
            StorageError:           database failure
        """
        front_ext = files.validate_upload(front, "front_image")
        back_ext = files.validate_upload(back, "back_image")

        now_local = self.now()
        day = now_local.date()

        if await self.has_posted_on(db, owner_id, day):
            logger.info("Post rejected: account %s already posted on %s", owner_id, day)
            raise DuplicatePostError(post_date=day)

        written: List[str] = []
        try:
            front_abs, front_rel = await files.store_file(front.content, front_ext, day)
            written.append(front_abs)
            back_abs, back_rel = await files.store_file(back.content, back_ext, day)
            written.append(back_abs)

            composite_abs, composite_rel = files.allocate_path(COMPOSITE_EXTENSION, day)
            written.append(str(composite_abs))
            await image_compositor.compose_async(front_abs, back_abs, composite_abs)
        except (CompositionFailedError, FileStorageError):
            await self._discard(files, written)
            raise

        post = Post(
            owner_id=owner_id,
            front_image_path=front_rel,
            back_image_path=back_rel,
            composite_image_path=composite_rel,
            caption=caption,
            post_date=day,
            created_at=now_local.astimezone(timezone.utc),
        )
        db.add(post)
        try:
            await db.flush()
        except IntegrityError:
            # A concurrent request for the same account and day committed first
            await db.rollback()
            await self._discard(files, written)
            logger.info("Post rejected by unique constraint: account %s on %s", owner_id, day)
            raise DuplicatePostError(post_date=day)
        except SQLAlchemyError as e:
            await self._discard(files, written)
            logger.error("Database error saving post for %s: %s", owner_id, str(e))
            raise StorageError(context={"owner_id": owner_id})

        logger.info("Post %s created for account %s on %s", post.id, owner_id, day)
        return PostCreatedResponse(post_id=post.id, post=PostResponse.model_validate(post))

    async def _discard(self, files: FileService, paths: List[str]) -> None:
        for path in paths:
            await files.cleanup_file(path)

    async def get_post(self, db: AsyncSession, post_id: int) -> Post:
        try:
            post = await db.get(Post, post_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise StorageError(context={"post_id": post_id})
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post

    async def list_own_posts(self, db: AsyncSession, owner_id: int) -> List[PostResponse]:
        """Every post by `owner_id`, newest first."""
        stmt = (
            select(Post)
            .where(Post.owner_id == owner_id)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        try:
            posts = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing posts of %s: %s", owner_id, str(e))
            raise StorageError(context={"owner_id": owner_id})
        return [PostResponse.model_validate(p) for p in posts]

    async def get_feed(self, db: AsyncSession, viewer_id: int) -> List[FeedItem]:
        """
        Today's posts by accounts the viewer has an accepted edge toward.

        Query plan:
            posts ⋈ accounts (author) ⋈ friendships
              ON friendships.owner_id = :viewer
             AND friendships.target_id = posts.owner_id
             AND friendships.status = 'accepted'
            WHERE posts.post_date = :today
            ORDER BY created_at DESC, id DESC
        """
        day = self.today()
        stmt = (
            select(Post, Account)
            .join(Account, Account.id == Post.owner_id)
            .join(
                Friendship,
                and_(
                    Friendship.target_id == Post.owner_id,
                    Friendship.owner_id == viewer_id,
                    Friendship.status == FriendshipStatus.ACCEPTED.value,
                ),
            )
            .where(Post.post_date == day)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        try:
            rows = (await db.execute(stmt)).all()
        except SQLAlchemyError as e:
            logger.error("Database error building feed for %s: %s", viewer_id, str(e))
            raise StorageError(context={"viewer_id": viewer_id})

        return [
            FeedItem(
                **PostResponse.model_validate(post).model_dump(),
                username=author.username,
                display_name=author.display_name,
                avatar_url=author.avatar_url,
            )
            for post, author in rows
        ]


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
