"""
Twinshot Backend — Friendship Service
=======================================

What:  The friendship state machine plus friend/request listings and search.

State machine (per ordered pair owner → target):

    none ──request──▶ pending ──accept (by target)──▶ accepted (+ reciprocal)
                         │
                         └──decline (by target)──▶ declined

    unfriend: deletes both directional edges regardless of status → none

Re-requesting after a decline:
    A declined edge does not block a new request. Sending a request while
    only declined edges exist between the pair removes them and creates a
    fresh pending edge. Pending or accepted edges in either direction make a
    new request a ConflictError.
"""

import logging
from typing import List

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from app.models.account import Account
from app.models.friendship import Friendship, FriendshipStatus
from app.schemas.account import PublicAccount
from app.schemas.friendship import FriendRequestItem, FriendResponse

logger = logging.getLogger(__name__)

RESPONSE_STATUSES = {FriendshipStatus.ACCEPTED.value, FriendshipStatus.DECLINED.value}


def _between(a: int, b: int):
    """Filter matching the edges a → b and b → a."""
    return or_(
        and_(Friendship.owner_id == a, Friendship.target_id == b),
        and_(Friendship.owner_id == b, Friendship.target_id == a),
    )


class FriendshipService:
    """Stateless; every method receives the request's session."""

    async def list_friends(self, db: AsyncSession, account_id: int) -> List[FriendResponse]:
        """Accounts the caller has an accepted edge toward."""
        stmt = (
            select(Account, Friendship)
            .join(Friendship, Friendship.target_id == Account.id)
            .where(
                Friendship.owner_id == account_id,
                Friendship.status == FriendshipStatus.ACCEPTED.value,
            )
            .order_by(Account.username)
        )
        try:
            rows = (await db.execute(stmt)).all()
        except SQLAlchemyError as e:
            logger.error("Database error listing friends of %s: %s", account_id, str(e))
            raise StorageError(context={"account_id": account_id})

        return [
            FriendResponse(
                id=account.id,
                username=account.username,
                display_name=account.display_name,
                avatar_url=account.avatar_url,
                status=edge.status,
                created_at=edge.created_at,
            )
            for account, edge in rows
        ]

    async def list_pending_requests(
        self, db: AsyncSession, account_id: int
    ) -> List[FriendRequestItem]:
        """Pending edges addressed to the caller, newest first."""
        stmt = (
            select(Account, Friendship)
            .join(Friendship, Friendship.owner_id == Account.id)
            .where(
                Friendship.target_id == account_id,
                Friendship.status == FriendshipStatus.PENDING.value,
            )
            .order_by(Friendship.created_at.desc(), Friendship.id.desc())
        )
        try:
            rows = (await db.execute(stmt)).all()
        except SQLAlchemyError as e:
            logger.error("Database error listing requests for %s: %s", account_id, str(e))
            raise StorageError(context={"account_id": account_id})

        return [
            FriendRequestItem(
                id=account.id,
                username=account.username,
                display_name=account.display_name,
                avatar_url=account.avatar_url,
                created_at=edge.created_at,
            )
            for account, edge in rows
        ]

    async def search(self, db: AsyncSession, account_id: int, query: str) -> List[PublicAccount]:
        """
        Case-insensitive substring match on username or display name.

        The caller is excluded. LIKE wildcards in `query` are matched literally.
        """
        needle = (query or "").strip().lower()
        if not needle:
            raise ValidationError(message="Search query required", field="query")

        stmt = (
            select(Account)
            .where(
                Account.id != account_id,
                or_(
                    func.lower(Account.username).contains(needle, autoescape=True),
                    func.lower(Account.display_name).contains(needle, autoescape=True),
                ),
            )
            .order_by(Account.username)
        )
        try:
            accounts = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error searching accounts: %s", str(e))
            raise StorageError(context={"operation": "search"})

        return [PublicAccount.model_validate(a) for a in accounts]

    async def send_request(self, db: AsyncSession, owner_id: int, target_id: int) -> Friendship:
        """
        none → pending.

        Raises:
            ValidationError: requesting yourself
            NotFoundError:   target account does not exist
            ConflictError:   a pending or accepted edge already links the pair
        """
        if owner_id == target_id:
            raise ValidationError(message="Cannot add yourself as friend", field="friend_id")

        try:
            if await db.get(Account, target_id) is None:
                raise NotFoundError(resource="account", resource_id=str(target_id))

            edges = (
                await db.execute(select(Friendship).where(_between(owner_id, target_id)))
            ).scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error loading edges %s↔%s: %s", owner_id, target_id, str(e))
            raise StorageError(context={"operation": "friend_request"})

        live = [e for e in edges if e.status != FriendshipStatus.DECLINED.value]
        if live:
            raise ConflictError(
                message="Friend request already exists",
                context={"status": live[0].status},
            )

        edge = Friendship(
            owner_id=owner_id,
            target_id=target_id,
            status=FriendshipStatus.PENDING.value,
        )
        try:
            # Only declined edges remain (or none): clear them for a fresh
            # request. Flushed first so the DELETE precedes the INSERT.
            if edges:
                for declined in edges:
                    await db.delete(declined)
                await db.flush()

            db.add(edge)
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(message="Friend request already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating request %s→%s: %s", owner_id, target_id, str(e))
            raise StorageError(context={"operation": "friend_request"})

        logger.info("Friend request %s → %s", owner_id, target_id)
        return edge

    async def respond(
        self,
        db: AsyncSession,
        account_id: int,
        requester_id: int,
        status: str,
    ) -> Friendship:
        """
        pending → accepted | declined, performed by the target of the edge.

        On acceptance the reciprocal edge (account → requester) is inserted
        as accepted, or upgraded to accepted if a row already exists.

        Raises:
            ValidationError: status is not 'accepted' or 'declined'
            NotFoundError:   no pending request from `requester_id`
        """
        status = (status or "").strip().lower()
        if status not in RESPONSE_STATUSES:
            raise ValidationError(
                message="Invalid status",
                field="status",
                context={"allowed": sorted(RESPONSE_STATUSES)},
            )

        stmt = select(Friendship).where(
            Friendship.owner_id == requester_id,
            Friendship.target_id == account_id,
            Friendship.status == FriendshipStatus.PENDING.value,
        )
        try:
            edge = (await db.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading request %s→%s: %s", requester_id, account_id, str(e))
            raise StorageError(context={"operation": "friend_respond"})

        if edge is None:
            raise NotFoundError(resource="friend request", resource_id=str(requester_id))

        edge.status = status

        try:
            if status == FriendshipStatus.ACCEPTED.value:
                await self._ensure_reciprocal(db, account_id, requester_id)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error answering request %s→%s: %s", requester_id, account_id, str(e))
            raise StorageError(context={"operation": "friend_respond"})

        logger.info("Friend request %s → %s %s", requester_id, account_id, status)
        return edge

    async def _ensure_reciprocal(self, db: AsyncSession, owner_id: int, target_id: int) -> None:
        """Insert-if-absent of an accepted edge owner → target."""
        stmt = select(Friendship).where(
            Friendship.owner_id == owner_id,
            Friendship.target_id == target_id,
        )
        reciprocal = (await db.execute(stmt)).scalar_one_or_none()
        if reciprocal is None:
            db.add(
                Friendship(
                    owner_id=owner_id,
                    target_id=target_id,
                    status=FriendshipStatus.ACCEPTED.value,
                )
            )
        else:
            reciprocal.status = FriendshipStatus.ACCEPTED.value

    async def remove(self, db: AsyncSession, account_id: int, friend_id: int) -> int:
        """
        Unfriend: delete both directional edges in any status.

        Returns the number of rows removed (0 when nothing linked the pair).
        """
        try:
            result = await db.execute(delete(Friendship).where(_between(account_id, friend_id)))
        except SQLAlchemyError as e:
            logger.error("Database error removing %s↔%s: %s", account_id, friend_id, str(e))
            raise StorageError(context={"operation": "unfriend"})

        logger.info("Friendship %s ↔ %s removed (%d rows)", account_id, friend_id, result.rowcount)
        return result.rowcount


# ── Singleton Instance ────────────────────────────────────────────────────
friendship_service = FriendshipService()
