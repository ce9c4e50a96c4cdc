"""
Twinshot Backend — Reaction and Report Service
================================================

Reactions are last-write-wins per (post, account): reacting again replaces
the kind of the existing row instead of adding a second one. Reports are
append-only.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import StorageError, ValidationError
from app.models.reaction import DEFAULT_REACTION_KIND, Reaction, Report
from app.schemas.post import ReactionResponse
from app.services.post_service import post_service

logger = logging.getLogger(__name__)


class ReactionService:

    async def add_reaction(
        self,
        db: AsyncSession,
        account_id: int,
        post_id: int,
        kind: Optional[str] = None,
    ) -> ReactionResponse:
        """
        Create or overwrite the caller's reaction on a post.

        Raises:
            NotFoundError: the post does not exist
        """
        kind = (kind or "").strip() or DEFAULT_REACTION_KIND
        await post_service.get_post(db, post_id)

        stmt = select(Reaction).where(
            Reaction.post_id == post_id,
            Reaction.account_id == account_id,
        )
        try:
            reaction = (await db.execute(stmt)).scalar_one_or_none()
            if reaction is None:
                reaction = Reaction(post_id=post_id, account_id=account_id, kind=kind)
                db.add(reaction)
            else:
                reaction.kind = kind
            await db.flush()
        except IntegrityError:
            # Lost a race with a parallel first reaction; overwrite the winner
            await db.rollback()
            reaction = (await db.execute(stmt)).scalar_one()
            reaction.kind = kind
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error reacting to post %s: %s", post_id, str(e))
            raise StorageError(context={"post_id": post_id})

        logger.info("Account %s reacted '%s' to post %s", account_id, kind, post_id)
        return ReactionResponse.model_validate(reaction)

    async def remove_reaction(self, db: AsyncSession, account_id: int, post_id: int) -> bool:
        """Delete the caller's reaction; returns False when there was none."""
        try:
            result = await db.execute(
                delete(Reaction).where(
                    Reaction.post_id == post_id,
                    Reaction.account_id == account_id,
                )
            )
        except SQLAlchemyError as e:
            logger.error("Database error removing reaction on %s: %s", post_id, str(e))
            raise StorageError(context={"post_id": post_id})
        return result.rowcount > 0

    async def submit_report(
        self,
        db: AsyncSession,
        reporter_id: int,
        post_id: int,
        reason: str,
    ) -> Report:
        """
        Raises:
            ValidationError: blank reason
            NotFoundError:   the post does not exist
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError(message="Post ID and reason required", field="reason")
        await post_service.get_post(db, post_id)

        report = Report(post_id=post_id, reporter_id=reporter_id, reason=reason)
        db.add(report)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error saving report on %s: %s", post_id, str(e))
            raise StorageError(context={"post_id": post_id})

        logger.warning("Post %s reported by account %s", post_id, reporter_id)
        return report


# ── Singleton Instance ────────────────────────────────────────────────────
reaction_service = ReactionService()
