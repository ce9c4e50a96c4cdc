"""
Twinshot Backend — Daily Prompt Service
=========================================

One mutable string shown to every user, stored as the `daily_prompt` row of
the meta table. Reads fall back to the configured default when unset.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import StorageError, ValidationError
from app.models.meta import DAILY_PROMPT_KEY, Meta

logger = logging.getLogger(__name__)


class PromptService:

    async def _row(self, db: AsyncSession):
        return (
            await db.execute(select(Meta).where(Meta.key == DAILY_PROMPT_KEY))
        ).scalar_one_or_none()

    async def get_prompt(self, db: AsyncSession, default: str) -> str:
        try:
            row = await self._row(db)
        except SQLAlchemyError as e:
            logger.error("Database error reading daily prompt: %s", str(e))
            raise StorageError(context={"key": DAILY_PROMPT_KEY})
        return row.value if row is not None else default

    async def set_prompt(self, db: AsyncSession, prompt: str) -> str:
        """Upsert the prompt. Raises ValidationError when blank."""
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValidationError(message="Prompt required", field="prompt")

        try:
            row = await self._row(db)
            if row is None:
                db.add(Meta(key=DAILY_PROMPT_KEY, value=prompt))
            else:
                row.value = prompt
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error writing daily prompt: %s", str(e))
            raise StorageError(context={"key": DAILY_PROMPT_KEY})

        logger.info("Daily prompt updated")
        return prompt


# ── Singleton Instance ────────────────────────────────────────────────────
prompt_service = PromptService()
