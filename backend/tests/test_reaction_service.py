"""
Twinshot Backend — Reaction, Report and Prompt Service Tests
"""

from datetime import date, datetime

import pytest
from sqlalchemy import select

from app.exceptions import NotFoundError, ValidationError
from app.models.post import Post
from app.models.reaction import Reaction, Report
from app.services.prompt_service import PromptService
from app.services.reaction_service import ReactionService


@pytest.fixture
def service():
    return ReactionService()


@pytest.fixture
def make_post(db_session):
    async def _make(owner_id: int) -> Post:
        post = Post(
            owner_id=owner_id,
            front_image_path="f.jpg",
            back_image_path="b.jpg",
            composite_image_path="c.png",
            post_date=date(2024, 1, 15),
            created_at=datetime(2024, 1, 15, 8, 0),
        )
        db_session.add(post)
        await db_session.flush()
        return post

    return _make


class TestReactions:

    @pytest.mark.asyncio
    async def test_default_kind_is_like(self, db_session, make_account, make_post, service):
        alice = await make_account("alice")
        post = await make_post(alice.id)

        reaction = await service.add_reaction(db_session, alice.id, post.id)

        assert reaction.kind == "like"
        assert reaction.post_id == post.id

    @pytest.mark.asyncio
    async def test_last_write_wins(self, db_session, make_account, make_post, service):
        alice = await make_account("alice")
        bob = await make_account("bob")
        post = await make_post(alice.id)

        await service.add_reaction(db_session, bob.id, post.id, "like")
        await service.add_reaction(db_session, bob.id, post.id, "fire")

        rows = (await db_session.execute(select(Reaction))).scalars().all()
        assert [(r.account_id, r.kind) for r in rows] == [(bob.id, "fire")]

    @pytest.mark.asyncio
    async def test_unknown_post(self, db_session, make_account, service):
        alice = await make_account("alice")
        with pytest.raises(NotFoundError):
            await service.add_reaction(db_session, alice.id, 999, "like")

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, db_session, make_account, make_post, service):
        alice = await make_account("alice")
        post = await make_post(alice.id)
        await service.add_reaction(db_session, alice.id, post.id)

        assert await service.remove_reaction(db_session, alice.id, post.id) is True
        assert await service.remove_reaction(db_session, alice.id, post.id) is False


class TestReports:

    @pytest.mark.asyncio
    async def test_reports_are_appended(self, db_session, make_account, make_post, service):
        alice = await make_account("alice")
        bob = await make_account("bob")
        post = await make_post(alice.id)

        await service.submit_report(db_session, bob.id, post.id, "spam")
        await service.submit_report(db_session, bob.id, post.id, "still spam")

        reasons = (await db_session.execute(select(Report.reason))).scalars().all()
        assert sorted(reasons) == ["spam", "still spam"]

    @pytest.mark.asyncio
    async def test_blank_reason_rejected(self, db_session, make_account, make_post, service):
        alice = await make_account("alice")
        post = await make_post(alice.id)
        with pytest.raises(ValidationError):
            await service.submit_report(db_session, alice.id, post.id, "  ")

    @pytest.mark.asyncio
    async def test_unknown_post(self, db_session, make_account, service):
        alice = await make_account("alice")
        with pytest.raises(NotFoundError):
            await service.submit_report(db_session, alice.id, 999, "spam")


class TestPrompt:

    @pytest.mark.asyncio
    async def test_default_until_set_then_upserted(self, db_session):
        service = PromptService()
        assert await service.get_prompt(db_session, "fallback") == "fallback"

        await service.set_prompt(db_session, "What's for lunch?")
        await service.set_prompt(db_session, "  Show your desk  ")

        assert await service.get_prompt(db_session, "fallback") == "Show your desk"

    @pytest.mark.asyncio
    async def test_blank_prompt_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await PromptService().set_prompt(db_session, "")
