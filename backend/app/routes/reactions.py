"""
Twinshot Backend — Reaction and Report Routes
===============================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_account
from app.models.account import Account
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.post import ReactionCreate, ReactionResponse, ReportCreate
from app.services.reaction_service import reaction_service

router = APIRouter(tags=["Reactions"])


@router.post(
    "/reactions",
    response_model=ReactionResponse,
    responses={404: {"description": "Unknown post", "model": ErrorResponse}},
    summary="React to a post (replaces any earlier reaction)",
)
async def add_reaction(
    data: ReactionCreate,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> ReactionResponse:
    return await reaction_service.add_reaction(db, account.id, data.post_id, data.reaction_type)


@router.delete("/reactions/{post_id}", response_model=MessageResponse, summary="Remove your reaction")
async def remove_reaction(
    post_id: int,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await reaction_service.remove_reaction(db, account.id, post_id)
    return MessageResponse(message="Reaction removed")


@router.post(
    "/reports",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Blank reason", "model": ErrorResponse},
        404: {"description": "Unknown post", "model": ErrorResponse},
    },
    summary="Report a post",
)
async def report_post(
    data: ReportCreate,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await reaction_service.submit_report(db, account.id, data.post_id, data.reason)
    return MessageResponse(message="Report submitted")
