"""
Twinshot Backend — Daily Prompt Routes
========================================

Reading the prompt needs no token; changing it does.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db_session
from app.dependencies import get_current_account, get_settings
from app.models.account import Account
from app.schemas.common import ErrorResponse
from app.schemas.meta import PromptResponse, PromptUpdate
from app.services.prompt_service import prompt_service

router = APIRouter(prefix="/meta", tags=["Meta"])


@router.get("/daily-prompt", response_model=PromptResponse, summary="Current daily prompt")
async def get_daily_prompt(
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_settings),
) -> PromptResponse:
    prompt = await prompt_service.get_prompt(db, config.default_daily_prompt)
    return PromptResponse(prompt=prompt)


@router.put(
    "/daily-prompt",
    response_model=PromptResponse,
    responses={400: {"description": "Blank prompt", "model": ErrorResponse}},
    summary="Replace the daily prompt",
)
async def set_daily_prompt(
    data: PromptUpdate,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> PromptResponse:
    prompt = await prompt_service.set_prompt(db, data.prompt)
    return PromptResponse(prompt=prompt)
