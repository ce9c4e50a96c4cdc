"""
Twinshot Backend — Profile Routes
===================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_account
from app.models.account import Account
from app.schemas.account import AccountResponse, ProfileUpdateRequest
from app.schemas.common import ErrorResponse
from app.services.account_service import account_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/profile",
    response_model=AccountResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="The caller's own profile",
)
async def get_profile(account: Account = Depends(get_current_account)) -> AccountResponse:
    return AccountResponse.model_validate(account)


@router.put(
    "/profile",
    response_model=AccountResponse,
    responses={
        400: {"description": "Blank display name", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
    },
    summary="Edit display name and/or avatar url",
)
async def update_profile(
    data: ProfileUpdateRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> AccountResponse:
    return await account_service.update_profile(db, account, data)
