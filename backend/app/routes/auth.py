"""
Twinshot Backend — Authentication Routes
==========================================

What:  POST /auth/register and POST /auth/login.
How:   Thin handlers: parse the JSON body, delegate to AccountService, return
       the signed token plus the account.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db_session
from app.dependencies import get_settings
from app.schemas.account import AuthResponse, LoginRequest, RegisterRequest
from app.schemas.common import ErrorResponse
from app.services.account_service import account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Password too short", "model": ErrorResponse},
        409: {"description": "Email, username or phone taken", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_settings),
) -> AuthResponse:
    return await account_service.register(db, data, config)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for a bearer token",
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_settings),
) -> AuthResponse:
    return await account_service.login(db, data, config)
