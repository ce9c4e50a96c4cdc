"""
Twinshot Backend — Shared Route Dependencies
==============================================

What:  FastAPI dependencies for the application settings, its upload storage
       and the authenticated account behind a bearer token.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db_session
from app.exceptions import NotFoundError, UnauthorizedError
from app.models.account import Account
from app.security import decode_access_token
from app.services.account_service import account_service
from app.services.file_service import FileService

# auto_error=False: a missing header is reported through UnauthorizedError so
# it gets the same JSON body as every other 401.
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """The Settings instance the running app was created with."""
    return request.app.state.settings


def get_file_service(request: Request) -> FileService:
    """Upload storage rooted at the running app's STORAGE_ROOT."""
    return request.app.state.file_service


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_settings),
) -> Account:
    """
    Resolve `Authorization: Bearer <token>` to an Account.

    Raises:
        UnauthorizedError: header missing, token invalid/expired, or the
                           account it names no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(message="Access token required")

    account_id = decode_access_token(credentials.credentials, config)
    try:
        return await account_service.get_account(db, account_id)
    except NotFoundError:
        raise UnauthorizedError(message="Invalid or expired token")
