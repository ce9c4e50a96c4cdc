"""
Twinshot Backend — Account Service
====================================

What:  Registration, credential checks, token issuance and profile edits.
How:   Uniqueness of email, username and phone is checked up front for a
       precise error message; the database unique constraints remain the
       final word and an IntegrityError on insert is reported the same way.
Who:   Called by the auth and users routes and by the current-account
       dependency.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, settings as default_settings
from app.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from app.models.account import Account
from app.schemas.account import (
    AccountResponse,
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)
from app.security import create_access_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)


class AccountService:
    """
    Business logic for accounts. Stateless; the session is passed per call.
    """

    def issue_token(self, account: Account, config: Optional[Settings] = None) -> str:
        return create_access_token(
            account.id,
            claims={"email": account.email, "username": account.username},
            config=config,
        )

    def _auth_response(self, account: Account, config: Optional[Settings]) -> AuthResponse:
        return AuthResponse(
            token=self.issue_token(account, config),
            user=AccountResponse.model_validate(account),
        )

    async def register(
        self,
        db: AsyncSession,
        data: RegisterRequest,
        config: Optional[Settings] = None,
    ) -> AuthResponse:
        """
        Create an account and sign its first token.

        Raises:
            ValidationError: password shorter than the configured minimum
            ConflictError:   email, username or phone already taken
            StorageError:    database failure
        """
        min_length = (config or default_settings).min_password_length
        if len(data.password) < min_length:
            raise ValidationError(
                message=f"Password must be at least {min_length} characters",
                field="password",
            )

        try:
            conditions = [Account.email == data.email, Account.username == data.username]
            if data.phone:
                conditions.append(Account.phone == data.phone)
            result = await db.execute(select(Account).where(or_(*conditions)))
            existing = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Database error checking account uniqueness: %s", str(e))
            raise StorageError(context={"operation": "register"})

        if existing is not None:
            raise ConflictError(
                message="Email, username or phone already exists",
                context={"field": self._conflicting_field(existing, data)},
            )

        account = Account(
            email=data.email,
            phone=data.phone,
            username=data.username,
            display_name=data.display_name,
            password_hash=get_password_hash(data.password),
        )
        db.add(account)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(message="Email, username or phone already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating account: %s", str(e))
            raise StorageError(context={"operation": "register"})

        logger.info("Account registered: id=%s username=%s", account.id, account.username)
        return self._auth_response(account, config)

    @staticmethod
    def _conflicting_field(existing: Account, data: RegisterRequest) -> str:
        if existing.email == data.email:
            return "email"
        if existing.username == data.username:
            return "username"
        return "phone"

    async def login(
        self,
        db: AsyncSession,
        data: LoginRequest,
        config: Optional[Settings] = None,
    ) -> AuthResponse:
        """
        Verify email + password and sign a token.

        Raises:
            UnauthorizedError: unknown email or wrong password (same message)
        """
        try:
            result = await db.execute(select(Account).where(Account.email == data.email))
            account = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise StorageError(context={"operation": "login"})

        if account is None or not verify_password(data.password, account.password_hash):
            logger.info("Failed login attempt for %s", data.email)
            raise UnauthorizedError(message="Invalid credentials")

        return self._auth_response(account, config)

    async def get_account(self, db: AsyncSession, account_id: int) -> Account:
        try:
            account = await db.get(Account, account_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching account %s: %s", account_id, str(e))
            raise StorageError(context={"account_id": account_id})
        if account is None:
            raise NotFoundError(resource="account", resource_id=str(account_id))
        return account

    async def update_profile(
        self,
        db: AsyncSession,
        account: Account,
        data: ProfileUpdateRequest,
    ) -> AccountResponse:
        """Apply the fields present in `data`; absent fields are untouched."""
        changes = data.model_dump(exclude_unset=True)
        if "display_name" in changes and not (changes["display_name"] or "").strip():
            raise ValidationError(message="Display name must not be blank", field="display_name")

        for field, value in changes.items():
            setattr(account, field, value.strip() if isinstance(value, str) else value)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating profile %s: %s", account.id, str(e))
            raise StorageError(context={"account_id": account.id})

        logger.info("Profile updated: id=%s fields=%s", account.id, sorted(changes))
        return AccountResponse.model_validate(account)


# ── Singleton Instance ────────────────────────────────────────────────────
account_service = AccountService()
