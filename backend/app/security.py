"""
Twinshot Backend — Password Hashing and Access Tokens
======================================================

What:  bcrypt password hashing (passlib) and HS256 JWT issuance/verification
       (python-jose).
How:   Tokens carry `sub` (account id as a string), `email`, `username` and an
       `exp` claim. Decoding failures of any kind surface as UnauthorizedError.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import Settings, settings as default_settings
from app.exceptions import UnauthorizedError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt only looks at the first 72 bytes of input
BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> str:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        return password_bytes[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")
    return password


def get_password_hash(password: str) -> str:
    return pwd_context.hash(_truncate(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_truncate(plain_password), hashed_password)


def create_access_token(
    account_id: int,
    claims: Optional[Dict[str, Any]] = None,
    expires_delta: Optional[timedelta] = None,
    config: Optional[Settings] = None,
) -> str:
    """
    Sign an access token for `account_id`.

    Args:
        account_id:    Stored as the `sub` claim.
        claims:        Extra public claims (email, username).
        expires_delta: Overrides `access_token_expire_minutes`.
        config:        Settings to sign with; defaults to the global settings.
    """
    cfg = config or default_settings
    if expires_delta is None:
        expires_delta = timedelta(minutes=cfg.access_token_expire_minutes)

    to_encode: Dict[str, Any] = dict(claims or {})
    to_encode.update(
        {
            "sub": str(account_id),
            "exp": datetime.now(timezone.utc) + expires_delta,
        }
    )
    return jwt.encode(to_encode, cfg.jwt_secret_key, algorithm=cfg.jwt_algorithm)


def decode_access_token(token: str, config: Optional[Settings] = None) -> int:
    """
    Verify a token's signature and expiry and return the account id it names.

    Raises:
        UnauthorizedError: bad signature, expired, or missing/invalid `sub`.
    """
    cfg = config or default_settings
    try:
        payload = jwt.decode(token, cfg.jwt_secret_key, algorithms=[cfg.jwt_algorithm])
    except JWTError as e:
        raise UnauthorizedError(
            message="Invalid or expired token",
            context={"reason": type(e).__name__},
        )

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise UnauthorizedError(message="Invalid or expired token")
