"""
Twinshot Backend — Password Hashing and Token Tests
"""

from datetime import timedelta

import pytest
from jose import jwt

from app.config import Settings
from app.exceptions import UnauthorizedError
from app.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


class TestPasswords:

    def test_hash_verifies(self):
        hashed = get_password_hash("hunter22")
        assert hashed != "hunter22"
        assert verify_password("hunter22", hashed)

    def test_wrong_password_fails(self):
        assert not verify_password("hunter23", get_password_hash("hunter22"))

    def test_long_passwords_are_accepted(self):
        password = "p" * 200
        assert verify_password(password, get_password_hash(password))


class TestTokens:

    def test_round_trip_returns_account_id(self):
        token = create_access_token(42, claims={"username": "alice"})
        assert decode_access_token(token) == 42

    def test_claims_are_embedded(self):
        cfg = Settings(jwt_secret_key="another-secret")
        token = create_access_token(7, claims={"email": "a@b.c"}, config=cfg)
        payload = jwt.decode(token, "another-secret", algorithms=["HS256"])
        assert payload["sub"] == "7"
        assert payload["email"] == "a@b.c"

    def test_expired_token_is_rejected(self):
        token = create_access_token(1, expires_delta=timedelta(seconds=-5))
        with pytest.raises(UnauthorizedError, match="Invalid or expired token"):
            decode_access_token(token)

    def test_token_signed_with_other_key_is_rejected(self):
        token = create_access_token(1, config=Settings(jwt_secret_key="someone-else"))
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)

    def test_garbage_is_rejected(self):
        with pytest.raises(UnauthorizedError):
            decode_access_token("not.a.jwt")

    def test_non_numeric_subject_is_rejected(self):
        cfg = Settings()
        token = jwt.encode({"sub": "alice"}, cfg.jwt_secret_key, algorithm=cfg.jwt_algorithm)
        with pytest.raises(UnauthorizedError):
            decode_access_token(token, cfg)
