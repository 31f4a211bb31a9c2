"""
Unit tests for password hashing and the token service.
"""

import time

import jwt
import pytest

from booknest.errors import TokenExpiredError, TokenInvalidError
from booknest.security import TokenService, hash_password, verify_password

SECRET = "unit-test-secret"


@pytest.fixture
def token_service():
    return TokenService(SECRET, algorithm="HS256", expire_minutes=60)


@pytest.fixture
def stored_user():
    return {"id": "64b7f0c2a1b2c3d4e5f60718", "email": "ann@x.com", "role": "admin", "name": "Ann"}


class TestHashPassword:
    """Tests for hash_password"""

    def test_hash_not_equal_to_plain(self):
        result = hash_password("secret123", rounds=4)
        assert result != "secret123"
        assert len(result) > 0

    def test_different_salts_per_call(self):
        """Each hash uses a new salt, so hashes differ."""
        assert hash_password("same-password", rounds=4) != hash_password("same-password", rounds=4)

    def test_rounds_are_encoded_in_digest(self):
        assert hash_password("secret123", rounds=5).startswith("$2b$05$")


class TestVerifyPassword:
    """Tests for verify_password"""

    def test_matching_password_returns_true(self):
        hashed = hash_password("correct", rounds=4)
        assert verify_password("correct", hashed) is True

    def test_wrong_password_returns_false(self):
        hashed = hash_password("correct", rounds=4)
        assert verify_password("wrong", hashed) is False

    def test_password_longer_than_72_bytes(self):
        password = "é" * 50
        hashed = hash_password(password, rounds=4)

        assert verify_password(password, hashed) is True
        assert verify_password("é" * 35, hashed) is False

    def test_only_first_72_bytes_are_significant(self):
        hashed = hash_password("p" * 72 + "tail-one", rounds=4)
        assert verify_password("p" * 72 + "tail-two", hashed) is True

    def test_corrupt_digest_returns_false(self):
        assert verify_password("correct", "not-a-bcrypt-digest") is False


class TestTokenService:
    """Tests for TokenService.issue and TokenService.verify"""

    def test_issue_and_verify_roundtrip(self, token_service, stored_user):
        claims = token_service.verify(token_service.issue(stored_user))

        assert claims["sub"] == stored_user["id"]
        assert claims["email"] == "ann@x.com"
        assert claims["role"] == "admin"

    def test_token_expires_one_hour_after_issue(self, token_service, stored_user):
        claims = token_service.verify(token_service.issue(stored_user))
        assert claims["exp"] - claims["iat"] == 3600

    def test_role_defaults_to_user(self, token_service):
        token = token_service.issue({"id": "abc", "email": "bob@x.com"})
        assert token_service.verify(token)["role"] == "user"

    def test_expired_token_raises(self, token_service):
        token = jwt.encode({"sub": "abc", "exp": int(time.time()) - 30}, SECRET, algorithm="HS256")
        with pytest.raises(TokenExpiredError):
            token_service.verify(token)

    def test_other_secret_raises(self, stored_user):
        token = TokenService("another-secret").issue(stored_user)
        with pytest.raises(TokenInvalidError):
            TokenService(SECRET).verify(token)

    def test_tampered_token_raises(self, token_service, stored_user):
        token = token_service.issue(stored_user)
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        with pytest.raises(TokenInvalidError):
            token_service.verify(tampered)

    def test_malformed_token_raises(self, token_service):
        with pytest.raises(TokenInvalidError):
            token_service.verify("not.a.token")

    def test_missing_subject_raises(self, token_service):
        token = jwt.encode({"email": "ann@x.com", "exp": int(time.time()) + 60}, SECRET, algorithm="HS256")
        with pytest.raises(TokenInvalidError):
            token_service.verify(token)

    def test_expired_is_a_token_error_not_invalid(self, token_service):
        token = jwt.encode({"sub": "abc", "exp": int(time.time()) - 30}, SECRET, algorithm="HS256")
        with pytest.raises(TokenExpiredError) as exc_info:
            token_service.verify(token)
        assert not isinstance(exc_info.value, TokenInvalidError)
