"""
Password hashing and bearer token handling.
"""

import time
from typing import Any, Dict, Mapping

import bcrypt
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from booknest.errors import TokenExpiredError, TokenInvalidError

# bcrypt only reads the first 72 bytes of a password.
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(plain_password: str, rounds: int = 12) -> str:
    """
    Hash a plain password using bcrypt.

    A fresh salt is generated on every call, so hashing the same password
    twice yields two different digests. Bytes past the 72nd are ignored,
    as bcrypt itself would.

    Args:
        plain_password: The plain text password to hash
        rounds: bcrypt cost factor

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(_password_bytes(plain_password), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Returns:
        True if passwords match, False otherwise (including corrupt digests)
    """
    try:
        return bcrypt.checkpw(
            _password_bytes(plain_password),
            hashed_password.encode("utf-8")
        )
    except ValueError:
        return False


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_seconds = expire_minutes * 60

    def issue(self, user: Mapping[str, Any]) -> str:
        """
        Create a token for a stored user document.

        Args:
            user: User document with `id`, `email` and `role`

        Returns:
            Encoded JWT
        """
        issued_at = int(time.time())
        claims = {
            "sub": str(user["id"]),
            "email": user["email"],
            "role": user.get("role", "user"),
            "iat": issued_at,
            "exp": issued_at + self.expire_seconds,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate a token.

        Raises:
            TokenExpiredError: If the token is past its expiration instant
            TokenInvalidError: If the token is malformed or the signature does not match
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError(str(e)) from e
        except InvalidTokenError as e:
            raise TokenInvalidError(str(e)) from e
