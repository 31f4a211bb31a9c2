"""
Error taxonomy for the BookNest API.

Every error carries the HTTP status it maps to and the message shown to the
client. The exception handlers in `booknest.main` turn them into
`{"message": ...}` responses.
"""

from typing import Optional

from fastapi import status


class BookNestError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500


class PayloadValidationError(BookNestError):
    """Request payload violated a schema rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateKeyError(BookNestError):
    """A write clashed with a unique field."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Duplicate value for a unique field", field: Optional[str] = None):
        super().__init__(message)
        # Only used in logs.
        self.field = field


class CredentialsError(BookNestError):
    """Login credentials did not match a stored user."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(BookNestError):
    """Request could not be tied to a known user."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason or message


class NotFoundError(BookNestError):
    status_code = status.HTTP_404_NOT_FOUND


class InternalError(BookNestError):
    """A programming invariant was violated."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreError(BookNestError):
    """The document store failed to complete an operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class TokenError(Exception):
    """Bearer token could not be verified."""


class TokenExpiredError(TokenError):
    pass


class TokenInvalidError(TokenError):
    """Token is malformed, tampered with, or signed with another secret."""
