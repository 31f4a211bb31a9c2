"""
Business operations behind the HTTP routes.

Each operation validates its payload, performs one store operation and
raises an error from `booknest.errors` when it cannot complete.
"""

from typing import Any, Dict, List, Mapping, Optional

import structlog

from booknest.database import BOOKS, USERS, Document, DocumentStore
from booknest.errors import CredentialsError, DuplicateKeyError, InternalError, NotFoundError
from booknest.models import BookCreate, BookUpdate, LoginRequest, SignupRequest
from booknest.security import TokenService, hash_password, verify_password
from booknest.validation import validate_payload

logger = structlog.get_logger(__name__)


class AuthService:
    """Signup and login."""

    def __init__(self, store: DocumentStore, token_service: TokenService, bcrypt_rounds: int = 12):
        self.store = store
        self.token_service = token_service
        self.bcrypt_rounds = bcrypt_rounds

    async def signup(self, payload: Any) -> Document:
        """
        Register a new user.

        The password is hashed before the document reaches the store, and the
        stored digest is checked against the plaintext once more after the
        write.

        Args:
            payload: Decoded signup request body

        Returns:
            The stored user document (contains `password_hash`, never serialize it)

        Raises:
            PayloadValidationError: If the payload is invalid
            DuplicateKeyError: If the email is already registered
            InternalError: If the password could not be hashed
        """
        request = validate_payload(SignupRequest, payload)

        existing = await self.store.find_by_unique_field(USERS, "email", request.email)
        if existing is not None:
            logger.warning("Signup attempt with existing email", email=request.email)
            raise DuplicateKeyError("Email already in use", field="email")

        document = self._new_user_document(request)
        try:
            user = await self.store.insert_unique(USERS, document)
        except DuplicateKeyError as e:
            logger.warning("Signup lost a race on email", email=request.email)
            raise DuplicateKeyError("Email already in use", field="email") from e

        if not verify_password(request.password, user.get("password_hash", "")):
            logger.error("Password mismatch after signup", user_id=user["id"], email=request.email)
            raise InternalError("Password hashing failed")

        logger.info("New user signed up", user_id=user["id"], email=request.email, role=request.role)
        return user

    def _new_user_document(self, request: SignupRequest) -> Dict[str, Any]:
        try:
            password_hash = hash_password(request.password, rounds=self.bcrypt_rounds)
        except (ValueError, TypeError) as e:
            logger.error("Password hashing failed", email=request.email, error=str(e))
            raise InternalError("Password hashing failed") from e

        return {
            "name": request.name,
            "email": request.email,
            "role": request.role,
            "password_hash": password_hash,
        }

    async def login(self, payload: Any) -> Dict[str, Any]:
        """
        Check credentials and issue a bearer token.

        Returns:
            Dict with `token` and the stored `user` document

        Raises:
            PayloadValidationError: If the payload is invalid
            CredentialsError: If the email is unknown or the password does not match
        """
        request = validate_payload(LoginRequest, payload)

        user = await self.store.find_by_unique_field(USERS, "email", request.email)
        if user is None:
            logger.warning("Login failed: user not found", email=request.email)
            raise CredentialsError("User not found")

        if not verify_password(request.password, user.get("password_hash", "")):
            logger.warning("Login failed: incorrect password", email=request.email)
            raise CredentialsError("Incorrect password")

        token = self.token_service.issue(user)
        logger.info("User logged in", user_id=user["id"], email=request.email)
        return {"token": token, "user": user}


class BookService:
    """Book catalog operations. Every caller is already authenticated."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def create_book(self, payload: Any, user: Optional[Mapping[str, Any]]) -> Document:
        """
        Add a book owned by `user`.

        A missing user means the auth gate was bypassed, which is a server
        bug rather than a client mistake.
        """
        if not user or not user.get("id"):
            logger.error("Cannot create book: missing user info")
            raise InternalError("Cannot create book: missing user info")

        book = validate_payload(BookCreate, payload)
        document = book.model_dump(exclude_none=True)
        document["added_by"] = user["id"]

        try:
            created = await self.store.insert_unique(BOOKS, document)
        except DuplicateKeyError:
            logger.warning("Book creation rejected: duplicate ISBN", isbn=book.isbn, user_id=user["id"])
            raise

        logger.info("Book created", book_id=created["id"], isbn=book.isbn, added_by=user["id"])
        return created

    async def list_books(self) -> List[Document]:
        books = await self.store.find_all(BOOKS)
        logger.info("Books retrieved", count=len(books))
        return books

    async def update_book(self, book_id: str, payload: Any) -> Document:
        """
        Apply a partial update to a book.

        An unknown id is reported as not found before the payload is looked
        at; fields left out of the payload keep their stored values.
        """
        existing = await self.store.find_by_id(BOOKS, book_id)
        if existing is None:
            logger.warning("Book not found for update", book_id=book_id)
            raise NotFoundError("Book not found")

        changes = validate_payload(BookUpdate, payload).model_dump(exclude_unset=True)
        if not changes:
            logger.info("Empty book update, nothing to apply", book_id=book_id)
            return existing

        try:
            updated = await self.store.apply_partial_update(BOOKS, book_id, changes)
        except DuplicateKeyError:
            logger.warning("Book update rejected: duplicate ISBN", book_id=book_id)
            raise

        if updated is None:
            logger.warning("Book disappeared during update", book_id=book_id)
            raise NotFoundError("Book not found")

        logger.info("Book updated", book_id=book_id, fields=sorted(changes))
        return updated

    async def delete_book(self, book_id: str) -> Document:
        deleted = await self.store.delete_by_id(BOOKS, book_id)
        if deleted is None:
            logger.warning("Book not found for delete", book_id=book_id)
            raise NotFoundError("Book not found")

        logger.info("Book deleted", book_id=book_id)
        return deleted
