"""
HTTP routes for authentication and the book catalog.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Request, status

from booknest.auth import get_current_user
from booknest.models import (
    BookCreate, BookResponse, BookUpdate, ErrorResponse, LoginRequest,
    LoginResponse, LoginUser, MessageResponse, SignupRequest, UserResponse,
    to_book_responses
)
from booknest.services import AuthService, BookService
from booknest.validation import request_body_openapi

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Invalid payload or duplicate value"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse, "description": "Internal error"},
}

PROTECTED_RESPONSES = {
    **ERROR_RESPONSES,
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
}


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_book_service(request: Request) -> BookService:
    return request.app.state.book_service


auth_router = APIRouter(prefix="/auth", tags=["Auth"])
books_router = APIRouter(prefix="/books", tags=["Books"])


@auth_router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=UserResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=request_body_openapi(SignupRequest),
)
async def signup(
    payload: Dict[str, Any] = Body(...),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user.

    - **name**: 1 to 50 characters
    - **email**: must not be registered yet
    - **password**: at least 6 characters
    - **role**: `user` (default) or `admin`
    """
    user = await auth_service.signup(payload)
    return UserResponse.model_validate(user)


@auth_router.post(
    "/login",
    response_model=LoginResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=request_body_openapi(LoginRequest),
)
async def login(
    payload: Dict[str, Any] = Body(...),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Exchange email and password for a bearer token valid for one hour."""
    result = await auth_service.login(payload)
    return LoginResponse(
        message="Login successful",
        token=result["token"],
        user=LoginUser.model_validate(result["user"]),
    )


@books_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BookResponse,
    responses=PROTECTED_RESPONSES,
    openapi_extra=request_body_openapi(BookCreate),
)
async def create_book(
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service)
):
    """Add a book to the catalog. The caller is recorded as `addedBy`."""
    book = await book_service.create_book(payload, user)
    return BookResponse.model_validate(book)


@books_router.get("", response_model=List[BookResponse], responses=PROTECTED_RESPONSES)
async def get_books(
    user: Dict[str, Any] = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service)
):
    """List every book in the catalog."""
    books = await book_service.list_books()
    return to_book_responses(books)


@books_router.put(
    "/{book_id}",
    response_model=BookResponse,
    responses={
        **PROTECTED_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Book not found"},
    },
    openapi_extra=request_body_openapi(BookUpdate),
)
async def update_book(
    book_id: str,
    payload: Dict[str, Any] = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service)
):
    """
    Update some fields of a book.

    Only the supplied fields change; each one is validated with the same
    rules as on creation.
    """
    book = await book_service.update_book(book_id, payload)
    return BookResponse.model_validate(book)


@books_router.delete(
    "/{book_id}",
    response_model=MessageResponse,
    responses={
        **PROTECTED_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Book not found"},
    },
)
async def delete_book(
    book_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service)
):
    """Remove a book from the catalog."""
    await book_service.delete_book(book_id)
    return MessageResponse(message="Book deleted successfully")
