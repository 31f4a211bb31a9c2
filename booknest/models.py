"""
API models and schemas for the BookNest API.

Request models reject unknown fields and are checked by
`booknest.validation.validate_payload`. Field names are snake_case in Python
and in the document store; the JSON wire format uses camelCase aliases.
"""

from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

ISBN_PATTERN = r"^[0-9-]+$"
MIN_PUBLISHED_YEAR = 1000

Role = Literal["user", "admin"]

UserName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Password = Annotated[str, StringConstraints(min_length=6)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Author = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Isbn = Annotated[str, StringConstraints(pattern=ISBN_PATTERN)]
Genre = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Description = Annotated[str, StringConstraints(min_length=1, max_length=500)]
PublishedYear = Annotated[int, Field(ge=MIN_PUBLISHED_YEAR)]
Pages = Annotated[int, Field(ge=1)]
Price = Annotated[float, Field(ge=0, allow_inf_nan=False)]


def _check_not_future_year(v: Optional[int]) -> Optional[int]:
    current_year = datetime.now().year
    if v is not None and v > current_year:
        raise ValueError(f"must be less than or equal to {current_year}")
    return v


class RequestModel(BaseModel):
    """Base for incoming payloads. Only the camelCase wire names are accepted."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
    )


class ResponseModel(BaseModel):
    """Base for outgoing records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# Auth payloads

class SignupRequest(RequestModel):
    """Signup payload."""
    name: UserName = Field(..., description="Display name")
    email: EmailStr = Field(..., description="Unique email address")
    password: Password = Field(..., description="Plain text password, at least 6 characters")
    role: Role = Field("user", description="Account role")


class LoginRequest(RequestModel):
    """Login payload."""
    email: EmailStr = Field(..., description="Registered email address")
    password: Password = Field(..., description="Account password")


# Book payloads

class BookCreate(RequestModel):
    """Payload for creating a book. Every field except description is required."""
    title: Title = Field(..., examples=["The Great Gatsby"])
    author: Author = Field(..., examples=["F. Scott Fitzgerald"])
    isbn: Isbn = Field(..., description="Digits and hyphens only", examples=["123-4567890123"])
    genre: Genre = Field(..., examples=["Fiction"])
    published_year: PublishedYear = Field(..., examples=[1925])
    pages: Pages = Field(..., examples=[180])
    description: Optional[Description] = Field(None, examples=["A novel about the American dream."])
    price: Price = Field(..., examples=[10.99])

    @field_validator("description", mode="before")
    @classmethod
    def reject_null_description(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("published_year")
    @classmethod
    def validate_published_year(cls, v):
        """Published year cannot be in the future."""
        return _check_not_future_year(v)


class BookUpdate(RequestModel):
    """Partial book payload. Only the supplied fields are applied."""
    title: Optional[Title] = None
    author: Optional[Author] = None
    isbn: Optional[Isbn] = None
    genre: Optional[Genre] = None
    published_year: Optional[PublishedYear] = None
    pages: Optional[Pages] = None
    description: Optional[Description] = None
    price: Optional[Price] = None

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, v):
        """Omitting a field leaves it untouched; sending null is an error."""
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("published_year")
    @classmethod
    def validate_published_year(cls, v):
        return _check_not_future_year(v)


# Responses

class UserResponse(ResponseModel):
    """User record. The password digest is never part of it."""
    id: str = Field(..., description="Unique user identifier")
    name: str
    email: str
    role: Role = "user"
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class LoginUser(ResponseModel):
    """Minimal user projection returned at login."""
    id: str
    name: str
    email: str


class LoginResponse(ResponseModel):
    message: str = Field(..., description="Outcome message")
    token: str = Field(..., description="Bearer token, valid for one hour")
    user: LoginUser


class BookResponse(ResponseModel):
    """Book record."""
    id: str = Field(..., description="Unique book identifier")
    title: str
    author: str
    isbn: str
    genre: str
    published_year: int
    pages: int
    description: Optional[str] = None
    price: float
    added_by: str = Field(..., description="Identifier of the user who added the book")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Error response model."""
    message: str = Field(..., description="Error message")


class HealthResponse(ResponseModel):
    """Health check response model."""
    message: str = Field(..., description="Service status message")
    timestamp: datetime = Field(..., description="Current timestamp")
    database_status: str = Field(..., description="Document store status")


def to_book_responses(documents: List[Any]) -> List[BookResponse]:
    return [BookResponse.model_validate(document) for document in documents]
