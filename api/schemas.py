"""Pydantic schemas for API request/response validation.

Each entity has three shapes:
- <Entity>Create: write-only, no identifier
- <Entity>Update: write-only, identifier plus full replacement field set
- <Entity>Read: read-only projection returned to callers
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ISBN_RE = re.compile(r"\d{9}[\dXx]|\d{13}")


class _WriteSchema(BaseModel):
    """Base for create/update bodies: no unknown fields, no inf or NaN."""

    model_config = ConfigDict(
        extra="forbid", str_strip_whitespace=True, allow_inf_nan=False
    )


# =============================================================================
# Authors
# =============================================================================


class AuthorBase(_WriteSchema):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    bio: str | None = Field(default=None, max_length=250)


class AuthorCreate(AuthorBase):
    """Request body for creating an author."""


class AuthorUpdate(AuthorBase):
    """Request body for replacing an author."""

    id: int


class AuthorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    bio: str | None = None


# =============================================================================
# Publishers
# =============================================================================


class PublisherBase(_WriteSchema):
    name: str = Field(min_length=1, max_length=100)
    country: str | None = Field(default=None, max_length=60)


class PublisherCreate(PublisherBase):
    """Request body for creating a publisher."""


class PublisherUpdate(PublisherBase):
    """Request body for replacing a publisher."""

    id: int


class PublisherRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    country: str | None = None


# =============================================================================
# Books
# =============================================================================


class BookBase(_WriteSchema):
    title: str = Field(min_length=1, max_length=150)
    year: int | None = Field(default=None, ge=0, le=9999)
    isbn: str = Field(min_length=1, max_length=20)
    summary: str | None = Field(default=None, max_length=500)
    image: str | None = None
    price: float | None = Field(default=None, ge=0)

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str) -> str:
        """Accept ISBN-10 or ISBN-13 with optional hyphens or spaces."""
        if not _ISBN_RE.fullmatch(v.replace("-", "").replace(" ", "")):
            raise ValueError("ISBN must have 10 or 13 digits (ISBN-10 may end in X)")
        return v


class BookCreate(BookBase):
    """Request body for creating a book.

    The referenced author and publisher are fixed at creation.
    """

    author_id: int | None = Field(default=None, ge=1)
    publisher_id: int | None = Field(default=None, ge=1)


class BookUpdate(BookBase):
    """Request body for replacing a book's descriptive fields."""

    id: int


class BookRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    year: int | None = None
    isbn: str
    summary: str | None = None
    image: str | None = None
    price: float | None = None
    author_id: int | None = None
    publisher_id: int | None = None


# =============================================================================
# Envelopes
# =============================================================================


class FieldError(BaseModel):
    """One field-level validation failure."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Error body shared by every non-2xx entity response."""

    detail: str
    errors: list[FieldError] | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


class PoolStatusResponse(BaseModel):
    """Connection pool status."""

    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(BaseModel):
    """Detailed health check response with component status."""

    status: str
    service: str
    database: bool
    pool: PoolStatusResponse | None = None
