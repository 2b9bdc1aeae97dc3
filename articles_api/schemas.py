import re
import uuid
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


def _as_utc(value: datetime) -> datetime:
    # Some backends (SQLite) hand back naive datetimes; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Auth / User ---

_PASSWORD_RULES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"\d"),
    re.compile(r"[^A-Za-z0-9]"),
)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def password_is_strong(cls, value: str) -> str:
        if not all(pattern.search(value) for pattern in _PASSWORD_RULES):
            raise ValueError(
                "Password should contain at least 8 characters, including "
                "uppercase and lowercase letters, numbers, and special characters"
            )
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserPublic(CamelModel):
    id: uuid.UUID
    email: str
    created_at: UtcDatetime
    updated_at: UtcDatetime


class AuthResponse(CamelModel):
    access_token: str = Field(alias="access_token")
    user: UserPublic


class SessionClaims(CamelModel):
    email: str
    user_id: uuid.UUID


# --- Article ---

class ArticleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=128)
    description: str = Field(min_length=1, max_length=1024)


class ArticleUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=128)
    description: str | None = Field(None, min_length=1, max_length=1024)


class ArticleResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    author_id: uuid.UUID
    created_at: UtcDatetime
    updated_at: UtcDatetime


# --- Pagination ---

class PaginatedArticles(CamelModel):
    data: list[ArticleResponse]
    total: int
    page: int
    limit: int
    total_pages: int
