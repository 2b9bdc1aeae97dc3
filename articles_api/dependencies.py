import uuid
from datetime import datetime
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from articles_api.cache import cache
from articles_api.config import settings
from articles_api.database import get_db
from articles_api.exceptions import InvalidToken
from articles_api.repositories import SqlAlchemyArticleStore, SqlAlchemyIdentityStore
from articles_api.schemas import SessionClaims
from articles_api.security import JwtSigner, PasswordHasher
from articles_api.services.article_service import ArticleService
from articles_api.services.auth_service import (
    AuthService,
    CredentialVerifier,
    RegistrationService,
    SessionTokenIssuer,
)
from articles_api.services.query_builder import ArticleFilters

DBSession = Annotated[AsyncSession, Depends(get_db)]

_bearer = HTTPBearer(auto_error=False)


class ArticleFilterParams:
    """
    Reusable FastAPI dependency that parses the article list query string.

    Attributes
    ----------
    author_id:
        Only articles written by this user (``authorId``).
    publish_date_from / publish_date_to:
        Inclusive creation-date bounds (``publishDateFrom`` /
        ``publishDateTo``, ISO 8601); either may be omitted.
    page:
        1-based page number (minimum 1).
    limit:
        Items per page, clamped to ``settings.MAX_PAGE_SIZE``.
    """

    def __init__(
        self,
        author_id: uuid.UUID | None = Query(
            None,
            alias="authorId",
            description="Filter by author ID.",
        ),
        publish_date_from: datetime | None = Query(
            None,
            alias="publishDateFrom",
            description="Created at or after (ISO 8601).",
        ),
        publish_date_to: datetime | None = Query(
            None,
            alias="publishDateTo",
            description="Created at or before (ISO 8601).",
        ),
        page: int = Query(
            1,
            ge=1,
            description="Page number (1-based).",
        ),
        limit: int = Query(
            10,
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
    ) -> None:
        self.author_id = author_id
        self.publish_date_from = publish_date_from
        self.publish_date_to = publish_date_to
        self.page = page
        self.limit = min(limit, settings.MAX_PAGE_SIZE)

    def to_filters(self) -> ArticleFilters:
        return ArticleFilters(
            author_id=self.author_id,
            publish_date_from=self.publish_date_from,
            publish_date_to=self.publish_date_to,
            page=self.page,
            limit=self.limit,
        )


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


@lru_cache
def get_signer() -> JwtSigner:
    return JwtSigner()


def get_cache():
    return cache


def get_auth_service(
    db: DBSession,
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    signer: Annotated[JwtSigner, Depends(get_signer)],
) -> AuthService:
    users = SqlAlchemyIdentityStore(db)
    issuer = SessionTokenIssuer(signer=signer)
    return AuthService(
        verifier=CredentialVerifier(users=users, hasher=hasher),
        issuer=issuer,
        registration=RegistrationService(users=users, hasher=hasher, issuer=issuer),
    )


def get_article_service(db: DBSession, article_cache=Depends(get_cache)) -> ArticleService:
    return ArticleService(articles=SqlAlchemyArticleStore(db), cache=article_cache)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
    signer: Annotated[JwtSigner, Depends(get_signer)],
) -> SessionClaims:
    """Resolve the bearer token into session claims or fail with 401."""
    if credentials is None:
        raise InvalidToken("Missing bearer token")
    return SessionTokenIssuer(signer=signer).verify(credentials.credentials)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
ArticleServiceDep = Annotated[ArticleService, Depends(get_article_service)]
CurrentUser = Annotated[SessionClaims, Depends(get_current_user)]
