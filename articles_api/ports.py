"""Collaborator interfaces the service layer is constructed with."""
from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any, Protocol

from articles_api.models import Article, User
from articles_api.services.query_builder import ArticleQuery


class IdentityStore(Protocol):
    async def find_by_email(self, email: str) -> User | None: ...

    async def find_by_id(self, user_id: uuid.UUID | str) -> User | None: ...

    async def create(self, email: str, password_hash: str) -> User: ...


class ArticleStore(Protocol):
    async def create(self, author_id: uuid.UUID, title: str, description: str) -> Article: ...

    async def find_by_id(self, article_id: uuid.UUID | str) -> Article | None: ...

    async def find_and_count(self, query: ArticleQuery) -> tuple[Sequence[Article], int]: ...

    async def save(self, article: Article) -> Article: ...

    async def delete_by_id(self, article_id: uuid.UUID) -> None: ...


class Cache(Protocol):
    """Article read cache; ``get``/``set``/``delete`` never raise, ``clear_all`` may."""

    def key(self, *parts: object) -> str: ...

    async def get(self, key: str) -> dict | list | None: ...

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear_all(self) -> None: ...


class Signer(Protocol):
    def sign(self, claims: dict[str, Any]) -> str: ...

    def verify(self, token: str) -> dict[str, Any]: ...


class Hasher(Protocol):
    # Hash of a throwaway password at the hasher's own work factor.
    dummy_hash: str

    async def hash(self, plaintext: str) -> str: ...

    async def verify(self, plaintext: str, hashed: str) -> bool: ...
