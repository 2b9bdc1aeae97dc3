"""
SQLAlchemy-backed identity and article stores.

Each mutating call commits its own single write, so callers can rely on
the write being durable when the coroutine returns (the cache hook runs
only after that point).  Malformed identifiers are treated as lookup
misses rather than surfacing driver errors.
"""
from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy import asc, delete, desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from articles_api.exceptions import DuplicateEmail
from articles_api.models import Article, User
from articles_api.services.query_builder import ArticleQuery, Condition, Equals, Range

# Fields a predicate or ordering may reference; guards against arbitrary
# attribute access on the model.
_ARTICLE_COLUMNS = {
    "author_id": Article.author_id,
    "created_at": Article.created_at,
    "updated_at": Article.updated_at,
}


def _coerce_uuid(value: uuid.UUID | str) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _to_clause(condition: Condition):
    column = _ARTICLE_COLUMNS[condition.field]
    if isinstance(condition, Equals):
        return column == condition.value
    if isinstance(condition, Range):
        if condition.lo is not None and condition.hi is not None:
            return column.between(condition.lo, condition.hi)
        if condition.lo is not None:
            return column >= condition.lo
        return column <= condition.hi
    raise TypeError(f"Unsupported condition: {condition!r}")


class SqlAlchemyIdentityStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_by_email(self, email: str) -> User | None:
        result = await self._db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: uuid.UUID | str) -> User | None:
        key = _coerce_uuid(user_id)
        if key is None:
            return None
        return await self._db.get(User, key)

    async def create(self, email: str, password_hash: str) -> User:
        """Insert a user; a unique-email violation raises ``DuplicateEmail``."""
        user = User(email=email, password=password_hash)
        self._db.add(user)
        try:
            await self._db.commit()
        except IntegrityError as exc:
            await self._db.rollback()
            raise DuplicateEmail() from exc
        return user


class SqlAlchemyArticleStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create(self, author_id: uuid.UUID, title: str, description: str) -> Article:
        article = Article(author_id=author_id, title=title, description=description)
        self._db.add(article)
        await self._db.commit()
        return article

    async def find_by_id(self, article_id: uuid.UUID | str) -> Article | None:
        key = _coerce_uuid(article_id)
        if key is None:
            return None
        return await self._db.get(Article, key)

    async def find_and_count(self, query: ArticleQuery) -> tuple[Sequence[Article], int]:
        """
        Two statements: a COUNT over the filtered set, then the ordered
        LIMIT/OFFSET page.
        """
        clauses = [_to_clause(c) for c in query.predicate]

        count_q = select(func.count()).select_from(Article).where(*clauses)
        total: int = (await self._db.execute(count_q)).scalar_one()

        sort_col = _ARTICLE_COLUMNS[query.order.field]
        rows_q = (
            select(Article)
            .where(*clauses)
            .order_by(desc(sort_col) if query.order.descending else asc(sort_col))
            .offset(query.skip)
            .limit(query.take)
        )
        result = await self._db.execute(rows_q)
        return result.scalars().all(), total

    async def save(self, article: Article) -> Article:
        self._db.add(article)
        await self._db.commit()
        return article

    async def delete_by_id(self, article_id: uuid.UUID) -> None:
        await self._db.execute(delete(Article).where(Article.id == article_id))
        await self._db.commit()
