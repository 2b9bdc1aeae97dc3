"""
Article list query builder.

Turns a set of optional, independently combinable filter criteria into a
storage-agnostic query description: a conjunction of ``Equals`` / ``Range``
conditions, an offset/limit window and the fixed newest-first ordering.
Nothing here touches the database; the article store translates the
description into SQL.
"""
from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union

from articles_api.config import settings


@dataclass(frozen=True, slots=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive range; a missing bound leaves that side open."""

    field: str
    lo: Any = None
    hi: Any = None


Condition = Union[Equals, Range]


@dataclass(frozen=True, slots=True)
class OrderBy:
    field: str
    descending: bool = True


# Listing order is not caller-configurable.
NEWEST_FIRST = OrderBy("created_at", descending=True)


@dataclass(frozen=True, slots=True)
class ArticleFilters:
    """
    Filter criteria for one list request.

    Inputs are assumed to be validated already: ``page >= 1`` and
    ``1 <= limit``.  ``limit`` is still clamped to ``MAX_PAGE_SIZE``.
    """

    author_id: uuid.UUID | None = None
    publish_date_from: datetime | None = None
    publish_date_to: datetime | None = None
    page: int = 1
    limit: int = settings.DEFAULT_PAGE_SIZE


@dataclass(frozen=True, slots=True)
class ArticleQuery:
    predicate: tuple[Condition, ...] = ()
    skip: int = 0
    take: int = settings.DEFAULT_PAGE_SIZE
    order: OrderBy = NEWEST_FIRST


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def build_article_query(filters: ArticleFilters) -> ArticleQuery:
    page = filters.page or 1
    limit = min(filters.limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)

    conditions: list[Condition] = []
    if filters.author_id is not None:
        conditions.append(Equals("author_id", filters.author_id))

    date_from = filters.publish_date_from
    date_to = filters.publish_date_to
    if date_from is not None or date_to is not None:
        conditions.append(
            Range(
                "created_at",
                lo=_as_utc(date_from) if date_from is not None else None,
                hi=_as_utc(date_to) if date_to is not None else None,
            )
        )

    return ArticleQuery(
        predicate=tuple(conditions),
        skip=(page - 1) * limit,
        take=limit,
        order=NEWEST_FIRST,
    )


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total > 0 else 0
