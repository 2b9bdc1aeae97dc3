"""
Article service — business logic for the Article aggregate.

Design notes
------------
- List and detail reads go through the cache-aside pattern (Redis →
  fallback to the store).  List cache keys encode every filter dimension
  so one filter combination never serves another's page.
- Mutations follow load → ownership check → write → cache clear.  The
  store commits the write before returning, so the cache is never cleared
  ahead of the durable change.  The article's own detail key is dropped
  first, so a failed namespace clear cannot keep serving it.
- update/delete read the row and write it in two separate steps without a
  version check; a concurrent writer in between wins or loses silently.
"""
from __future__ import annotations

import logging
import uuid

from articles_api.config import settings
from articles_api.exceptions import ResourceNotFound
from articles_api.ports import ArticleStore, Cache
from articles_api.schemas import ArticleResponse, ArticleUpdate, PaginatedArticles
from articles_api.services.cache_invalidation import CacheInvalidationHook
from articles_api.services.ownership import assert_owner
from articles_api.services.query_builder import (
    ArticleFilters,
    build_article_query,
    total_pages,
)

logger = logging.getLogger(__name__)


def _detail_cache_key(cache: Cache, article_id: uuid.UUID | str) -> str:
    try:
        article_id = uuid.UUID(str(article_id))
    except ValueError:
        pass
    return cache.key("detail", article_id)


def _list_cache_key(cache: Cache, filters: ArticleFilters, limit: int) -> str:
    return cache.key(
        "list",
        filters.author_id or "-",
        filters.publish_date_from.isoformat() if filters.publish_date_from else "-",
        filters.publish_date_to.isoformat() if filters.publish_date_to else "-",
        filters.page,
        limit,
    )


class ArticleService:
    def __init__(
        self,
        *,
        articles: ArticleStore,
        cache: Cache,
        invalidation: CacheInvalidationHook | None = None,
    ) -> None:
        self._articles = articles
        self._cache = cache
        self._invalidation = invalidation or CacheInvalidationHook(cache)

    async def create_article(
        self, author_id: uuid.UUID, title: str, description: str
    ) -> ArticleResponse:
        logger.info("Creating article %r for user %s", title, author_id)
        article = await self._articles.create(author_id, title, description)
        await self._invalidation.invalidate_all()
        logger.info("Article created with ID: %s", article.id)
        return ArticleResponse.model_validate(article)

    async def list_articles(self, filters: ArticleFilters) -> PaginatedArticles:
        """
        Return one page of articles matching *filters*, newest first.

        On a cache miss the store issues a COUNT and a LIMIT/OFFSET select.
        """
        query = build_article_query(filters)
        cache_key = _list_cache_key(self._cache, filters, query.take)
        cached = await self._cache.get(cache_key)
        if cached:
            return PaginatedArticles.model_validate(cached)

        rows, total = await self._articles.find_and_count(query)
        page = query.skip // query.take + 1
        response = PaginatedArticles(
            data=[ArticleResponse.model_validate(a) for a in rows],
            total=total,
            page=page,
            limit=query.take,
            total_pages=total_pages(total, query.take),
        )
        await self._cache.set(
            cache_key, response.model_dump(mode="json"), ttl=settings.CACHE_TTL_LIST
        )
        return response

    async def get_article(self, article_id: uuid.UUID | str) -> ArticleResponse:
        cache_key = _detail_cache_key(self._cache, article_id)
        cached = await self._cache.get(cache_key)
        if cached:
            return ArticleResponse.model_validate(cached)

        article = await self._articles.find_by_id(article_id)
        if article is None:
            raise ResourceNotFound()

        response = ArticleResponse.model_validate(article)
        await self._cache.set(
            cache_key, response.model_dump(mode="json"), ttl=settings.CACHE_TTL_DETAIL
        )
        return response

    async def update_article(
        self,
        article_id: uuid.UUID | str,
        acting_user_id: uuid.UUID,
        patch: ArticleUpdate,
    ) -> ArticleResponse:
        """
        Apply the fields explicitly present in *patch*.

        ``author_id`` is not patchable; ``ArticleUpdate`` has no such field.
        """
        logger.info("Updating article %s by user %s", article_id, acting_user_id)
        article = await self._articles.find_by_id(article_id)
        if article is None:
            logger.warning("Article not found for update with ID: %s", article_id)
            raise ResourceNotFound()
        assert_owner(article, acting_user_id)

        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(article, field, value)

        article = await self._articles.save(article)
        await self._cache.delete(_detail_cache_key(self._cache, article.id))
        await self._invalidation.invalidate_all()
        logger.info("Article %s updated", article_id)
        return ArticleResponse.model_validate(article)

    async def delete_article(
        self, article_id: uuid.UUID | str, acting_user_id: uuid.UUID
    ) -> ArticleResponse:
        """Delete the article and return what it looked like beforehand."""
        logger.info("Deleting article %s by user %s", article_id, acting_user_id)
        article = await self._articles.find_by_id(article_id)
        if article is None:
            logger.warning("Article not found for deletion with ID: %s", article_id)
            raise ResourceNotFound()
        assert_owner(article, acting_user_id)

        snapshot = ArticleResponse.model_validate(article)
        await self._articles.delete_by_id(article.id)
        await self._cache.delete(_detail_cache_key(self._cache, article.id))
        await self._invalidation.invalidate_all()
        logger.info("Article %s deleted", article_id)
        return snapshot
