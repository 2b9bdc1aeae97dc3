import logging

from articles_api.ports import Cache

logger = logging.getLogger(__name__)


class CacheInvalidationHook:
    """
    Best-effort clear of the article read cache after a committed write.

    The whole namespace is dropped: list results depend on too many filter
    combinations to invalidate key by key.  Failures are logged and
    swallowed; the write they follow is already durable.
    """

    def __init__(self, cache: Cache) -> None:
        self._cache = cache

    async def invalidate_all(self) -> None:
        try:
            await self._cache.clear_all()
        except Exception:
            logger.exception("Failed to clear article cache")
        else:
            logger.debug("Article cache cleared")
