import logging
import uuid

from articles_api.exceptions import NotOwner, ResourceNotFound
from articles_api.models import Article

logger = logging.getLogger(__name__)


def assert_owner(article: Article | None, acting_user_id: uuid.UUID) -> Article:
    """
    Raise unless *acting_user_id* is the recorded author of *article*.

    The only authorization rule in the service: no roles, no override.
    A missing article is reported as not found, never as forbidden.
    """
    if article is None:
        raise ResourceNotFound()
    if article.author_id != acting_user_id:
        logger.warning(
            "User %s attempted to modify article %s owned by %s",
            acting_user_id,
            article.id,
            article.author_id,
        )
        raise NotOwner()
    return article
