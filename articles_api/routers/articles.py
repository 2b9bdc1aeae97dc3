import uuid

from fastapi import APIRouter, Depends

from articles_api.dependencies import ArticleFilterParams, ArticleServiceDep, CurrentUser
from articles_api.schemas import ArticleCreate, ArticleResponse, ArticleUpdate, PaginatedArticles

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.get("", response_model=PaginatedArticles)
async def list_articles(
    article_service: ArticleServiceDep,
    filters: ArticleFilterParams = Depends(),
):
    return await article_service.list_articles(filters.to_filters())


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: uuid.UUID, article_service: ArticleServiceDep):
    return await article_service.get_article(article_id)


@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate, user: CurrentUser, article_service: ArticleServiceDep
):
    return await article_service.create_article(user.user_id, data.title, data.description)


@router.patch("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: uuid.UUID,
    data: ArticleUpdate,
    user: CurrentUser,
    article_service: ArticleServiceDep,
):
    return await article_service.update_article(article_id, user.user_id, data)


@router.delete("/{article_id}", response_model=ArticleResponse)
async def delete_article(
    article_id: uuid.UUID, user: CurrentUser, article_service: ArticleServiceDep
):
    return await article_service.delete_article(article_id, user.user_id)
