import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from articles_api.cache import cache
from articles_api.exceptions import setup_exception_handlers
from articles_api.logging_config import configure_logging
from articles_api.middleware import TimingMiddleware
from articles_api.routers import articles, auth

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    try:
        await cache.connect()
    except Exception as exc:
        # Reads fall back to the database without Redis.
        logger.warning("Cache unavailable: %s", exc)
    yield
    await cache.disconnect()


app = FastAPI(
    title="Articles API",
    description="User registration/login and author-scoped article management",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Routers
app.include_router(auth.router)
app.include_router(articles.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
