"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bookhive.api.notification_routes import router as notification_router
from bookhive.api.recommendation_routes import router as recommendation_router
from bookhive.api.routes import router as books_router
from bookhive.core.config import settings
from bookhive.infrastructure.database.connection import init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting BookHive engagement engine")
    logger.info("Timezone: %s, featured author: %s", settings.timezone, settings.featured_author or "-")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down BookHive engagement engine")


app = FastAPI(
    title="BookHive",
    description="Ratings, recommendations and push announcements for a book-sharing service",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(books_router)
app.include_router(recommendation_router)
app.include_router(notification_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
