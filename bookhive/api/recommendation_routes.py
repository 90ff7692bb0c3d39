"""Recommendation API routes."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from bookhive.api.schemas import (
    BookResponse,
    DailyRecommendationResponse,
    RecommendationResponse,
    RecommendedBookResponse,
)
from bookhive.core.config import settings
from bookhive.core.dependencies import get_clock, get_daily_cache, get_recommendation_service
from bookhive.domain.errors import InvalidInput, StorageError
from bookhive.domain.repositories import IClock
from bookhive.domain.services import IRecommendationService
from bookhive.services.daily_cache import DailyRecommendationCache

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("", response_model=RecommendationResponse)
async def get_user_recommendations(
    user_id: UUID,
    recommendation_service: Annotated[IRecommendationService, Depends(get_recommendation_service)],
    limit: Optional[int] = None,
) -> RecommendationResponse:
    """Ranked books for a user.

    Users with a rating history get unrated books from their genres
    (``affinity``); everyone else gets the best-rated books overall
    (``popularity``).
    """
    if limit is None:
        limit = settings.default_recommendation_limit
    try:
        results = await recommendation_service.recommend_scored(user_id, limit)
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except StorageError as exc:
        logger.error("Recommendations for user %s failed: %s", user_id, exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")

    recs = [
        RecommendedBookResponse(
            **BookResponse.model_validate(sb.book).model_dump(),
            score=round(sb.score, 4),
            strategy=sb.strategy,
        )
        for sb in results
    ]
    return RecommendationResponse(
        recommendations=recs,
        total=len(recs),
        strategy=results[0].strategy if results else "none",
    )


@router.get("/daily", response_model=DailyRecommendationResponse)
async def get_daily_recommendations(
    cache: Annotated[DailyRecommendationCache, Depends(get_daily_cache)],
    clock: Annotated[IClock, Depends(get_clock)],
    size: Optional[int] = None,
) -> DailyRecommendationResponse:
    """Recommendation of the day, identical for every caller until midnight."""
    if size is None:
        size = settings.daily_sample_size
    try:
        books = await cache.today(size)
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except StorageError as exc:
        logger.error("Daily recommendations failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")
    return DailyRecommendationResponse(
        day=cache.cached_day or clock.today(),
        books=[BookResponse.model_validate(b) for b in books],
    )
