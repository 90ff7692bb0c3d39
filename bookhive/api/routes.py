"""Book engagement routes (ratings, views)."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from bookhive.api.schemas import (
    RatingCreateRequest,
    RatingSummaryResponse,
    UserRatingResponse,
    ViewCountResponse,
)
from bookhive.core.dependencies import get_rating_service
from bookhive.domain.errors import InvalidInput, NotFound, StorageError
from bookhive.domain.services import IRatingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])


@router.post("/{book_id}/ratings", response_model=RatingSummaryResponse)
async def rate_book(
    book_id: UUID,
    body: RatingCreateRequest,
    rating_service: Annotated[IRatingService, Depends(get_rating_service)],
) -> RatingSummaryResponse:
    """Submit or replace the caller's 1-5 rating and return the new aggregate."""
    try:
        summary = await rating_service.submit_rating(book_id, body.user_id, body.value)
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except StorageError as exc:
        logger.error("Rating on book %s failed: %s", book_id, exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")
    return RatingSummaryResponse.model_validate(summary)


@router.get("/{book_id}/ratings/{user_id}", response_model=UserRatingResponse)
async def get_user_rating(
    book_id: UUID,
    user_id: UUID,
    rating_service: Annotated[IRatingService, Depends(get_rating_service)],
) -> UserRatingResponse:
    """Return the rating the user gave this book, if any."""
    try:
        value = await rating_service.get_user_rating(book_id, user_id)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except StorageError as exc:
        logger.error("Rating lookup on book %s failed: %s", book_id, exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")
    return UserRatingResponse(book_id=book_id, user_id=user_id, value=value)


@router.post("/{book_id}/views", response_model=ViewCountResponse)
async def record_view(
    book_id: UUID,
    rating_service: Annotated[IRatingService, Depends(get_rating_service)],
) -> ViewCountResponse:
    try:
        views = await rating_service.record_view(book_id)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except StorageError as exc:
        logger.error("View on book %s failed: %s", book_id, exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")
    return ViewCountResponse(book_id=book_id, views=views)
