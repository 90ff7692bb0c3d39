"""Pydantic schemas for API requests and responses."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from bookhive.domain.entities import Genre


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------
class BookResponse(BaseModel):
    id: UUID
    title: str
    author: str
    genre: Genre
    views: int
    mean_rating: Optional[float] = None
    rating_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Ratings & Views
# ---------------------------------------------------------------------------
class RatingCreateRequest(BaseModel):
    # Range is enforced by the aggregator so the error text is the engine's own
    user_id: UUID
    value: int


class RatingSummaryResponse(BaseModel):
    book_id: UUID
    mean_rating: float
    rating_count: int

    model_config = ConfigDict(from_attributes=True)


class UserRatingResponse(BaseModel):
    book_id: UUID
    user_id: UUID
    value: Optional[int] = None


class ViewCountResponse(BaseModel):
    book_id: UUID
    views: int


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------
class RecommendedBookResponse(BookResponse):
    score: float
    strategy: str = Field(..., description="affinity | popularity")


class RecommendationResponse(BaseModel):
    recommendations: list[RecommendedBookResponse]
    total: int
    strategy: str = Field(
        "none",
        description="Algorithm used: affinity, popularity, or none for an empty result",
    )


class DailyRecommendationResponse(BaseModel):
    day: date
    books: list[BookResponse]


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
class UpdateNotificationRequest(BaseModel):
    version: str = ""
    features: str = ""


class NotificationResponse(BaseModel):
    outcome: str = Field(..., description="sent | skipped | failed")
    message: str
