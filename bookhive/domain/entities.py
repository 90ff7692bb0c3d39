"""Domain entities for BookHive."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID


class Genre(str, Enum):
    FICTION = "Fiction"
    FANTASY = "Fantasy"
    SCIENCE_FICTION = "Science Fiction"
    MYSTERY = "Mystery"
    THRILLER = "Thriller"
    ROMANCE = "Romance"
    NON_FICTION = "Non-fiction"
    BIOGRAPHY = "Biography"
    HISTORY = "History"
    SELF_HELP = "Self-help"
    BUSINESS = "Business"
    CHILDREN = "Children"
    YOUNG_ADULT = "Young Adult"
    POETRY = "Poetry"
    OTHER = "Other"


@dataclass
class User:
    id: UUID
    username: str
    push_token: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Rating:
    """A single user's vote on a book. Owned by the book, one per user."""

    user_id: UUID
    value: int
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Book:
    """Book document.

    ``mean_rating`` and ``rating_count`` are derived from ``ratings`` and are
    only ever recomputed by the rating aggregator. ``mean_rating`` stays
    ``None`` until the first vote.
    """

    id: UUID
    title: str
    author: str
    genre: Genre = Genre.OTHER
    ratings: list[Rating] = field(default_factory=list)
    views: int = 0
    mean_rating: Optional[float] = None
    rating_count: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def rating_for(self, user_id: UUID) -> Optional[Rating]:
        for rating in self.ratings:
            if rating.user_id == user_id:
                return rating
        return None


@dataclass(frozen=True)
class RatingSummary:
    book_id: UUID
    mean_rating: float
    rating_count: int


@dataclass
class ScoredBook:
    """A ranked recommendation candidate."""

    book: Book
    score: float
    strategy: str


@dataclass(frozen=True)
class DailyCacheEntry:
    """Catalog snapshot and drawn offset for one day. Replaced wholesale."""

    day: date
    catalog: tuple[Book, ...]
    offset: int

    def block(self, size: int) -> list[Book]:
        """Contiguous block of ``size`` books, shifted left if it would overrun."""
        start = min(self.offset, max(0, len(self.catalog) - size))
        return list(self.catalog[start:start + size])


@dataclass
class PushMessage:
    """Expo push payload for a single device."""

    to: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {"to": self.to, "title": self.title, "body": self.body, "data": self.data}


class DispatchOutcome(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"
