"""Rating aggregation with per-book serialization."""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import AsyncIterator, Optional
from uuid import UUID

from bookhive.domain.entities import Book, Rating, RatingSummary
from bookhive.domain.errors import InvalidInput, NotFound
from bookhive.domain.repositories import IBookRepository
from bookhive.domain.services import IRatingService

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class BookLockRegistry:
    """Process-wide registry of one ``asyncio.Lock`` per book id.

    Locks are held weakly, so entries for books nobody is updating are
    garbage collected.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, book_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(book_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[book_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, book_id: UUID) -> AsyncIterator[None]:
        lock = self.lock_for(book_id)
        async with lock:
            yield


def aggregate(ratings: list[Rating]) -> tuple[Optional[float], int]:
    """Return ``(mean, count)`` for a rating collection; mean is None when empty."""
    count = len(ratings)
    if count == 0:
        return None, 0
    return sum(r.value for r in ratings) / count, count


class RatingAggregator(IRatingService):
    """Maintains per-user ratings on a book and the derived mean/count.

    Every read-modify-write of a book document runs under that book's lock,
    so the aggregate is always recomputed from the current rating set.
    The update is built on a copy and only becomes visible once
    ``book_repository.save`` succeeds; storage failures propagate as-is.
    """

    def __init__(self, book_repository: IBookRepository, locks: BookLockRegistry):
        self.book_repository = book_repository
        self.locks = locks

    async def submit_rating(self, book_id: UUID, user_id: UUID, value: int) -> RatingSummary:
        self._validate_value(value)

        async with self.locks.hold(book_id):
            book = await self._load(book_id)
            now = datetime.utcnow()

            ratings: list[Rating] = []
            replaced = False
            for existing in book.ratings:
                if existing.user_id == user_id:
                    ratings.append(Rating(user_id=user_id, value=value, created_at=now))
                    replaced = True
                else:
                    ratings.append(existing)
            if not replaced:
                ratings.append(Rating(user_id=user_id, value=value, created_at=now))

            mean, count = aggregate(ratings)
            updated = replace(
                book,
                ratings=ratings,
                mean_rating=mean,
                rating_count=count,
                updated_at=now,
            )
            saved = await self.book_repository.save(updated)

        logger.info(
            "Rating %s by user %s on book %s (%s): mean=%.3f count=%d",
            value,
            user_id,
            book_id,
            "replaced" if replaced else "new",
            saved.mean_rating,
            saved.rating_count,
        )
        return RatingSummary(
            book_id=saved.id,
            mean_rating=saved.mean_rating,
            rating_count=saved.rating_count,
        )

    async def record_view(self, book_id: UUID) -> int:
        async with self.locks.hold(book_id):
            book = await self._load(book_id)
            updated = replace(book, views=book.views + 1, updated_at=datetime.utcnow())
            saved = await self.book_repository.save(updated)
        logger.debug("Book %s viewed (%d views)", book_id, saved.views)
        return saved.views

    async def get_user_rating(self, book_id: UUID, user_id: UUID) -> Optional[int]:
        book = await self._load(book_id)
        rating = book.rating_for(user_id)
        return rating.value if rating else None

    # -- Helpers --
    async def _load(self, book_id: UUID) -> Book:
        book = await self.book_repository.get_by_id(book_id)
        if book is None:
            raise NotFound(f"Book {book_id} not found")
        return book

    @staticmethod
    def _validate_value(value: int) -> None:
        # bool is an int subclass; True/False are not votes
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInput(f"Rating must be an integer, got {value!r}")
        if not MIN_RATING <= value <= MAX_RATING:
            raise InvalidInput(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {value}"
            )
