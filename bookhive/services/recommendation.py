"""Personalised book ranking for BookHive.

Two strategies, chosen by whether the user has a genre affinity:

  1. Affinity: unrated books in the user's genres, scored by
     ``mean_rating + views / 100 + GENRE_MATCH_BONUS``.
  2. Popularity (fallback): every rated book, ordered by
     ``(mean_rating desc, views desc)``.
"""

from __future__ import annotations

import logging
from uuid import UUID

from bookhive.domain.entities import Book, Genre, ScoredBook
from bookhive.domain.errors import InvalidInput
from bookhive.domain.repositories import IBookRepository
from bookhive.domain.services import IRecommendationService
from bookhive.services.affinity_service import AffinityProfiler

logger = logging.getLogger(__name__)

# Applied to every affinity candidate alike, so it never changes relative order.
GENRE_MATCH_BONUS = 2.0
VIEWS_WEIGHT = 1 / 100

AFFINITY = "affinity"
POPULARITY = "popularity"


def affinity_score(book: Book) -> float:
    return (book.mean_rating or 0.0) + book.views * VIEWS_WEIGHT + GENRE_MATCH_BONUS


class RecommendationRanker(IRecommendationService):
    """Scores and orders candidate books. Read-only: never mutates the catalog."""

    def __init__(self, book_repository: IBookRepository, profiler: AffinityProfiler):
        self.book_repository = book_repository
        self.profiler = profiler

    async def recommend(self, user_id: UUID, limit: int) -> list[Book]:
        return [sb.book for sb in await self.recommend_scored(user_id, limit)]

    async def recommend_scored(self, user_id: UUID, limit: int) -> list[ScoredBook]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidInput(f"limit must be a positive integer, got {limit!r}")

        catalog = await self.book_repository.list_all()
        affinity = await self.profiler.profile(user_id, catalog=catalog)

        if affinity:
            ranked = self._rank_by_affinity(user_id, catalog, affinity)
        else:
            ranked = self._rank_by_popularity(catalog)

        result = ranked[:limit]
        logger.info(
            "Recommendations for user %s: %d of %d candidates (strategy: %s, catalog: %d)",
            user_id,
            len(result),
            len(ranked),
            AFFINITY if affinity else POPULARITY,
            len(catalog),
        )
        return result

    @staticmethod
    def _rank_by_affinity(
        user_id: UUID, catalog: list[Book], affinity: frozenset[Genre]
    ) -> list[ScoredBook]:
        candidates = [
            ScoredBook(book=book, score=affinity_score(book), strategy=AFFINITY)
            for book in catalog
            if book.genre in affinity and book.rating_for(user_id) is None
        ]
        # sorted() is stable: equal scores keep catalog order
        return sorted(candidates, key=lambda sb: -sb.score)

    @staticmethod
    def _rank_by_popularity(catalog: list[Book]) -> list[ScoredBook]:
        rated = [book for book in catalog if book.mean_rating is not None]
        rated.sort(key=lambda b: (-b.mean_rating, -b.views))
        return [
            ScoredBook(book=book, score=book.mean_rating, strategy=POPULARITY)
            for book in rated
        ]
