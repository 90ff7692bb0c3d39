"""Genre affinity derived from a user's rating history."""

import logging
from typing import Optional
from uuid import UUID

from bookhive.domain.entities import Book, Genre
from bookhive.domain.repositories import IBookRepository

logger = logging.getLogger(__name__)


class AffinityProfiler:
    """Computes the set of genres a user is inferred to prefer.

    Signals, strongest first:
      1. Ratings: genres of every book the user has rated.
      2. Views (optional): genres of books with any views at all. View
         counters are global rather than per user, so this signal is only
         consulted when the rating signal is empty and ``include_view_signal``
         is set.

    An empty result means "no personalization available"; it is never an
    error.
    """

    def __init__(self, book_repository: IBookRepository, include_view_signal: bool = False):
        self.book_repository = book_repository
        self.include_view_signal = include_view_signal

    async def profile(self, user_id: UUID, catalog: Optional[list[Book]] = None) -> frozenset[Genre]:
        """Return the user's affinity set.

        ``catalog`` may be passed by callers that already loaded it, to avoid
        a second store read.
        """
        if catalog is None:
            catalog = await self.book_repository.list_all()

        rated = frozenset(
            book.genre for book in catalog if book.rating_for(user_id) is not None
        )
        if rated:
            logger.debug("Affinity for user %s from ratings: %s", user_id, sorted(g.value for g in rated))
            return rated

        if self.include_view_signal:
            viewed = frozenset(book.genre for book in catalog if book.views > 0)
            if viewed:
                logger.debug("Affinity for user %s from global views: %d genres", user_id, len(viewed))
            return viewed

        return frozenset()
