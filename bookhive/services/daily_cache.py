"""Recommendation of the day: a process-wide sample recomputed once per day."""

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, Optional

from bookhive.domain.entities import Book, DailyCacheEntry
from bookhive.domain.errors import InvalidInput
from bookhive.domain.repositories import IClock, IRandomSource

logger = logging.getLogger(__name__)

CatalogLoader = Callable[[], Awaitable[list[Book]]]


class DailyRecommendationCache:
    """Date-keyed cache of a contiguous block of the catalog.

    The first call that observes a calendar day different from the cached one
    snapshots the creation-ordered catalog and draws a random start offset;
    every other call that day reads the stored entry. Day comparison,
    recomputation and store all happen under one lock, so concurrent
    first-of-the-day callers draw once and readers never see a half-written
    entry.

    Each call returns ``min(sample_size, catalog size)`` books starting at the
    day's offset. A block that would run past the end of the snapshot is
    shifted left, so a caller asking for more books than the first caller of
    the day still gets a full, contiguous block without a second draw.
    """

    def __init__(
        self,
        catalog_loader: CatalogLoader,
        clock: IClock,
        random_source: IRandomSource,
    ):
        self._load_catalog = catalog_loader
        self._clock = clock
        self._random = random_source
        self._entry: Optional[DailyCacheEntry] = None
        self._lock = asyncio.Lock()
        self.recompute_count = 0

    @property
    def cached_day(self) -> Optional[date]:
        entry = self._entry
        return entry.day if entry else None

    async def today(self, sample_size: int) -> list[Book]:
        if isinstance(sample_size, bool) or not isinstance(sample_size, int) or sample_size <= 0:
            raise InvalidInput(f"sample_size must be a positive integer, got {sample_size!r}")

        async with self._lock:
            day = self._clock.today()
            entry = self._entry
            if entry is None or entry.day != day:
                entry = await self._recompute(day, sample_size)
                self._entry = entry

        return entry.block(sample_size)

    def invalidate(self) -> None:
        """Drop the cached entry; the next call recomputes."""
        self._entry = None
        logger.info("Daily recommendation cache invalidated")

    async def _recompute(self, day: date, sample_size: int) -> DailyCacheEntry:
        catalog = await self._load_catalog()
        catalog = sorted(catalog, key=lambda b: b.created_at)
        max_offset = max(0, len(catalog) - sample_size)
        offset = self._random.randint(0, max_offset)
        self.recompute_count += 1
        logger.info(
            "Daily recommendations for %s: offset %d (catalog: %d)",
            day.isoformat(),
            offset,
            len(catalog),
        )
        return DailyCacheEntry(day=day, catalog=tuple(catalog), offset=offset)
