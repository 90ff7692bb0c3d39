"""System-backed clock and random source."""

import random
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from bookhive.domain.repositories import IClock, IRandomSource


class SystemClock(IClock):
    """Calendar day in a fixed IANA timezone (``UTC`` by default)."""

    def __init__(self, timezone: str = "UTC"):
        self.tz = ZoneInfo(timezone)

    def today(self) -> date:
        return datetime.now(self.tz).date()


class SystemRandomSource(IRandomSource):
    """``random.Random`` wrapper; pass a seed for reproducible draws."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def randint(self, low: int, high: int) -> int:
        return self._rng.randint(low, high)
