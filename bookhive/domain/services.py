"""Domain-level application service interfaces (ports).

These abstract classes define the contracts that the API layer depends on.
Concrete implementations live in ``bookhive/services/`` and are wired
together by the composition root in ``bookhive/core/dependencies.py``.

Route handlers import from ``bookhive.domain`` only, so every service can be
replaced with a test double via FastAPI's ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from bookhive.domain.entities import Book, DispatchOutcome, RatingSummary, ScoredBook


class IRatingService(ABC):

    @abstractmethod
    async def submit_rating(self, book_id: UUID, user_id: UUID, value: int) -> RatingSummary:
        pass

    @abstractmethod
    async def record_view(self, book_id: UUID) -> int:
        pass

    @abstractmethod
    async def get_user_rating(self, book_id: UUID, user_id: UUID) -> Optional[int]:
        pass


class IRecommendationService(ABC):

    @abstractmethod
    async def recommend(self, user_id: UUID, limit: int) -> list[Book]:
        pass

    @abstractmethod
    async def recommend_scored(self, user_id: UUID, limit: int) -> list[ScoredBook]:
        """Same ranking as :meth:`recommend`, with scores and strategy labels."""
        pass


class INotificationService(ABC):

    @abstractmethod
    async def send_daily_book_notification(self) -> DispatchOutcome:
        pass

    @abstractmethod
    async def send_update_notification(self, version: str, features: str) -> DispatchOutcome:
        pass
