"""Dependency injection container."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookhive.core.config import settings
from bookhive.domain.entities import Book
from bookhive.domain.repositories import (
    IBookRepository,
    IClock,
    INotificationSender,
    IRandomSource,
    IUserRepository,
)
from bookhive.domain.services import (
    INotificationService,
    IRatingService,
    IRecommendationService,
)
from bookhive.infrastructure.clock import SystemClock, SystemRandomSource
from bookhive.infrastructure.database.connection import async_session_maker, get_db
from bookhive.infrastructure.database.repository import BookRepository, UserRepository
from bookhive.infrastructure.push.expo import ExpoPushSender
from bookhive.services.affinity_service import AffinityProfiler
from bookhive.services.daily_cache import DailyRecommendationCache
from bookhive.services.notification_service import NotificationGate, NotificationService
from bookhive.services.rating_service import BookLockRegistry, RatingAggregator
from bookhive.services.recommendation import RecommendationRanker


# ---------------------------------------------------------------------------
# Infrastructure providers (process-wide)
# ---------------------------------------------------------------------------
@lru_cache()
def get_clock() -> IClock:
    return SystemClock(settings.timezone)


@lru_cache()
def get_random_source() -> IRandomSource:
    return SystemRandomSource(settings.random_seed)


@lru_cache()
def get_push_sender() -> INotificationSender:
    return ExpoPushSender(
        push_url=settings.expo_push_url,
        timeout=settings.push_timeout_seconds,
        batch_size=settings.push_batch_size,
    )


@lru_cache()
def get_book_locks() -> BookLockRegistry:
    return BookLockRegistry()


async def _load_catalog() -> list[Book]:
    """Catalog read for the daily cache; opens its own session because the
    cache outlives any single request."""
    async with async_session_maker() as session:
        return await BookRepository(session).list_all()


@lru_cache()
def get_daily_cache() -> DailyRecommendationCache:
    return DailyRecommendationCache(
        catalog_loader=_load_catalog,
        clock=get_clock(),
        random_source=get_random_source(),
    )


@lru_cache()
def get_notification_gate() -> NotificationGate:
    return NotificationGate(sender=get_push_sender(), clock=get_clock())


# ---------------------------------------------------------------------------
# Repository providers (per request)
# ---------------------------------------------------------------------------
async def get_book_repository(session: AsyncSession = Depends(get_db)) -> IBookRepository:
    return BookRepository(session)


async def get_user_repository(session: AsyncSession = Depends(get_db)) -> IUserRepository:
    return UserRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_rating_service(
    repo: IBookRepository = Depends(get_book_repository),
    locks: BookLockRegistry = Depends(get_book_locks),
) -> IRatingService:
    return RatingAggregator(book_repository=repo, locks=locks)


async def get_recommendation_service(
    repo: IBookRepository = Depends(get_book_repository),
) -> IRecommendationService:
    profiler = AffinityProfiler(repo, include_view_signal=settings.affinity_view_signal)
    return RecommendationRanker(book_repository=repo, profiler=profiler)


async def get_notification_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    user_repo: IUserRepository = Depends(get_user_repository),
    gate: NotificationGate = Depends(get_notification_gate),
    sender: INotificationSender = Depends(get_push_sender),
) -> INotificationService:
    return NotificationService(
        book_repository=book_repo,
        user_repository=user_repo,
        gate=gate,
        sender=sender,
        featured_author=settings.featured_author,
    )
