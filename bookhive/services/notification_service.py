"""Push notification gating and announcement composition."""

import asyncio
import logging
from datetime import date
from typing import Callable, Optional, TypeVar

from bookhive.domain.entities import Book, DispatchOutcome, PushMessage
from bookhive.domain.errors import DispatchError, InvalidInput, NotFound
from bookhive.domain.repositories import (
    IBookRepository,
    IClock,
    INotificationSender,
    IUserRepository,
)
from bookhive.domain.services import INotificationService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NotificationGate:
    """Allows the ordinary daily notification at most once per calendar day.

    Rules:
      - Override trigger: always sent; never reads nor writes the daily state.
      - Ordinary trigger: sent only if nothing was sent today and no other
        ordinary dispatch is in flight. ``last_sent_day`` is committed only
        after the sender confirms success, so a failed send can be retried
        the same day.

    The lock only guards the state check and update; the network call runs
    with it released. The in-flight marker keeps a second caller from
    sending while the first one is waiting on the provider.
    """

    def __init__(self, sender: INotificationSender, clock: IClock):
        self._sender = sender
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_sent_day: Optional[date] = None
        self._in_flight_day: Optional[date] = None

    @property
    def last_sent_day(self) -> Optional[date]:
        return self._last_sent_day

    async def try_dispatch(
        self,
        trigger: T,
        override_predicate: Callable[[T], bool],
        messages: list[PushMessage],
    ) -> bool:
        outcome = await self.try_dispatch_detailed(trigger, override_predicate, messages)
        return outcome is DispatchOutcome.SENT

    async def try_dispatch_detailed(
        self,
        trigger: T,
        override_predicate: Callable[[T], bool],
        messages: list[PushMessage],
    ) -> DispatchOutcome:
        if override_predicate(trigger):
            logger.info("Override trigger: dispatching %d messages without throttle", len(messages))
            return await self._send(messages)

        async with self._lock:
            today = self._clock.today()
            if self._last_sent_day == today:
                logger.info("Daily notification already sent for %s", today.isoformat())
                return DispatchOutcome.SKIPPED
            if self._in_flight_day == today:
                logger.info("Daily notification for %s already in flight", today.isoformat())
                return DispatchOutcome.SKIPPED
            self._in_flight_day = today

        outcome = DispatchOutcome.FAILED
        try:
            outcome = await self._send(messages)
        finally:
            async with self._lock:
                if outcome is DispatchOutcome.SENT:
                    self._last_sent_day = today
                self._in_flight_day = None
        return outcome

    async def _send(self, messages: list[PushMessage]) -> DispatchOutcome:
        try:
            await self._sender.send_batch(messages)
        except DispatchError as exc:
            logger.error("Push dispatch failed: %s", exc)
            return DispatchOutcome.FAILED
        return DispatchOutcome.SENT


def is_featured_author(featured_author: str) -> Callable[[Book], bool]:
    """Build the override predicate for the daily new-book announcement."""
    wanted = featured_author.strip().casefold()

    def predicate(book: Book) -> bool:
        return bool(wanted) and book.author.strip().casefold() == wanted

    return predicate


class NotificationService(INotificationService):
    """Composes announcement batches and routes them through the gate."""

    def __init__(
        self,
        book_repository: IBookRepository,
        user_repository: IUserRepository,
        gate: NotificationGate,
        sender: INotificationSender,
        featured_author: str = "",
    ):
        self.book_repository = book_repository
        self.user_repository = user_repository
        self.gate = gate
        self.sender = sender
        self.override = is_featured_author(featured_author)

    async def send_daily_book_notification(self) -> DispatchOutcome:
        latest = await self.book_repository.get_latest()
        if latest is None:
            raise NotFound("No books found")

        featured = self.override(latest)
        title = (
            f"🔥 Exclusive Release by {latest.author}!" if featured else "📚 New Book Uploaded!"
        )
        messages = await self._compose(
            title=title,
            body=f'Check out "{latest.title}" by {latest.author}',
            data={"type": "book", "bookId": str(latest.id)},
        )
        if not messages:
            logger.info("No users with push tokens; daily notification skipped")
            return DispatchOutcome.SKIPPED

        outcome = await self.gate.try_dispatch_detailed(latest, self.override, messages)
        logger.info(
            "Daily book notification for %s: %s%s",
            latest.id,
            outcome.value,
            " (featured author override)" if featured else "",
        )
        return outcome

    async def send_update_notification(self, version: str, features: str) -> DispatchOutcome:
        if not version or not features:
            raise InvalidInput("Version and features are required")

        messages = await self._compose(
            title=f"App Update {version} 🚀",
            body=f"What's new: {features}",
            data={"type": "update", "version": version},
        )
        if not messages:
            return DispatchOutcome.SKIPPED

        try:
            await self.sender.send_batch(messages)
        except DispatchError as exc:
            logger.error("Update push for %s failed: %s", version, exc)
            return DispatchOutcome.FAILED
        logger.info("Update push for %s sent to %d devices", version, len(messages))
        return DispatchOutcome.SENT

    async def _compose(self, title: str, body: str, data: dict) -> list[PushMessage]:
        users = await self.user_repository.list_with_push_tokens()
        return [
            PushMessage(to=user.push_token, title=title, body=body, data=data)
            for user in users
            if user.push_token
        ]
