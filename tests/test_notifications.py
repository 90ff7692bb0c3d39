"""Tests for the notification gate and announcement service."""

import asyncio
from uuid import uuid4

import pytest

from bookhive.domain.entities import DispatchOutcome, Genre, PushMessage, User
from bookhive.domain.errors import InvalidInput, NotFound
from bookhive.services.notification_service import (
    NotificationGate,
    NotificationService,
    is_featured_author,
)
from tests.fakes import FakeBookRepository, FakeUserRepository, RecordingSender, make_book

MESSAGES = [PushMessage(to="ExponentPushToken[x]", title="t", body="b")]


def never(_trigger):
    return False


def always(_trigger):
    return True


# ── Gate ───────────────────────────────────────────


async def test_ordinary_dispatch_at_most_once_per_day(sender, clock):
    gate = NotificationGate(sender, clock)

    results = [await gate.try_dispatch("new-book", never, MESSAGES) for _ in range(5)]

    assert results == [True, False, False, False, False]
    assert len(sender.batches) == 1
    assert gate.last_sent_day == clock.day


async def test_next_day_allows_another_dispatch(sender, clock):
    gate = NotificationGate(sender, clock)
    assert await gate.try_dispatch("a", never, MESSAGES)

    clock.advance()

    assert await gate.try_dispatch("b", never, MESSAGES)
    assert len(sender.batches) == 2


async def test_override_always_dispatches_and_never_touches_state(sender, clock):
    gate = NotificationGate(sender, clock)

    for _ in range(4):
        assert await gate.try_dispatch("featured", always, MESSAGES)

    assert len(sender.batches) == 4
    assert gate.last_sent_day is None


async def test_override_does_not_consume_daily_quota(sender, clock):
    gate = NotificationGate(sender, clock)
    await gate.try_dispatch("featured", always, MESSAGES)

    assert await gate.try_dispatch("ordinary", never, MESSAGES)
    assert await gate.try_dispatch("featured", always, MESSAGES)
    assert not await gate.try_dispatch("ordinary", never, MESSAGES)


async def test_failure_does_not_block_retry_same_day(clock):
    sender = RecordingSender(fail_times=1)
    gate = NotificationGate(sender, clock)

    assert await gate.try_dispatch_detailed("a", never, MESSAGES) is DispatchOutcome.FAILED
    assert gate.last_sent_day is None

    assert await gate.try_dispatch_detailed("a", never, MESSAGES) is DispatchOutcome.SENT
    assert await gate.try_dispatch_detailed("a", never, MESSAGES) is DispatchOutcome.SKIPPED
    assert sender.attempts == 2


async def test_failed_override_returns_false(clock):
    gate = NotificationGate(RecordingSender(fail_times=1), clock)
    assert await gate.try_dispatch("featured", always, MESSAGES) is False
    assert gate.last_sent_day is None


async def test_concurrent_ordinary_dispatches_send_once(clock):
    sender = RecordingSender(yield_io=True)
    gate = NotificationGate(sender, clock)

    results = await asyncio.gather(*(gate.try_dispatch("a", never, MESSAGES) for _ in range(10)))

    assert results.count(True) == 1
    assert sender.attempts == 1


async def test_lock_released_while_sending(clock):
    release = asyncio.Event()
    started = asyncio.Event()

    class SlowSender(RecordingSender):
        async def send_batch(self, messages):
            started.set()
            await release.wait()
            await super().send_batch(messages)

    gate = NotificationGate(SlowSender(), clock)
    ordinary = asyncio.create_task(gate.try_dispatch("a", never, MESSAGES))
    await started.wait()

    # A second ordinary caller is answered immediately instead of waiting on the send
    assert await asyncio.wait_for(gate.try_dispatch("b", never, MESSAGES), timeout=1) is False

    release.set()
    assert await ordinary is True


# ── Override predicate ─────────────────────────────


def test_featured_author_predicate_is_trimmed_and_case_insensitive():
    predicate = is_featured_author("Hussnain Ahmad")
    assert predicate(make_book("x", author="  hussnain AHMAD "))
    assert not predicate(make_book("x", author="Someone Else"))


def test_empty_featured_author_disables_override():
    predicate = is_featured_author("")
    assert not predicate(make_book("x", author=""))


# ── Service ────────────────────────────────────────


def service_for(books, users, sender, clock, featured_author="Hussnain Ahmad"):
    gate = NotificationGate(sender, clock)
    return NotificationService(
        book_repository=FakeBookRepository(books),
        user_repository=FakeUserRepository(users),
        gate=gate,
        sender=sender,
        featured_author=featured_author,
    )


async def test_daily_notification_announces_latest_book(users, sender, clock):
    books = [
        make_book("Old", Genre.FICTION, author="A. Writer", index=0),
        make_book("Newest", Genre.FICTION, author="B. Writer", index=5),
    ]
    service = service_for(books, users, sender, clock)

    assert await service.send_daily_book_notification() is DispatchOutcome.SENT

    [batch] = sender.batches
    assert [m.to for m in batch] == ["ExponentPushToken[aaa]", "ExponentPushToken[bbb]"]
    message = batch[0]
    assert message.title == "📚 New Book Uploaded!"
    assert message.body == 'Check out "Newest" by B. Writer'
    assert message.data == {"type": "book", "bookId": str(books[1].id)}

    assert await service.send_daily_book_notification() is DispatchOutcome.SKIPPED
    assert len(sender.batches) == 1


async def test_featured_author_bypasses_daily_limit(users, sender, clock):
    books = [make_book("Exclusive", author="Hussnain Ahmad", index=0)]
    service = service_for(books, users, sender, clock)

    for _ in range(3):
        assert await service.send_daily_book_notification() is DispatchOutcome.SENT

    assert len(sender.batches) == 3
    assert sender.batches[0][0].title == "🔥 Exclusive Release by Hussnain Ahmad!"
    assert service.gate.last_sent_day is None


async def test_daily_notification_without_books(users, sender, clock):
    service = service_for([], users, sender, clock)
    with pytest.raises(NotFound):
        await service.send_daily_book_notification()


async def test_daily_notification_without_devices_is_skipped(sender, clock):
    service = service_for([make_book("x")], [], sender, clock)

    assert await service.send_daily_book_notification() is DispatchOutcome.SKIPPED
    assert sender.attempts == 0
    assert service.gate.last_sent_day is None


async def test_update_notification_is_not_throttled(users, sender, clock):
    service = service_for([], users, sender, clock)

    for _ in range(2):
        outcome = await service.send_update_notification("2.1.0", "Dark mode")
        assert outcome is DispatchOutcome.SENT

    message = sender.batches[0][0]
    assert message.title == "App Update 2.1.0 🚀"
    assert message.body == "What's new: Dark mode"
    assert message.data == {"type": "update", "version": "2.1.0"}
    assert service.gate.last_sent_day is None


async def test_update_notification_failure(users, clock):
    service = service_for([], users, RecordingSender(fail_times=1), clock)
    assert await service.send_update_notification("2.1.0", "Fixes") is DispatchOutcome.FAILED


@pytest.mark.parametrize("version,features", [("", "x"), ("1.0", ""), ("", "")])
async def test_update_notification_requires_fields(users, sender, clock, version, features):
    service = service_for([], users, sender, clock)
    with pytest.raises(InvalidInput):
        await service.send_update_notification(version, features)


async def test_blank_push_tokens_are_ignored(sender, clock):
    users = [User(id=uuid4(), username="empty-token", push_token="")]
    service = service_for([make_book("x")], users, sender, clock)
    assert await service.send_daily_book_notification() is DispatchOutcome.SKIPPED
