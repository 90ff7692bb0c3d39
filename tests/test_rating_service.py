"""Tests for rating aggregation."""

import asyncio
from uuid import uuid4

import pytest

from bookhive.domain.entities import Genre
from bookhive.domain.errors import InvalidInput, NotFound, StorageError
from bookhive.services.rating_service import BookLockRegistry, RatingAggregator, aggregate
from tests.fakes import FakeBookRepository, make_book


@pytest.fixture
def book():
    return make_book("Dune", Genre.SCIENCE_FICTION)


@pytest.fixture
def repo(book):
    return FakeBookRepository([book])


@pytest.fixture
def aggregator(repo):
    return RatingAggregator(book_repository=repo, locks=BookLockRegistry())


async def test_scenario_mean_and_count(aggregator, repo, book):
    u1, u2, u3 = uuid4(), uuid4(), uuid4()

    await aggregator.submit_rating(book.id, u1, 5)
    summary = await aggregator.submit_rating(book.id, u2, 3)
    assert summary.mean_rating == 4.0
    assert summary.rating_count == 2

    summary = await aggregator.submit_rating(book.id, u3, 1)
    assert summary.mean_rating == 3.0
    assert summary.rating_count == 3

    summary = await aggregator.submit_rating(book.id, u1, 1)
    assert summary.mean_rating == pytest.approx(5 / 3)
    assert summary.rating_count == 3

    stored = repo.stored(book.id)
    assert stored.rating_count == len(stored.ratings) == 3
    assert stored.mean_rating == pytest.approx(sum(r.value for r in stored.ratings) / 3)


async def test_rerating_never_increases_count(aggregator, book):
    user = uuid4()
    for value in (1, 2, 3, 4, 5, 5, 2):
        summary = await aggregator.submit_rating(book.id, user, value)
        assert summary.rating_count == 1
        assert summary.mean_rating == value


@pytest.mark.parametrize("value", [0, 6, -1, 3.5, "4", None, True])
async def test_invalid_values_rejected(aggregator, repo, book, value):
    with pytest.raises(InvalidInput):
        await aggregator.submit_rating(book.id, uuid4(), value)
    assert repo.save_calls == 0


async def test_unknown_book(aggregator):
    with pytest.raises(NotFound):
        await aggregator.submit_rating(uuid4(), uuid4(), 4)


async def test_storage_error_leaves_book_unchanged(aggregator, repo, book):
    user = uuid4()
    await aggregator.submit_rating(book.id, user, 4)

    repo.fail_saves = 1
    with pytest.raises(StorageError):
        await aggregator.submit_rating(book.id, uuid4(), 1)

    stored = repo.stored(book.id)
    assert stored.rating_count == 1
    assert stored.mean_rating == 4.0

    # The caller may retry the whole operation
    summary = await aggregator.submit_rating(book.id, uuid4(), 1)
    assert summary.rating_count == 2
    assert summary.mean_rating == 2.5


async def test_concurrent_votes_on_same_book_are_not_lost(book):
    repo = FakeBookRepository([book], yield_io=True)
    aggregator = RatingAggregator(book_repository=repo, locks=BookLockRegistry())
    voters = [(uuid4(), (i % 5) + 1) for i in range(25)]

    await asyncio.gather(*(aggregator.submit_rating(book.id, uid, v) for uid, v in voters))

    stored = repo.stored(book.id)
    assert stored.rating_count == 25
    assert stored.mean_rating == pytest.approx(sum(v for _, v in voters) / 25)


async def test_concurrent_rerating_reflects_a_single_vote_per_user(book):
    repo = FakeBookRepository([book], yield_io=True)
    aggregator = RatingAggregator(book_repository=repo, locks=BookLockRegistry())
    user = uuid4()

    await asyncio.gather(*(aggregator.submit_rating(book.id, user, v) for v in (1, 2, 3, 4, 5)))

    stored = repo.stored(book.id)
    assert stored.rating_count == 1
    assert stored.mean_rating == stored.ratings[0].value


async def test_separate_books_do_not_share_a_lock():
    locks = BookLockRegistry()
    a, b = uuid4(), uuid4()
    assert locks.lock_for(a) is not locks.lock_for(b)

    held = locks.lock_for(a)
    assert locks.lock_for(a) is held


async def test_record_view_increments(aggregator, repo, book):
    assert await aggregator.record_view(book.id) == 1
    assert await aggregator.record_view(book.id) == 2
    assert repo.stored(book.id).views == 2


async def test_record_view_keeps_rating_aggregate(aggregator, repo, book):
    await aggregator.submit_rating(book.id, uuid4(), 2)
    await aggregator.record_view(book.id)
    stored = repo.stored(book.id)
    assert stored.rating_count == 1
    assert stored.mean_rating == 2.0


async def test_get_user_rating(aggregator, book):
    user = uuid4()
    assert await aggregator.get_user_rating(book.id, user) is None
    await aggregator.submit_rating(book.id, user, 3)
    assert await aggregator.get_user_rating(book.id, user) == 3

    with pytest.raises(NotFound):
        await aggregator.get_user_rating(uuid4(), user)


def test_aggregate_empty():
    assert aggregate([]) == (None, 0)
