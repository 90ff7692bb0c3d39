from uuid import uuid4

import pytest

from bookhive.domain.entities import User
from tests.fakes import FakeClock, RecordingSender


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def users() -> list[User]:
    return [
        User(id=uuid4(), username="reader1", push_token="ExponentPushToken[aaa]"),
        User(id=uuid4(), username="reader2", push_token="ExponentPushToken[bbb]"),
        User(id=uuid4(), username="lurker", push_token=None),
    ]
