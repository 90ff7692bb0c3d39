"""Repository and collaborator interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from bookhive.domain.entities import Book, PushMessage, User


class IBookRepository(ABC):

    @abstractmethod
    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_all(self) -> list[Book]:
        """Return the whole catalog in creation order (oldest first)."""
        pass

    @abstractmethod
    async def save(self, book: Book) -> Book:
        """Persist the book document together with its ratings, atomically."""
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def get_latest(self) -> Optional[Book]:
        """Return the most recently created book, if any."""
        pass


class IUserRepository(ABC):

    @abstractmethod
    async def create(self, user: User) -> User:
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def list_with_push_tokens(self) -> list[User]:
        pass


class IClock(ABC):

    @abstractmethod
    def today(self) -> date:
        """Current calendar day in the service's configured timezone."""
        pass


class IRandomSource(ABC):

    @abstractmethod
    def randint(self, low: int, high: int) -> int:
        """Uniform integer draw in ``[low, high]`` (both inclusive)."""
        pass


class INotificationSender(ABC):

    @abstractmethod
    async def send_batch(self, messages: list[PushMessage]) -> None:
        """Deliver a batch of push messages.

        Raises :class:`~bookhive.domain.errors.DispatchError` on failure.
        """
        pass
