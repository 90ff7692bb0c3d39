"""Repository implementations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookhive.domain.entities import Book, Genre, Rating, User
from bookhive.domain.errors import StorageError
from bookhive.domain.repositories import IBookRepository, IUserRepository
from bookhive.infrastructure.database.models import BookModel, RatingModel, UserModel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# User Repository
# ---------------------------------------------------------------------------
class UserRepository(IUserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        db_user = UserModel(
            id=user.id,
            username=user.username,
            push_token=user.push_token,
            created_at=user.created_at,
        )
        self.session.add(db_user)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageError(f"Failed to create user {user.id}: {exc}") from exc
        return self._to_entity(db_user)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        try:
            result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load user {user_id}: {exc}") from exc
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def list_with_push_tokens(self) -> list[User]:
        stmt = (
            select(UserModel)
            .where(UserModel.push_token.is_not(None), UserModel.push_token != "")
            .order_by(UserModel.created_at)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list push recipients: {exc}") from exc
        return [self._to_entity(u) for u in result.scalars().all()]

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            push_token=model.push_token,
            created_at=model.created_at,
        )


# ---------------------------------------------------------------------------
# Book Repository
# ---------------------------------------------------------------------------
class BookRepository(IBookRepository):
    """Book documents with their embedded ratings.

    ``save`` writes the book row and its full rating set in one transaction;
    on failure the transaction is rolled back and :class:`StorageError` is
    raised, so the stored document is left exactly as it was.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        db_book = await self._fetch(book_id)
        return self._to_entity(db_book) if db_book else None

    async def list_all(self) -> list[Book]:
        stmt = select(BookModel).order_by(BookModel.created_at.asc())
        try:
            result = await self.session.execute(stmt.execution_options(populate_existing=True))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list books: {exc}") from exc
        return [self._to_entity(b) for b in result.scalars().all()]

    async def count(self) -> int:
        try:
            result = await self.session.execute(select(func.count()).select_from(BookModel))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to count books: {exc}") from exc
        return result.scalar_one()

    async def get_latest(self) -> Optional[Book]:
        stmt = select(BookModel).order_by(BookModel.created_at.desc()).limit(1)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load latest book: {exc}") from exc
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def save(self, book: Book) -> Book:
        try:
            db_book = await self._fetch(book.id)
            if db_book is None:
                db_book = BookModel(id=book.id, created_at=book.created_at)
                self.session.add(db_book)
            db_book.title = book.title
            db_book.author = book.author
            db_book.genre = book.genre.value
            db_book.views = book.views
            db_book.mean_rating = book.mean_rating
            db_book.rating_count = book.rating_count
            db_book.updated_at = book.updated_at
            self._sync_ratings(db_book, book.ratings)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Failed to save book %s: %s", book.id, exc)
            raise StorageError(f"Failed to save book {book.id}: {exc}") from exc

        # expire_on_commit=False keeps the committed row readable without a round trip
        return self._to_entity(db_book)

    # -- Helpers --
    async def _fetch(self, book_id: UUID) -> Optional[BookModel]:
        # populate_existing: never serve a stale identity-map copy to a read-modify-write
        stmt = (
            select(BookModel)
            .where(BookModel.id == book_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load book {book_id}: {exc}") from exc
        return result.scalar_one_or_none()

    @staticmethod
    def _sync_ratings(db_book: BookModel, ratings: list[Rating]) -> None:
        existing = {r.user_id: r for r in db_book.ratings}
        wanted = {r.user_id for r in ratings}
        for rating in ratings:
            db_rating = existing.get(rating.user_id)
            if db_rating is None:
                db_book.ratings.append(
                    RatingModel(
                        user_id=rating.user_id,
                        value=rating.value,
                        created_at=rating.created_at,
                    )
                )
            else:
                db_rating.value = rating.value
                db_rating.created_at = rating.created_at
        for user_id, db_rating in existing.items():
            if user_id not in wanted:
                db_book.ratings.remove(db_rating)

    @staticmethod
    def _to_entity(model: BookModel) -> Book:
        return Book(
            id=model.id,
            title=model.title,
            author=model.author,
            genre=Genre(model.genre),
            ratings=[
                Rating(user_id=r.user_id, value=r.value, created_at=r.created_at)
                for r in model.ratings
            ],
            views=model.views,
            mean_rating=model.mean_rating,
            rating_count=model.rating_count,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
