"""
Book catalog and per-user favorites.

Plain CRUD on top of DBStorage. Listing is personalised: when a user id is
given every book comes back with an is_favorite flag for that user.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError

from models.book import Book, user_favorites
from models.db_storage import DBStorage
from services.errors import BookNotFound, DuplicateBook, FavoriteExists, FavoriteNotFound

MAX_LIMIT = 100
DEFAULT_LIMIT = 10
SORT_COLUMNS = {
    "created_at": Book.created_at,
    "title": Book.title,
}


def _is_favorited(session, user_id: str, book_id: str) -> bool:
    stmt = select(
        select(user_favorites.c.book_id)
        .where(and_(user_favorites.c.user_id == user_id, user_favorites.c.book_id == book_id))
        .exists()
    )
    return bool(session.scalar(stmt))


@dataclass
class BookPage:
    books: List[Tuple[Book, bool]] = field(default_factory=list)
    total_elements: int = 0
    page_num: int = 0
    page_size: int = DEFAULT_LIMIT

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.page_size) if self.page_size else 0

    @property
    def has_next_page(self) -> bool:
        return self.page_num < self.total_pages - 1

    @property
    def has_prev_page(self) -> bool:
        return self.page_num > 0

    def meta(self) -> dict:
        return {
            "totalElements": self.total_elements,
            "pageNum": self.page_num,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


class BookCatalog:
    def __init__(self, storage: DBStorage):
        self._storage = storage

    def _favorite_flag(self, user_id: Optional[str]):
        if not user_id:
            return None
        return (
            select(user_favorites.c.book_id)
            .where(user_favorites.c.user_id == user_id)
            .where(user_favorites.c.book_id == Book.id)
            .exists()
        )

    def create_book(self, data: dict) -> Book:
        book = Book(**data)
        try:
            with self._storage.transaction():
                self._storage.new(book)
        except IntegrityError:
            raise DuplicateBook()
        return book

    def list_books(
        self,
        search: str = "",
        page: int = 0,
        limit: int = DEFAULT_LIMIT,
        sort_by: str = "created_at",
        sort_order: str = "DESC",
        user_id: Optional[str] = None,
    ) -> BookPage:
        session = self._storage.get_session()
        page = max(page, 0)
        limit = max(1, min(limit, MAX_LIMIT))
        column = SORT_COLUMNS.get(sort_by, Book.created_at)
        order = column.asc() if (sort_order or "").upper() == "ASC" else column.desc()

        criteria = []
        if search:
            keyword = f"%{search.strip().lower()}%"
            criteria.append(or_(func.lower(Book.title).like(keyword), func.lower(Book.author).like(keyword)))

        total = session.query(func.count(Book.id)).filter(*criteria).scalar() or 0

        flag = self._favorite_flag(user_id)
        if flag is None:
            rows = (
                session.query(Book)
                .filter(*criteria)
                .order_by(order, Book.id.asc())
                .offset(page * limit)
                .limit(limit)
                .all()
            )
            books = [(b, False) for b in rows]
        else:
            rows = (
                session.query(Book, flag.label("is_favorite"))
                .filter(*criteria)
                .order_by(order, Book.id.asc())
                .offset(page * limit)
                .limit(limit)
                .all()
            )
            books = [(b, bool(fav)) for b, fav in rows]

        return BookPage(books=books, total_elements=total, page_num=page, page_size=limit)

    def get_book(self, book_id: str, user_id: Optional[str] = None) -> Tuple[Book, bool]:
        book = self._storage.get(Book, book_id)
        if not book:
            raise BookNotFound()
        favorite = bool(user_id) and _is_favorited(self._storage.get_session(), user_id, book_id)
        return book, favorite

    def delete_book(self, book_id: str) -> int:
        with self._storage.transaction() as session:
            deleted = session.execute(delete(Book).where(Book.id == book_id)).rowcount or 0
        if deleted == 0:
            raise BookNotFound()
        return deleted


class Favorites:
    def __init__(self, storage: DBStorage):
        self._storage = storage

    def is_favorited(self, user_id: str, book_id: str) -> bool:
        return _is_favorited(self._storage.get_session(), user_id, book_id)

    def add(self, user_id: str, book_id: str) -> dict:
        if not self._storage.get(Book, book_id):
            raise BookNotFound()
        if self.is_favorited(user_id, book_id):
            raise FavoriteExists()
        try:
            with self._storage.transaction() as session:
                session.execute(user_favorites.insert().values(user_id=user_id, book_id=book_id))
        except IntegrityError:
            raise FavoriteExists()
        return {"user_id": user_id, "book_id": book_id}

    def remove(self, user_id: str, book_id: str) -> int:
        with self._storage.transaction() as session:
            deleted = session.execute(
                delete(user_favorites).where(
                    and_(user_favorites.c.user_id == user_id, user_favorites.c.book_id == book_id)
                )
            ).rowcount or 0
        if deleted == 0:
            raise FavoriteNotFound()
        return deleted

    def list_for_user(self, user_id: str) -> List[Tuple[Book, object]]:
        session = self._storage.get_session()
        return (
            session.query(Book, user_favorites.c.created_at.label("added_at"))
            .join(user_favorites, user_favorites.c.book_id == Book.id)
            .filter(user_favorites.c.user_id == user_id)
            .order_by(user_favorites.c.created_at.desc(), Book.title.asc())
            .all()
        )
