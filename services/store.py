"""Persistence for books on top of Flask-SQLAlchemy."""
from __future__ import annotations

import datetime
from contextlib import contextmanager
from typing import List, Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from models import Book

from .errors import StoreError


class BookStore:
    """Thin store client; the only place that talks to the database session.

    Every driver failure leaves here as a StoreError with the original
    exception chained.
    """

    def __init__(self, database):
        self._db = database

    @property
    def session(self):
        return self._db.session

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as exc:
            current_app.logger.exception('Store %s failed: %s', action, exc)
            self.session.rollback()
            raise StoreError('Database operation failed.', details=str(exc)) from exc

    def add(self, book: Book) -> Book:
        with self._guard('insert'):
            self.session.add(book)
            self.session.commit()
        return book

    def get(self, book_id: str) -> Optional[Book]:
        with self._guard('lookup'):
            return self.session.get(Book, book_id)

    def set_borrowed(
        self,
        book_id: str,
        *,
        borrowed: bool,
        updated_at: datetime.datetime,
    ) -> Optional[Book]:
        """Flip ``is_borrowed`` to ``borrowed`` only if it currently holds the opposite.

        Returns the refreshed book, or None when no row matched (unknown id
        or the book was already in the requested state).
        """
        stmt = (
            update(Book)
            .where(Book.id == book_id, Book.is_borrowed == (not borrowed))
            .values(is_borrowed=borrowed, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )
        with self._guard('conditional update'):
            result = self.session.execute(stmt)
            self.session.commit()
            if result.rowcount != 1:
                return None
            return self.session.get(Book, book_id)

    def list_books(self, *, borrowed: Optional[bool] = None) -> List[Book]:
        query = Book.query
        if borrowed is not None:
            query = query.filter(Book.is_borrowed == borrowed)
        with self._guard('list'):
            return query.order_by(Book.created_at.desc(), Book.id.desc()).all()

    def close(self) -> None:
        with self._guard('shutdown'):
            self.session.remove()
            self._db.engine.dispose()
