"""Book catalog domain service: create, borrow, return, list."""
from __future__ import annotations

import datetime
from typing import Callable, List

from flask import current_app

from models import Book

from .errors import InvalidStateError, NotFoundError, ValidationError
from .store import BookStore
from .validation import parse_book_id, validate_new_book


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class BookService:
    """Encapsulates the borrow/return state machine for books.

    Holds no book state between calls; every operation goes through the
    injected store. Borrow and return are single conditional updates, so two
    concurrent borrows of the same book cannot both succeed.
    """

    def __init__(self, store: BookStore, clock: Callable[[], datetime.datetime] = utcnow):
        self._store = store
        self._clock = clock

    def create(self, title, author) -> Book:
        result = validate_new_book(title, author)
        if not result.ok:
            raise ValidationError('Title and author are required.', field_errors=result.errors)
        now = self._clock()
        book = Book(
            title=result.draft.title,
            author=result.draft.author,
            is_borrowed=False,
            created_at=now,
            updated_at=now,
        )
        self._store.add(book)
        current_app.logger.info('Book %s created', book.id)
        return book

    def borrow(self, book_id) -> Book:
        book = self._transition(book_id, borrowed=True)
        current_app.logger.info('Book %s borrowed', book.id)
        return book

    def return_book(self, book_id) -> Book:
        book = self._transition(book_id, borrowed=False)
        current_app.logger.info('Book %s returned', book.id)
        return book

    def list_available(self) -> List[Book]:
        return self._store.list_books(borrowed=False)

    def list_all(self) -> List[Book]:
        return self._store.list_books()

    def _transition(self, raw_id, *, borrowed: bool) -> Book:
        book_id = parse_book_id(raw_id)
        if book_id is None:
            raise ValidationError('Invalid book ID')
        book = self._store.set_borrowed(book_id, borrowed=borrowed, updated_at=self._clock())
        if book is not None:
            return book
        # nothing matched: tell a missing book apart from a wrong state
        if self._store.get(book_id) is None:
            raise NotFoundError('Book not found.')
        if borrowed:
            raise InvalidStateError('Book is already borrowed.')
        raise InvalidStateError('Book is not currently borrowed.')
