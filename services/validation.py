"""Input checks for catalog operations.

Everything here is pure: no Flask, no database. Handlers call these before
touching the store so that a rejected request never causes a write.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

_BOOK_ID_RE = re.compile(r'[A-Za-z0-9_-]{1,64}')


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self):
        return {'field': self.field, 'message': self.message}


@dataclass(frozen=True)
class BookDraft:
    """A title/author pair that passed validation, already trimmed."""

    title: str
    author: str


@dataclass(frozen=True)
class ValidationResult:
    draft: Optional[BookDraft] = None
    errors: Tuple[FieldError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


def _clean_text(value: Any) -> str:
    if not isinstance(value, str):
        return ''
    return value.strip()


def validate_new_book(title: Any, author: Any) -> ValidationResult:
    clean_title = _clean_text(title)
    clean_author = _clean_text(author)
    errors = []
    if not clean_title:
        errors.append(FieldError('title', 'Title is required'))
    if not clean_author:
        errors.append(FieldError('author', 'Author is required'))
    if errors:
        return ValidationResult(errors=tuple(errors))
    return ValidationResult(draft=BookDraft(title=clean_title, author=clean_author))


def parse_book_id(raw: Any) -> Optional[str]:
    """Return ``raw`` when it is a well-formed book id, otherwise None."""
    if not isinstance(raw, str):
        return None
    if not _BOOK_ID_RE.fullmatch(raw):
        return None
    return raw
