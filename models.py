import datetime
import uuid
from datetime import timezone

from flask_sqlalchemy import SQLAlchemy

# SQLAlchemy instance (initialized by app)
db = SQLAlchemy()


def _new_book_id() -> str:
    return uuid.uuid4().hex


def _isoformat(value):
    if value is None:
        return None
    # SQLite hands datetimes back naive; they are always stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class Book(db.Model):
    __tablename__ = 'book'
    id = db.Column(db.String(32), primary_key=True, default=_new_book_id)
    title = db.Column(db.Text, nullable=False)
    author = db.Column(db.Text, nullable=False)
    is_borrowed = db.Column(db.Boolean, nullable=False, default=False)
    # use timezone-aware UTC timestamps
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.datetime.now(timezone.utc),
        index=True,
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'author': self.author,
            'isBorrowed': bool(self.is_borrowed),
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Book {self.id} {self.title!r} borrowed={self.is_borrowed}>'
