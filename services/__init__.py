"""Service layer package for encapsulating business logic."""

from .catalog import BookService  # noqa: F401
from .errors import (  # noqa: F401
    CatalogError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from .ratelimit import RateLimiter  # noqa: F401
from .store import BookStore  # noqa: F401
