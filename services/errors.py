"""Failures raised by the catalog and rendered by the HTTP layer."""
from __future__ import annotations

from typing import Optional, Sequence


class CatalogError(RuntimeError):
    """Base class for create/borrow/return/list failures."""

    status_code = 500
    kind = 'CatalogError'

    def __init__(self, message: str, *, details: Optional[object] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(CatalogError):
    status_code = 400
    kind = 'ValidationError'

    def __init__(self, message: str, *, field_errors: Sequence = ()):
        super().__init__(message, details=[e.to_dict() for e in field_errors] or None)
        self.field_errors = tuple(field_errors)


class NotFoundError(CatalogError):
    status_code = 404
    kind = 'NotFound'


class InvalidStateError(CatalogError):
    status_code = 400
    kind = 'InvalidState'


class StoreError(CatalogError):
    status_code = 500
    kind = 'StoreError'
