# catalog_api/errors.py
from typing import Optional

from sqlalchemy.exc import IntegrityError


class CatalogError(Exception):
    """Base for errors that map straight onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(CatalogError):
    status_code = 400


class SlugConflict(CatalogError):
    status_code = 400

    def __init__(self, message: str = "Product slug already exists"):
        super().__init__(message)


class ProductNotFound(CatalogError):
    status_code = 404

    def __init__(self, message: str = "Product not found"):
        super().__init__(message)


class UploadRejected(CatalogError):
    status_code = 400


class StorageFailure(CatalogError):
    status_code = 500


def is_duplicate_key(exc: IntegrityError) -> bool:
    """True when the driver reports a unique-constraint violation."""
    orig = exc.orig
    args = getattr(orig, "args", ())
    # MySQL: ER_DUP_ENTRY
    if args and args[0] == 1062:
        return True
    # PostgreSQL: unique_violation
    if getattr(orig, "pgcode", None) == "23505" or getattr(orig, "sqlstate", None) == "23505":
        return True
    return "UNIQUE constraint failed" in str(orig)
