"""
Error taxonomy for the persistence layer.

Callers branch on the error class to tell "does not exist" from
"already exists" from an unexpected storage failure:

    try:
        wallet = wallets.get_by_id(wallet_id)
    except NotFoundError:
        ...

Driver exceptions are never leaked unwrapped from a repository; the underlying
psycopg error stays reachable through ``__cause__``.
"""

from contextlib import contextmanager

import psycopg

# SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class CopyTraderError(Exception):
    """Base class for all persistence errors."""


class NotFoundError(CopyTraderError):
    """No row matched the identifier or key."""


class DuplicateError(CopyTraderError):
    """An insert violated a uniqueness constraint."""


class StorageError(CopyTraderError):
    """Any other failure reported by the database."""


class InitializationError(CopyTraderError):
    """A bootstrap step failed; the database is not usable."""


@contextmanager
def storage_errors(action: str, duplicate: str = None):
    """
    Translate psycopg errors raised inside the block.

    Args:
        action: What was being attempted, e.g. "insert wallet". Used as the
            message prefix for StorageError.
        duplicate: Message for DuplicateError. When omitted, unique violations
            are reported as StorageError like any other failure.

    Usage:
        with storage_errors("insert wallet", duplicate="wallet already exists"):
            row = self.db.fetch_one(...)
    """
    try:
        yield
    except psycopg.Error as e:
        if duplicate is not None and e.sqlstate == UNIQUE_VIOLATION:
            raise DuplicateError(duplicate) from e
        raise StorageError(f"failed to {action}: {e}") from e
