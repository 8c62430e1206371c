"""
Error taxonomy for the gazetteer cache.

Every engine-level failure is wrapped in a CacheError subclass carrying the
name of the cache operation that failed and the sqlite diagnostic text.
A missing row is never an error: read accessors return None instead.
"""

import sqlite3

# sqlite3.OperationalError messages that mean the statement could not be
# compiled against the current schema, as opposed to failing while running.
_PREPARE_MARKERS = (
    "no such table",
    "no such column",
    "has no column named",
    "syntax error",
    "incomplete input",
)


class CacheError(Exception):
    """Base class for all cache failures."""

    def __init__(self, operation: str, diagnostic: str):
        self.operation = operation
        self.diagnostic = diagnostic
        super().__init__(f"{operation}: {diagnostic}")


class DdlError(CacheError):
    """Table or index creation failed; the DDL transaction was rolled back."""


class PrepareError(CacheError):
    """Statement compilation failed (malformed query or schema mismatch)."""


class ExecuteError(CacheError):
    """Parameter binding or statement execution failed."""


class FetchError(CacheError):
    """Row retrieval or decoding failed after a successful execution."""


def is_prepare_failure(exc: sqlite3.Error) -> bool:
    """Return True if a sqlite error was raised while compiling a statement."""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _PREPARE_MARKERS)


def wrap_statement_error(operation: str, exc: Exception) -> CacheError:
    """Classify an exception raised by conn.execute() into Prepare/ExecuteError."""
    if isinstance(exc, sqlite3.Error) and is_prepare_failure(exc):
        return PrepareError(operation, str(exc))
    return ExecuteError(operation, str(exc))
