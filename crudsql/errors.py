"""
Error taxonomy for crudsql.

Every operation raises one of these immediately; nothing is retried or
suppressed. NotFoundError is deliberately outside the ExecutionError branch
so callers can tell "absent" from "broken".
"""

from typing import Any, List, Optional


class CrudError(Exception):
    """Base class for all crudsql errors."""
    pass


class QueryBuildError(CrudError):
    """Raised when a statement cannot be constructed from the given inputs."""
    pass


class ExecutionError(CrudError):
    """
    Raised when the database rejects or fails to run a statement.

    The driver/SQLAlchemy exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, statement: Optional[str] = None, params: Optional[List[Any]] = None):
        super().__init__(message)
        self.statement = statement
        self.params = list(params) if params is not None else []


class CancelledError(ExecutionError):
    """Raised when the execution context was cancelled or its deadline passed."""
    pass


class NotFoundError(CrudError):
    """Raised when a single-row lookup matched zero rows."""

    def __init__(self, table: str, key: Any):
        super().__init__(f"No row in {table!r} with primary key {key!r}")
        self.table = table
        self.key = key


class DecodeError(CrudError):
    """Raised when a result row cannot be mapped onto the record type."""
    pass
