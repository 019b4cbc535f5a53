"""Generic SQL CRUD repository built on SQLAlchemy Core."""

__version__ = "0.1.0"

from .builder import Statement, StatementBuilder
from .context import Context
from .errors import (
    CancelledError,
    CrudError,
    DecodeError,
    ExecutionError,
    NotFoundError,
    QueryBuildError,
)
from .placeholder import Placeholder
from .record import SQLRecord, decode_row, sqlrecord
from .repository import Repository

__all__ = [
    "__version__",
    "CancelledError",
    "Context",
    "CrudError",
    "DecodeError",
    "ExecutionError",
    "NotFoundError",
    "Placeholder",
    "QueryBuildError",
    "Repository",
    "SQLRecord",
    "Statement",
    "StatementBuilder",
    "decode_row",
    "sqlrecord",
]
