"""
Database handle helpers.

The repository only needs a SQLAlchemy Engine (or Connection); these
helpers build one from a URL, a SQLite path, or the environment settings.
"""

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from .config import Settings


def create_database_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an Engine for ``url``.

    For file-backed SQLite URLs the parent directory is created first.

    Args:
        url: SQLAlchemy database URL
        echo: Log every statement through SQLAlchemy

    Returns:
        SQLAlchemy Engine
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=echo)


def sqlite_engine(db_path: Path, echo: bool = False) -> Engine:
    """
    Create an Engine for a SQLite database file.

    Args:
        db_path: Path to SQLite database file
    """
    return create_database_engine(f"sqlite:///{db_path}", echo=echo)


def engine_from_settings(settings: Optional[Settings] = None) -> Engine:
    """Create an Engine from CRUDSQL_DATABASE_URL / CRUDSQL_ECHO_SQL."""
    settings = settings or Settings.from_env()
    return create_database_engine(settings.database_url, echo=settings.echo_sql)
