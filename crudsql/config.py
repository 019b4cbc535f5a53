"""
Configuration loaded from the environment and an optional .env file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .placeholder import Placeholder

DEFAULT_DATABASE_URL = "sqlite:///data/crudsql.db"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env(env_path: Optional[Path] = None) -> bool:
    """
    Load .env from project root if present.

    Variables already set in the environment are not overridden.

    Returns:
        True if a .env file was found and loaded
    """
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return False
    return load_dotenv(dotenv_path=env_path, override=False)


def _flag(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Resolved crudsql settings."""

    database_url: str = DEFAULT_DATABASE_URL
    placeholder: Placeholder = Placeholder.QUESTION
    log_level: str = "WARNING"
    log_dir: Optional[Path] = None
    log_console: bool = False
    echo_sql: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from CRUDSQL_* environment variables.

        Raises:
            ValueError: If CRUDSQL_PLACEHOLDER or CRUDSQL_LOG_LEVEL is invalid
        """
        log_level = os.getenv("CRUDSQL_LOG_LEVEL", "WARNING").strip().upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid CRUDSQL_LOG_LEVEL: {log_level!r}")

        log_dir = os.getenv("CRUDSQL_LOG_DIR")

        return cls(
            database_url=os.getenv("CRUDSQL_DATABASE_URL", DEFAULT_DATABASE_URL),
            placeholder=Placeholder.parse(os.getenv("CRUDSQL_PLACEHOLDER", "question")),
            log_level=log_level,
            log_dir=Path(log_dir) if log_dir else None,
            log_console=_flag(os.getenv("CRUDSQL_LOG_CONSOLE")),
            echo_sql=_flag(os.getenv("CRUDSQL_ECHO_SQL")),
        )


def logging_options() -> dict:
    """
    Logging settings from CRUDSQL_LOG_* variables only.

    Unlike ``Settings.from_env`` this never raises: an unknown level falls
    back to WARNING, and the other CRUDSQL_* variables are not read.

    Returns:
        Dict with ``level``, ``log_dir`` and ``enable_console`` keys
    """
    level = os.getenv("CRUDSQL_LOG_LEVEL", "WARNING").strip().upper()
    if level not in LOG_LEVELS:
        level = "WARNING"
    log_dir = os.getenv("CRUDSQL_LOG_DIR")
    return {
        "level": level,
        "log_dir": Path(log_dir) if log_dir else None,
        "enable_console": _flag(os.getenv("CRUDSQL_LOG_CONSOLE")),
    }
