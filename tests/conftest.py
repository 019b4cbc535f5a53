"""
Pytest configuration and shared fixtures.
"""

import pytest
from dataclasses import dataclass
from typing import Dict, Optional

from crudsql import Repository, sqlrecord
from crudsql.database import sqlite_engine
from crudsql.logger import reset_logger

NAMES = ["Joe", "Mary", "John", "Jane", "Bob"]


@sqlrecord("persons")
@dataclass
class Person:
    """Example record: one row of the persons table."""

    id: Optional[int] = None
    name: str = ""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from CRUDSQL_* variables and the global logger."""
    for var in (
        "CRUDSQL_DATABASE_URL",
        "CRUDSQL_PLACEHOLDER",
        "CRUDSQL_LOG_LEVEL",
        "CRUDSQL_LOG_DIR",
        "CRUDSQL_LOG_CONSOLE",
        "CRUDSQL_ECHO_SQL",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def empty_engine(tmp_path):
    """SQLite engine with an empty persons table."""
    engine = sqlite_engine(tmp_path / "test.db")
    with engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE IF EXISTS persons")
        conn.exec_driver_sql(
            "CREATE TABLE persons (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)"
        )
    yield engine
    engine.dispose()


@pytest.fixture
def seeded(empty_engine) -> Dict[int, Person]:
    """Insert the five sample persons; return them keyed by generated id."""
    records = {}
    with empty_engine.begin() as conn:
        for name in NAMES:
            result = conn.exec_driver_sql("INSERT INTO persons (name) VALUES (?)", (name,))
            records[result.lastrowid] = Person(id=result.lastrowid, name=name)
    return records


@pytest.fixture
def repo(empty_engine) -> Repository[Person]:
    """Repository over the persons table using ? placeholders."""
    return Repository(Person, empty_engine)


def fetch_person(engine, person_id: int) -> Optional[tuple]:
    """Read a persons row directly, bypassing the repository."""
    with engine.connect() as conn:
        return conn.exec_driver_sql(
            "SELECT id, name FROM persons WHERE id = ?", (person_id,)
        ).first()
