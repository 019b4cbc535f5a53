"""
Statement builder.

Thin adapter over SQLAlchemy Core: statements are built on lightweight
``table()``/``column()`` constructs, compiled with a positional ``qmark``
dialect, and the ``?`` markers are then rewritten for the configured
placeholder dialect.
"""

from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy import column, delete, insert, literal, literal_column, select, table, update
from sqlalchemy.engine import default
from sqlalchemy.exc import SQLAlchemyError

from .errors import QueryBuildError
from .placeholder import Placeholder

Predicate = Tuple[str, Any]


class Statement(NamedTuple):
    """Rendered SQL text plus its positional arguments."""

    sql: str
    args: List[Any]


def _table(name: str, columns: Iterable[str]):
    seen: List[str] = []
    for c in columns:
        if c not in seen:
            seen.append(c)
    return table(name, *[column(c) for c in seen])


class StatementBuilder:
    """
    Renders INSERT / SELECT / UPDATE / DELETE for a single table.

    The builder holds no per-call state and can be shared between threads.
    """

    def __init__(self, placeholder: Placeholder = Placeholder.QUESTION):
        self.placeholder = placeholder
        self._dialect = default.DefaultDialect(paramstyle="qmark")

    def insert(self, table_name: str, columns: Sequence[str], values: Mapping[str, Any]) -> Statement:
        """
        Render an INSERT of one row.

        Args:
            table_name: Target table
            columns: Columns in the order they should appear
            values: Column -> value mapping; must cover every column

        Returns:
            Statement with one argument per column
        """
        self._check_table(table_name)
        if not columns:
            raise QueryBuildError(f"INSERT into {table_name!r} needs at least one column")
        missing = [c for c in columns if c not in values]
        if missing:
            raise QueryBuildError(f"INSERT into {table_name!r} has no values for columns {missing}")

        t = _table(table_name, columns)
        stmt = insert(t).values({c: values[c] for c in columns})
        return self._render(stmt)

    def select(self, table_name: str, where: Optional[Predicate] = None) -> Statement:
        """Render ``SELECT *`` with an optional ``column = value`` predicate."""
        self._check_table(table_name)
        if where is None:
            return self._render(select(literal_column("*")).select_from(table(table_name)))

        key, value = self._check_predicate(where)
        t = _table(table_name, [key])
        stmt = select(literal_column("*")).select_from(t).where(t.c[key] == literal(value))
        return self._render(stmt)

    def update(self, table_name: str, assignments: Mapping[str, Any], where: Predicate) -> Statement:
        """Render an UPDATE setting ``assignments`` on rows matching ``where``."""
        self._check_table(table_name)
        if not assignments:
            raise QueryBuildError(f"UPDATE of {table_name!r} has nothing to set")
        key, value = self._check_predicate(where)

        t = _table(table_name, list(assignments) + [key])
        stmt = update(t).where(t.c[key] == literal(value)).values(dict(assignments))
        return self._render(stmt)

    def delete(self, table_name: str, where: Predicate) -> Statement:
        """Render a DELETE of rows matching ``where``."""
        self._check_table(table_name)
        key, value = self._check_predicate(where)

        t = _table(table_name, [key])
        stmt = delete(t).where(t.c[key] == literal(value))
        return self._render(stmt)

    def _render(self, stmt) -> Statement:
        try:
            compiled = stmt.compile(dialect=self._dialect)
        except SQLAlchemyError as e:
            raise QueryBuildError(f"Failed to compile statement: {e}") from e

        params = compiled.params
        args = [params[name] for name in compiled.positiontup]
        return Statement(self.placeholder.replace(str(compiled)), args)

    @staticmethod
    def _check_table(table_name: str) -> None:
        if not table_name or not table_name.strip():
            raise QueryBuildError("Table name must be a non-empty string")

    @staticmethod
    def _check_predicate(where: Predicate) -> Predicate:
        try:
            key, value = where
        except (TypeError, ValueError) as e:
            raise QueryBuildError(f"Predicate must be a (column, value) pair, got {where!r}") from e
        if not key:
            raise QueryBuildError("Predicate column must be a non-empty string")
        return key, value
