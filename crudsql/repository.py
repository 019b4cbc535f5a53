"""
Generic CRUD repository.

Responsibilities:
- Render one statement per call from a record type's contract.
- Execute it against a caller-owned SQLAlchemy Engine or Connection.
- Decode result rows back into the record type.

Non-Responsibilities:
- No schema management, joins, caching or batching.
- No transactions spanning more than one statement.
- No retries; every error reaches the caller immediately.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Generic, Iterator, List, Mapping, Optional, Type, TypeVar, Union

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from .builder import Statement, StatementBuilder
from .context import Context
from .errors import CancelledError, DecodeError, ExecutionError, NotFoundError, QueryBuildError
from .logger import get_logger
from .placeholder import Placeholder
from .record import SQLRecord, decode_row

T = TypeVar("T", bound=SQLRecord)

Handle = Union[Engine, Connection]


@contextmanager
def _interruptible(ctx: Context, conn: Connection) -> Iterator[None]:
    """Abort the in-flight statement on ``conn`` when ``ctx`` is cancelled or expires."""
    driver = conn.connection.driver_connection
    abort = getattr(driver, "interrupt", None) or getattr(driver, "cancel", None)
    unregister = ctx.on_cancel(abort) if abort is not None else None

    timer = None
    remaining = ctx.remaining()
    if remaining is not None:
        timer = threading.Timer(remaining, ctx.cancel, kwargs={"reason": "deadline exceeded"})
        timer.daemon = True
        timer.start()
    try:
        yield
    finally:
        if timer is not None:
            timer.cancel()
        if unregister is not None:
            unregister()


class Repository(Generic[T]):
    """
    CRUD operations for one record type against one database handle.

    The placeholder dialect is fixed at construction and must match the
    driver's paramstyle (sqlite3 uses QUESTION, asyncpg-style drivers
    DOLLAR, and so on). The repository keeps no per-call state, so one
    instance can be shared by concurrent callers when the handle allows it.
    """

    def __init__(self, record_type: Type[T], db: Handle, placeholder: Placeholder = Placeholder.QUESTION):
        """
        Args:
            record_type: Type satisfying the SQLRecord contract
            db: SQLAlchemy Engine (one transaction per statement) or
                Connection (statements join the caller's transaction)
            placeholder: Placeholder dialect for rendered SQL
        """
        self.record_type = record_type
        self.db = db
        self._builder = StatementBuilder(placeholder)
        self.logger = get_logger()

    @property
    def placeholder(self) -> Placeholder:
        return self._builder.placeholder

    def __repr__(self) -> str:
        return f"Repository({self.record_type.__name__}, placeholder={self.placeholder.name})"

    # ── CREATE ────────────────────────────────────────────

    def create(self, record: T, ctx: Optional[Context] = None) -> None:
        """
        Insert ``record`` with every declared column, in declared order.

        Raises:
            QueryBuildError: If the record's columns/projection are malformed
            ExecutionError: If the database rejects the insert
        """
        self._run(
            "create",
            lambda: self._builder.insert(record.table(), record.columns(), record.projection()),
            ctx,
        )

    # ── READ ──────────────────────────────────────────────

    def get(self, pk: Any, ctx: Optional[Context] = None) -> T:
        """
        Fetch the row whose primary key equals ``pk``.

        Raises:
            NotFoundError: If no row matches
            DecodeError: If the row doesn't fit the record type
            ExecutionError: If the query fails
        """
        table = self.record_type.table()
        key = self.record_type.primary_key_column()
        row = self._run("get", lambda: self._builder.select(table, (key, pk)), ctx, fetch="one")
        if row is None:
            self.logger.record_error(NotFoundError.__name__)
            self.logger.warning("Row not found", table=table, key=key, value=pk)
            raise NotFoundError(table, pk)
        return self._decode(row)

    def get_all(self, ctx: Optional[Context] = None) -> List[T]:
        """Fetch every row, in the order the database returns them."""
        table = self.record_type.table()
        rows = self._run("get_all", lambda: self._builder.select(table), ctx, fetch="all")
        return [self._decode(row) for row in rows]

    # ── UPDATE ────────────────────────────────────────────

    def update(self, pk: Any, record: T, ctx: Optional[Context] = None) -> int:
        """
        Overwrite the non-key columns of the row whose key equals ``pk``.

        The key column is never part of the SET clause, and the record's own
        key value is ignored in favour of ``pk``. Matching no row is not an
        error.

        Returns:
            Number of rows affected

        Raises:
            QueryBuildError: If the record's key column is not a projection key
            ExecutionError: If the update fails
        """
        def build() -> Statement:
            key, _ = record.primary_key()
            assignments = dict(record.projection())
            if key not in assignments:
                raise QueryBuildError(
                    f"Primary key column {key!r} is not in the projection of "
                    f"{type(record).__name__} (keys: {sorted(assignments)})"
                )
            del assignments[key]
            return self._builder.update(record.table(), assignments, (key, pk))

        return self._run("update", build, ctx, fetch="rowcount")

    # ── DELETE ────────────────────────────────────────────

    def delete(self, pk: Any, ctx: Optional[Context] = None) -> int:
        """
        Delete the row whose primary key equals ``pk``.

        Returns:
            Number of rows affected (0 when nothing matched)
        """
        table = self.record_type.table()
        key = self.record_type.primary_key_column()
        return self._run("delete", lambda: self._builder.delete(table, (key, pk)), ctx, fetch="rowcount")

    # ── Internal ──────────────────────────────────────────

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if isinstance(self.db, Connection):
            yield self.db
        else:
            with self.db.begin() as conn:
                yield conn

    def _run(self, operation: str, build: Callable[[], Statement], ctx: Optional[Context], fetch: Optional[str] = None):
        ctx = ctx or Context.background()
        self.logger.record_statement(operation)

        try:
            statement = build()
        except QueryBuildError as e:
            self.logger.record_failure(operation, type(e).__name__)
            self.logger.error(f"Failed to build {operation} statement: {e}", record=self.record_type.__name__)
            raise

        self.logger.debug(
            f"Executing {operation}",
            sql=statement.sql,
            args=len(statement.args),
            placeholder=self.placeholder.name,
        )

        try:
            ctx.raise_if_done()
            with self._connect() as conn, _interruptible(ctx, conn):
                result = conn.exec_driver_sql(statement.sql, tuple(statement.args))
                if fetch == "one":
                    outcome = result.mappings().first()
                elif fetch == "all":
                    outcome = result.mappings().all()
                elif fetch == "rowcount":
                    outcome = result.rowcount
                else:
                    outcome = None
        except CancelledError as e:
            self.logger.record_failure(operation, type(e).__name__)
            self.logger.warning(f"{operation} cancelled before execution", reason=str(e))
            raise
        except SQLAlchemyError as e:
            if ctx.done():
                error: ExecutionError = CancelledError(
                    f"{operation} aborted: {ctx.reason()}", statement.sql, statement.args
                )
            else:
                cause = e.orig if isinstance(e, DBAPIError) and e.orig is not None else e
                error = ExecutionError(f"{operation} failed: {cause}", statement.sql, statement.args)
            self.logger.record_failure(operation, type(error).__name__)
            self.logger.error(str(error), sql=statement.sql)
            raise error from e

        rows = outcome if isinstance(outcome, int) else 0
        self.logger.record_success(operation, rows)
        if fetch == "rowcount" and rows == 0:
            self.logger.debug(f"{operation} matched no rows", sql=statement.sql)
        return outcome

    def _decode(self, row: Mapping[str, Any]) -> T:
        try:
            return decode_row(self.record_type, row)
        except DecodeError as e:
            self.logger.record_error(type(e).__name__)
            self.logger.error(f"Failed to decode row: {e}", record=self.record_type.__name__)
            raise
