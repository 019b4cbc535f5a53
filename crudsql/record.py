"""
Record contract.

A record type describes its own table, columns, projection and primary key.
No base class is required: any type with these methods satisfies
``SQLRecord``. ``sqlrecord`` derives the whole contract from a dataclass.

Preconditions (not checked here, caller bugs if violated):
- the primary-key column is one of ``columns()``
- ``projection()`` keys equal ``columns()``
"""

import dataclasses
import datetime
import types
import typing
from typing import Any, Callable, Dict, List, Mapping, Protocol, Tuple, Type, TypeVar, runtime_checkable

from .errors import DecodeError

R = TypeVar("R")


@runtime_checkable
class SQLRecord(Protocol):
    """Capability set a type must provide to be managed by a Repository."""

    @classmethod
    def table(cls) -> str:
        """Name of the table."""
        ...

    @classmethod
    def columns(cls) -> List[str]:
        """Columns in table, in insert order."""
        ...

    @classmethod
    def primary_key_column(cls) -> str:
        """Name of the primary-key column."""
        ...

    def projection(self) -> Dict[str, Any]:
        """Record as a column -> value mapping."""
        ...

    def primary_key(self) -> Tuple[str, Any]:
        """Primary-key column and value for this record."""
        ...


def decode_row(record_type: Type[R], row: Mapping[str, Any]) -> R:
    """
    Build a record instance from a result row.

    Uses ``record_type.from_row`` when the type defines it, otherwise
    ``record_type(**row)``.

    Raises:
        DecodeError: If the row's columns don't fit the record type
    """
    mapping = dict(row)
    from_row = getattr(record_type, "from_row", None)
    try:
        if from_row is not None:
            return from_row(mapping)
        return record_type(**mapping)
    except DecodeError:
        raise
    except (TypeError, ValueError, KeyError) as e:
        raise DecodeError(
            f"Cannot decode row into {record_type.__name__}: {e}"
        ) from e


_UNION_TYPES = tuple(t for t in (typing.Union, getattr(types, "UnionType", None)) if t is not None)

# Drivers without native temporal types return these as ISO 8601 text
_ISO_TYPES = (datetime.datetime, datetime.date, datetime.time)


def _unwrap_optional(hint: Any) -> Any:
    """Optional[X] -> X. Other unions and generics are returned unchanged."""
    if typing.get_origin(hint) in _UNION_TYPES:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _coerce(name: str, hint: Any, value: Any) -> Any:
    hint = _unwrap_optional(hint)
    if value is None or not isinstance(hint, type) or hint is typing.Any:
        return value
    if isinstance(value, hint):
        return value
    if hint in _ISO_TYPES and isinstance(value, str):
        try:
            return hint.fromisoformat(value)
        except ValueError as e:
            raise DecodeError(
                f"Column {name!r} expected {hint.__name__}, got {value!r}"
            ) from e
    # SQLite stores booleans as 0/1 and may hand back ints for REAL columns
    if hint is bool and isinstance(value, int) and value in (0, 1):
        return bool(value)
    if hint is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    raise DecodeError(
        f"Column {name!r} expected {hint.__name__}, got {type(value).__name__}"
    )


def sqlrecord(table: str, primary_key: str = "id") -> Callable[[Type[R]], Type[R]]:
    """
    Class decorator that makes a dataclass satisfy ``SQLRecord``.

    Columns are the dataclass fields in declaration order.

    Args:
        table: Table name
        primary_key: Name of the primary-key field/column

    Example:
        @sqlrecord("persons")
        @dataclass
        class Person:
            id: Optional[int] = None
            name: str = ""
    """
    def decorator(cls: Type[R]) -> Type[R]:
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"@sqlrecord requires a dataclass, got {cls.__name__}")

        names = [f.name for f in dataclasses.fields(cls)]
        if primary_key not in names:
            raise TypeError(
                f"Primary key {primary_key!r} is not a field of {cls.__name__}"
            )

        def _table(klass) -> str:
            return table

        def _columns(klass) -> List[str]:
            return list(names)

        def _primary_key_column(klass) -> str:
            return primary_key

        def _projection(self) -> Dict[str, Any]:
            return {name: getattr(self, name) for name in names}

        def _primary_key(self) -> Tuple[str, Any]:
            return primary_key, getattr(self, primary_key)

        def _from_row(klass, row: Mapping[str, Any]):
            missing = [name for name in names if name not in row]
            if missing:
                raise DecodeError(f"Row is missing columns {missing} for {klass.__name__}")
            unknown = [key for key in row if key not in names]
            if unknown:
                raise DecodeError(f"Row has unknown columns {unknown} for {klass.__name__}")
            hints = typing.get_type_hints(klass)
            values = {name: _coerce(name, hints.get(name), row[name]) for name in names}
            return klass(**values)

        cls.table = classmethod(_table)
        cls.columns = classmethod(_columns)
        cls.primary_key_column = classmethod(_primary_key_column)
        cls.projection = _projection
        cls.primary_key = _primary_key
        cls.from_row = classmethod(_from_row)
        return cls

    return decorator
