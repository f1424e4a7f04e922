"""
Cursor, result row and parameterized statement wrappers for psycopg.

`Statement` implements the slot-binding primitives an EnumCodec binds
through (`set_null`, `set_typed_object`), and `ResultRow` exposes raw column
values for `EnumCodec.decode`.
"""
import logging
import time
from collections.abc import Sequence
from functools import wraps
from typing import Any

from pgenum.codec import EnumCodec, NullScalar, TypedScalar
from pgenum.exceptions import QueryError, ValidationError
from pgenum.sql import count_placeholders

from libb import attrdict

logger = logging.getLogger(__name__)

__all__ = [
    'Cursor',
    'ResultRow',
    'ResultRowFactory',
    'Statement',
    'get_dict_cursor',
]


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(self, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {args}')
        try:
            result = func(self, operation, *args, **kwargs)
            logger.debug(f'Query result: {self.dbapi_cursor.statusmessage}')
            return result
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class ResultRow(attrdict):
    """Result row keyed by column name.
    """

    def get_raw_column_value(self, name: str) -> Any:
        """Return a column value exactly as the driver produced it.
        """
        try:
            return self[name]
        except KeyError:
            raise QueryError(f'No column {name!r} in result row') from None

    def get_enum(self, name: str, codec: EnumCodec) -> Any:
        """Return a column as an enum member, decoding raw labels.
        """
        value = self.get_raw_column_value(name)
        if value is None or isinstance(value, codec.enum_class):
            return value
        return codec.decode(value)


class ResultRowFactory:
    """Row factory for psycopg that returns ResultRow objects.
    """

    def __init__(self, cursor: Any) -> None:
        self.fields = [c.name for c in (cursor.description or [])]

    def __call__(self, values: Sequence) -> ResultRow:
        return ResultRow(zip(self.fields, values))


class Cursor:
    """Thin wrapper over a psycopg cursor that logs and times queries.
    """

    def __init__(self, cursor: Any, connection_wrapper: Any) -> None:
        self.dbapi_cursor = cursor
        self.connwrapper = connection_wrapper

    def __getattr__(self, name: str) -> Any:
        """Delegate members to underlying cursor."""
        return getattr(self.dbapi_cursor, name)

    @property
    def rowcount(self) -> int:
        return self.dbapi_cursor.rowcount

    @dumpsql
    def execute(self, operation: str, params: Sequence | None = None) -> 'Cursor':
        self.dbapi_cursor.execute(operation, params)
        return self

    def fetchall(self) -> list[ResultRow]:
        if self.dbapi_cursor.description is None:
            return []
        return self.dbapi_cursor.fetchall()


def get_dict_cursor(cn: Any) -> Cursor:
    """Get cursor that returns rows as ResultRow dictionaries."""
    return Cursor(cn.driver_connection.cursor(row_factory=ResultRowFactory), cn)


class Statement:
    """Parameterized statement with positional slots bound one at a time.

    Slots are the `%s` placeholders of the SQL text, indexed from 0. Every
    slot must be bound before the statement runs.

    Examples
        stmt = cn.prepare('insert into person (name, mood) values (%s, %s)')
        stmt.set_value(0, 'John')
        codec.bind_parameter(stmt, 1, Mood.SAD)
        stmt.execute()
    """

    def __init__(self, connwrapper: Any, sql: str) -> None:
        self.connwrapper = connwrapper
        self.sql = sql
        self.parameter_count = count_placeholders(sql)
        self._params: dict[int, Any] = {}

    def __repr__(self) -> str:
        return f'Statement({self.sql!r}, bound={sorted(self._params)})'

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.parameter_count:
            raise ValidationError(
                f'Parameter index {index} out of range for {self.parameter_count} slots')

    def set_null(self, index: int, type_hint: str | None = None) -> None:
        """Bind SQL NULL, typed when a server-side type name is given.
        """
        self._check_index(index)
        self._params[index] = NullScalar(type_hint) if type_hint else None

    def set_typed_object(self, index: int, payload: TypedScalar, type_hint: str) -> None:
        """Bind a text payload with an explicit server-side type.
        """
        self._check_index(index)
        if not isinstance(payload, TypedScalar):
            raise ValidationError(f'Expected TypedScalar payload, got {type(payload).__name__}')
        if payload.type_name != type_hint:
            raise ValidationError(
                f'Payload type {payload.type_name} does not match type hint {type_hint}')
        self._params[index] = payload

    def set_value(self, index: int, value: Any) -> None:
        """Bind a value using the driver's default adaptation.
        """
        self._check_index(index)
        self._params[index] = value

    def bind(self, index: int, codec: EnumCodec, value: Any) -> 'Statement':
        """Bind an enum member through its codec and return the statement.
        """
        codec.bind_parameter(self, index, value)
        return self

    def clear(self) -> None:
        self._params.clear()

    @property
    def parameters(self) -> tuple:
        """Bound values in slot order.
        """
        missing = [i for i in range(self.parameter_count) if i not in self._params]
        if missing:
            raise ValidationError(f'Unbound parameter slots: {missing}')
        return tuple(self._params[i] for i in range(self.parameter_count))

    def execute(self) -> int:
        """Run the statement and return the affected row count.
        """
        return self.connwrapper.execute(self.sql, *self.parameters)

    def select(self) -> list[ResultRow]:
        """Run the statement and return its rows.
        """
        return self.connwrapper.select(self.sql, *self.parameters)
