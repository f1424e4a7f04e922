"""
PostgreSQL ENUM codecs for psycopg and SQLAlchemy.

An `EnumCodec` maps a Python Enum to a server-side ENUM type. It can be used:
- Directly: codec.encode / codec.decode / codec.literal / codec.bind_parameter
- Through psycopg: register_enum_codec(codec, conn) binds and loads members
- Through SQLAlchemy: PgEnumType(codec) as a column type

All query operations can be called either as:
- Module functions: pgenum.select(cn, sql, *args)
- ConnectionWrapper methods: cn.select(sql, *args)
"""
__version__ = '0.1.0'

from typing import Any

from pgenum.adapters import AdapterRegistry, CodecRegistry, get_adapter_registry
from pgenum.adapters import register_codec, register_enum_codec
from pgenum.codec import EnumCodec, NullScalar, Payload, StatementApi
from pgenum.codec import TypedScalar, define_enum
from pgenum.connection import ConnectionWrapper, connect
from pgenum.cursor import ResultRow, Statement
from pgenum.exceptions import ConnectionFailure, DatabaseError, DbConnectionError
from pgenum.exceptions import DecodeError, EncodeError, IntegrityError
from pgenum.exceptions import OperationalError, ProgrammingError, QueryError
from pgenum.exceptions import TypeConversionError, ValidationError
from pgenum.options import DatabaseOptions
from pgenum.schema import attach_enum_type, column_definition, create_type_sql
from pgenum.schema import drop_type_sql
from pgenum.sqltype import PgEnumType, as_text, enum_column, enum_literal
from pgenum.sqltype import register_engine
from pgenum.transaction import Transaction as transaction

adapter_registry = get_adapter_registry()


def execute(cn: ConnectionWrapper, sql: str, *args: Any) -> int:
    """Execute a SQL query and return affected row count.
    """
    return cn.execute(sql, *args)


delete = execute
insert = execute
update = execute


def select(cn: ConnectionWrapper, sql: str, *args: Any) -> list[ResultRow]:
    """Execute a SELECT query.
    """
    return cn.select(sql, *args)


def select_column(cn: ConnectionWrapper, sql: str, *args: Any) -> list[Any]:
    """Execute a query and return the first column as a list.
    """
    return cn.select_column(sql, *args)


def select_row(cn: ConnectionWrapper, sql: str, *args: Any) -> ResultRow:
    """Execute a query and return a single row.

    Raises ValidationError if the query returns zero or multiple rows.
    """
    return cn.select_row(sql, *args)


def select_scalar(cn: ConnectionWrapper, sql: str, *args: Any) -> Any:
    """Execute a query and return a single scalar value.

    Raises ValidationError if the query returns zero or multiple rows.
    """
    return cn.select_scalar(sql, *args)


def select_scalar_or_none(cn: ConnectionWrapper, sql: str, *args: Any) -> Any | None:
    """Execute a query and return a single scalar value or None if no rows found.
    """
    return cn.select_scalar_or_none(sql, *args)


def isconnection(obj: Any) -> bool:
    """Check whether an object is a live wrapped connection.
    """
    return isinstance(obj, ConnectionWrapper) and not obj.sa_connection.closed


__all__ = [
    'connect',
    'isconnection',
    'ConnectionWrapper',
    'transaction',
    'DatabaseOptions',
    'execute',
    'delete',
    'insert',
    'update',
    'select',
    'select_column',
    'select_row',
    'select_scalar',
    'select_scalar_or_none',
    'EnumCodec',
    'TypedScalar',
    'NullScalar',
    'Payload',
    'StatementApi',
    'Statement',
    'ResultRow',
    'define_enum',
    'AdapterRegistry',
    'CodecRegistry',
    'register_codec',
    'register_enum_codec',
    'PgEnumType',
    'as_text',
    'enum_column',
    'enum_literal',
    'register_engine',
    'attach_enum_type',
    'column_definition',
    'create_type_sql',
    'drop_type_sql',
    'DatabaseError',
    'ConnectionFailure',
    'QueryError',
    'ValidationError',
    'TypeConversionError',
    'DecodeError',
    'EncodeError',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
    'OperationalError',
]
