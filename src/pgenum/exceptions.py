"""
Exception classes for enum codec and database errors.
"""
from typing import Any

import psycopg


class DatabaseError(Exception):
    """Base class for all pgenum errors.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or maintaining database connection.
    """


class QueryError(DatabaseError):
    """Error in query syntax or execution.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class TypeConversionError(DatabaseError):
    """Error converting types between Python and database.
    """


class DecodeError(TypeConversionError):
    """A value read from the database is not a label of the enumeration.

    Raised instead of substituting a default: a mismatch means schema drift
    or a caller bug.
    """

    def __init__(self, type_name: str, value: Any) -> None:
        self.type_name = type_name
        self.value = value
        super().__init__(f'Unknown label {value!r} for enum type {type_name}')


class EncodeError(TypeConversionError):
    """A value outside the enumeration's closed set was asked to be encoded.
    """

    def __init__(self, type_name: str, value: Any) -> None:
        self.type_name = type_name
        self.value = value
        super().__init__(
            f'Cannot encode {value!r} ({type(value).__name__}) as enum type {type_name}')


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    ConnectionFailure,
    )

IntegrityError = (
    psycopg.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    psycopg.DatabaseError,
    QueryError,
    )

OperationalError = (
    psycopg.OperationalError,
    )
