"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionWrapper` class that wraps SQLAlchemy connections with query methods
3. Engine creation and management through a thread-safe registry

Every engine created here is configured for enum codecs: new psycopg
connections get the typed payload dumpers, and the codecs from the options
(or the global CodecRegistry) are registered on them.

The ConnectionWrapper provides methods like:
- execute(sql, *args) - Execute SQL and return affected row count
- select(sql, *args) - Execute SELECT and return ResultRow list
- select_scalar(sql, *args) - Execute SELECT expecting exactly 1 value
- prepare(sql) - Build a Statement for slot-by-slot binding
- register_codec(codec) - Register an enum codec on this connection
"""
import atexit
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import fields
from functools import wraps
from typing import Any, Self, TypeVar

import psycopg
import sqlalchemy as sa
from pgenum.adapters import register_enum_codec
from pgenum.codec import EnumCodec
from pgenum.cursor import Cursor, ResultRow, Statement, get_dict_cursor
from pgenum.exceptions import DbConnectionError, ValidationError
from pgenum.options import DatabaseOptions
from pgenum.sql import prepare_query
from pgenum.sqltype import register_engine
from pgenum.utils import ensure_commit, get_dialect_name
from psycopg.types.enum import EnumInfo
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import is_null, load_options

__all__ = [
    'ConnectionWrapper',
    'connect',
    'configure_connection',
    'check_connection',
    'create_url_from_options',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')
_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options: DatabaseOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    query = {'application_name': options.appname}
    if options.timeout:
        query['connect_timeout'] = str(options.timeout)

    return url_creator(
        drivername='postgresql+psycopg',
        username=options.username,
        password=options.password,
        host=options.hostname,
        port=options.port,
        database=options.database,
        query=query
    )


def check_connection(func: Callable[..., T] | None = None, *, max_retries: int = 3,
                     retry_delay: float = 1, retry_errors: type | tuple[type, ...] | None = None,
                     retry_backoff: float = 1.5,
                     sleep_func: Callable[[float], None] | None = None) -> Callable[..., T]:
    """Connection retry decorator with backoff.

    Retries the wrapped operation on connection errors with exponential
    backoff. Codec errors and cancelled statements (statement timeouts)
    are never retried.

    Supports both @check_connection and @check_connection() syntax.
    """
    def decorator(f: Callable[..., T]) -> Callable[..., T]:
        @wraps(f)
        def inner(*args: Any, **kwargs: Any) -> T:
            error_types = retry_errors if retry_errors is not None else DbConnectionError

            tries = 0
            delay = retry_delay
            while tries < max_retries:
                try:
                    return f(*args, **kwargs)
                except error_types as err:
                    if isinstance(err, psycopg.errors.QueryCanceled):
                        raise
                    tries += 1
                    if tries >= max_retries:
                        logger.error(f'Maximum retries ({max_retries}) exceeded: {err}')
                        raise
                    logger.warning(f'Connection error (attempt {tries}/{max_retries}): {err}')
                    (sleep_func or time.sleep)(delay)
                    delay *= retry_backoff

        return inner

    if func is None:
        return decorator
    return decorator(func)


def get_engine_for_options(options: DatabaseOptions, use_pool: bool = False,
                           pool_size: int = 5, pool_recycle: int = 300,
                           pool_timeout: int = 30,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.
    """
    key = f'{str(options)}_{use_pool}_{pool_size}_{pool_recycle}_{pool_timeout}'

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug('Using existing engine')
            return _engine_registry[key]

        url = create_url_from_options(options)

        engine_kwargs: dict[str, Any] = {'echo': False}

        if not use_pool:
            engine_kwargs['poolclass'] = NullPool
        else:
            engine_kwargs['pool_size'] = pool_size
            engine_kwargs['pool_recycle'] = pool_recycle
            engine_kwargs['pool_timeout'] = pool_timeout
            engine_kwargs['max_overflow'] = 10
            engine_kwargs['pool_pre_ping'] = True
            engine_kwargs['pool_reset_on_return'] = 'rollback'

        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)
        register_engine(engine, options.codecs or None)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.hostname}/{options.database}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy connection object to track calls and execution time

    This class provides a thin wrapper around SQLAlchemy connection objects that:
    1. Tracks query execution counts and timing
    2. Runs queries on the underlying psycopg connection in auto-commit mode
    3. Supports context manager protocol for explicit resource management
    4. Delegates attribute access to the SQLAlchemy connection object
    """

    def __init__(self, sa_connection: sa.engine.Connection | None = None,
                 options: DatabaseOptions | None = None) -> None:
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine if sa_connection else None
        self.options = options
        self.dbapi_connection = sa_connection.connection if sa_connection else None
        self._dialect = get_dialect_name(sa_connection) if sa_connection else None
        self.calls = 0
        self.time = 0
        self.in_transaction = False

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        """Return the connection to the pool when exiting the context manager
        """
        try:
            self.close()
            logger.debug('Closed connection via context manager')
        except Exception as e:
            logger.debug(f'Error closing connection in __exit__: {e}')

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the SQLAlchemy connection.
        """
        if name in {'sa_connection', 'dbapi_connection'}:
            raise AttributeError(name)
        return getattr(self.sa_connection, name)

    @property
    def driver_connection(self) -> Any:
        """The psycopg connection under the SQLAlchemy pool proxy.
        """
        return self.dbapi_connection.driver_connection

    @property
    def dialect(self) -> str:
        return self._dialect

    def cursor(self) -> Cursor:
        """Get a wrapped cursor for this connection, reconnecting if closed
        """
        if self.sa_connection.closed or self.driver_connection.closed:
            logger.warning('Connection closed, reconnecting')
            if not self.sa_connection.closed:
                self.sa_connection.invalidate()
            self.sa_connection = self.engine.connect()
            self.dbapi_connection = self.sa_connection.connection
            configure_connection(self.sa_connection)
        return get_dict_cursor(self)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def commit(self) -> None:
        self.driver_connection.commit()

    def rollback(self) -> None:
        self.driver_connection.rollback()

    def close(self) -> None:
        """Close the SQLAlchemy connection, committing first if needed
        """
        if self.sa_connection is None or self.sa_connection.closed:
            return
        if not self.in_transaction:
            ensure_commit(self.driver_connection)
        self.sa_connection.close()
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s')

    def register_codec(self, codec: EnumCodec) -> EnumInfo:
        """Register an enum codec's dumper and loader on this connection.
        """
        return register_enum_codec(codec, self.driver_connection)

    def prepare(self, sql: str) -> Statement:
        """Create a Statement whose `%s` slots are bound one at a time.
        """
        return Statement(self, sql)

    @check_connection
    def execute(self, sql: str, *args: Any) -> int:
        """Execute a SQL query with the given parameters and return affected row count.
        """
        cursor = self.cursor()
        try:
            cursor.execute(*prepare_query(sql, args))
            rowcount = cursor.rowcount
            if not self.in_transaction:
                self.commit()
            return rowcount
        except Exception:
            if not self.in_transaction:
                self.rollback()
            raise

    @check_connection
    def select(self, sql: str, *args: Any) -> list[ResultRow]:
        """Execute a SELECT query and return its rows.
        """
        cursor = self.cursor()
        cursor.execute(*prepare_query(sql, args))
        result = cursor.fetchall()
        logger.debug(f'Select query returned {len(result)} rows')
        return result

    def select_column(self, sql: str, *args: Any) -> list[Any]:
        """Execute a query and return the first column as a list.
        """
        return [next(iter(row.values())) for row in self.select(sql, *args)]

    def select_row(self, sql: str, *args: Any) -> ResultRow:
        """Execute a query and return a single row.

        Raises ValidationError if the query returns zero or multiple rows.
        """
        data = self.select(sql, *args)
        if len(data) != 1:
            raise ValidationError(f'Expected one row, got {len(data)}')
        return data[0]

    def select_scalar(self, sql: str, *args: Any) -> Any:
        """Execute a query and return a single scalar value.

        Raises ValidationError if the query returns zero or multiple rows.
        """
        row = self.select_row(sql, *args)
        return next(iter(row.values()))

    def select_scalar_or_none(self, sql: str, *args: Any) -> Any | None:
        """Execute a query and return a single scalar value or None if no rows found.
        """
        try:
            val = self.select_scalar(sql, *args)
        except ValidationError:
            return None
        if is_null(val):
            return None
        return val


def configure_connection(sa_connection: sa.engine.Connection) -> None:
    """Switch the underlying psycopg connection to auto-commit mode.
    """
    sa_connection.connection.driver_connection.autocommit = True


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Connect to a database using SQLAlchemy for connection management

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        ConnectionWrapper object for connecting to the database
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options, use_pool=options.use_pool,
                                    pool_size=options.pool_max_connections,
                                    pool_recycle=options.pool_max_idle_time,
                                    pool_timeout=options.pool_wait_timeout)

    sa_connection = engine.connect()
    configure_connection(sa_connection)

    return ConnectionWrapper(sa_connection, options)
