"""Low-level connection utilities with no internal dependencies.

These utilities work with any connection type (ConnectionWrapper, SQLAlchemy
connections, raw psycopg connections) and import nothing from other pgenum
modules.
"""
import logging
from typing import Any

logger = logging.getLogger(__name__)


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a database connection or engine.
    """
    if hasattr(obj, 'dialect'):
        dialect = obj.dialect
        if isinstance(dialect, str):
            return dialect.lower()
        return str(dialect.name).lower()

    if hasattr(obj, 'engine') and hasattr(obj.engine, 'dialect'):
        return str(obj.engine.dialect.name).lower()

    type_name = f'{type(obj).__module__}.{type(obj).__name__}'
    if 'psycopg' in type_name:
        return 'postgresql'

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')


def get_raw_connection(connection: Any) -> Any:
    """Extract the raw DBAPI connection from a wrapper."""
    raw_conn = connection
    if hasattr(connection, 'driver_connection'):
        raw_conn = connection.driver_connection
    return raw_conn


def ensure_commit(connection: Any) -> None:
    """Commit on a connection that may or may not be in auto-commit mode.
    """
    if hasattr(connection, 'commit'):
        try:
            connection.commit()
            return
        except Exception as e:
            logger.debug(f'Could not commit transaction: {e}')

    raw_conn = get_raw_connection(connection)
    if raw_conn is not connection and hasattr(raw_conn, 'commit'):
        try:
            raw_conn.commit()
        except Exception as e:
            logger.debug(f'Could not commit driver_connection transaction: {e}')
