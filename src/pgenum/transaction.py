"""
Transaction handling for wrapped connections.
"""
import logging
import threading
from typing import Any

from pgenum.cursor import ResultRow, get_dict_cursor
from pgenum.sql import prepare_query

logger = logging.getLogger(__name__)


_local = threading.local()


class Transaction:
    """Context manager for running multiple commands in a transaction.

    Auto-commit is switched off on the driver connection for the duration of
    the block; the block commits on success and rolls back on any exception.
    Nested transactions on the same connection in one thread are not
    supported.

    Examples
        with Transaction(cn) as tx:
            tx.execute('insert into person (name, mood) values (%s, %s)', 'John', Mood.SAD)
            tx.execute('update person set mood = %s', Mood.OK)
    """

    def __init__(self, cn: Any) -> None:
        self.connection = cn

        if not hasattr(_local, 'active_transactions'):
            _local.active_transactions = {}

        if id(cn) in _local.active_transactions:
            raise RuntimeError('Nested transactions are not supported')

    def __enter__(self) -> 'Transaction':
        _local.active_transactions[id(self.connection)] = True
        self.connection.in_transaction = True
        self.connection.driver_connection.autocommit = False
        logger.debug(f'Started transaction for connection {id(self.connection)}')
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        raw_conn = self.connection.driver_connection
        try:
            if exc_type is not None:
                raw_conn.rollback()
                logger.warning('Rolling back the current transaction')
            else:
                raw_conn.commit()
                logger.debug(f'Committed transaction for connection {id(self.connection)}')
        finally:
            _local.active_transactions.pop(id(self.connection), None)
            raw_conn.autocommit = True
            self.connection.in_transaction = False

    def execute(self, sql: str, *args: Any) -> int:
        """Execute SQL within transaction context"""
        cursor = get_dict_cursor(self.connection)
        cursor.execute(*prepare_query(sql, args))
        return cursor.rowcount

    def select(self, sql: str, *args: Any) -> list[ResultRow]:
        """Execute SELECT query within transaction context"""
        cursor = get_dict_cursor(self.connection)
        cursor.execute(*prepare_query(sql, args))
        return cursor.fetchall()

    def select_scalar(self, sql: str, *args: Any) -> Any:
        """Execute a query and return a single scalar value
        """
        data = self.select(sql, *args)
        assert len(data) == 1, f'Expected one row, got {len(data)}'
        return next(iter(data[0].values()))
