"""
Schema fragments for enum columns and server-side ENUM types.

The codec never creates server-side types on its own. These helpers render
the DDL for callers that do (test setup, metadata hooks), and the column
definition clause where the type name is spliced in verbatim.
"""
import logging
from typing import Any

import sqlalchemy as sa
from pgenum.adapters import register_enum_codec
from pgenum.codec import EnumCodec
from pgenum.sql import quote_identifier, quote_literal

logger = logging.getLogger(__name__)

__all__ = [
    'column_definition',
    'create_type_sql',
    'drop_type_sql',
    'type_exists',
    'attach_enum_type',
]


def column_definition(name: str, codec: EnumCodec, default: Any = None,
                      nullable: bool = False) -> str:
    """Render `<column> <type> [DEFAULT <literal>] [NOT NULL]`.

    The default goes through `codec.default_literal`, the same formatter as
    inline literal expressions.
    """
    parts = [quote_identifier(name), codec.type_name]
    if default is not None:
        parts.append(f'DEFAULT {codec.default_literal(default)}')
    if not nullable:
        parts.append('NOT NULL')
    return ' '.join(parts)


def create_type_sql(codec: EnumCodec) -> str:
    """Render `CREATE TYPE <type> AS ENUM (...)` from the codec's labels.
    """
    labels = ', '.join(quote_literal(label) for label in codec.labels)
    return f'CREATE TYPE {codec.type_name} AS ENUM ({labels})'


def drop_type_sql(codec: EnumCodec, if_exists: bool = True) -> str:
    """Render `DROP TYPE [IF EXISTS] <type>`.
    """
    guard = 'IF EXISTS ' if if_exists else ''
    return f'DROP TYPE {guard}{codec.type_name}'


def type_exists(connection: sa.engine.Connection, codec: EnumCodec) -> bool:
    """Check whether the server-side type is visible on the search path.
    """
    sql = sa.text('select to_regtype(:name) is not null')
    return bool(connection.execute(sql, {'name': codec.type_name}).scalar())


def attach_enum_type(metadata: sa.MetaData, codec: EnumCodec) -> None:
    """Create the ENUM type before `metadata.create_all()` and drop it after
    `metadata.drop_all()`.

    After creation the codec is registered on the DBAPI connection that ran
    the DDL, so parameters bound on it carry the new type's oid.
    """

    def before_create(target: Any, connection: sa.engine.Connection, **kw: Any) -> None:
        if kw.get('checkfirst', True) and type_exists(connection, codec):
            logger.debug(f'Type {codec.type_name} exists, skipping create')
            return
        connection.exec_driver_sql(create_type_sql(codec))
        logger.debug(f'Created type {codec.type_name}')

    def after_create(target: Any, connection: sa.engine.Connection, **kw: Any) -> None:
        if connection.dialect.driver == 'psycopg':
            register_enum_codec(codec, connection.connection.driver_connection)

    def after_drop(target: Any, connection: sa.engine.Connection, **kw: Any) -> None:
        connection.exec_driver_sql(drop_type_sql(codec))
        logger.debug(f'Dropped type {codec.type_name}')

    sa.event.listen(metadata, 'before_create', before_create)
    sa.event.listen(metadata, 'after_create', after_create)
    sa.event.listen(metadata, 'after_drop', after_drop)
