"""
SQLAlchemy integration for enum codecs.

`PgEnumType` is the column type; it renders the server-side type name in DDL
and routes binding, result decoding and literal rendering through the codec.

Usage:
    mood = EnumCodec('mood', Mood)
    person = sa.Table(
        'person', metadata,
        sa.Column('name', sa.Text, nullable=False),
        enum_column('mood', mood, default=Mood.OK),
    )
    attach_enum_type(metadata, mood)
    register_engine(engine, [mood])

    cn.execute(person.insert().values(name='John', mood=enum_literal(mood, Mood.SAD)))
    cn.execute(sa.select(as_text(person.c.mood))).scalar_one()   # 'sad'
"""
import logging
from collections.abc import Callable, Iterable
from typing import Any

import sqlalchemy as sa
from pgenum.adapters import CodecRegistry, configure_psycopg_connection
from pgenum.codec import EnumCodec
from pgenum.utils import get_raw_connection
from sqlalchemy.engine import Dialect, Engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement
from sqlalchemy.types import UserDefinedType

logger = logging.getLogger(__name__)

__all__ = [
    'PgEnumType',
    'TextCast',
    'as_text',
    'enum_column',
    'enum_literal',
    'register_engine',
]


class PgEnumType(UserDefinedType):
    """Column type for a PostgreSQL ENUM backed by an EnumCodec.

    On the psycopg driver values are bound as TypedScalar payloads, so the
    parameter carries the ENUM oid; other drivers receive the plain label.
    """

    cache_ok = True

    def __init__(self, codec: EnumCodec) -> None:
        self.codec = codec

    def __repr__(self) -> str:
        return f'PgEnumType({self.codec!r})'

    def get_col_spec(self, **kw: Any) -> str:
        return self.codec.type_name

    @property
    def python_type(self) -> type:
        return self.codec.enum_class

    def bind_processor(self, dialect: Dialect) -> Callable[[Any], Any]:
        codec = self.codec
        if dialect.driver == 'psycopg':
            return codec.to_payload

        def process(value: Any) -> str | None:
            if value is None:
                return None
            return codec.encode(value)
        return process

    def result_processor(self, dialect: Dialect, coltype: Any) -> Callable[[Any], Any]:
        codec = self.codec

        def process(value: Any) -> Any:
            # Connections with the codec registered already load members
            if value is None or isinstance(value, codec.enum_class):
                return value
            return codec.decode(value)
        return process

    def literal_processor(self, dialect: Dialect) -> Callable[[Any], str]:
        codec = self.codec

        def process(value: Any) -> str:
            return codec.literal(value)
        return process


class TextCast(FunctionElement):
    """Cast an expression to text, `<expr>::text` on PostgreSQL.
    """

    type = sa.Text()
    name = 'text_cast'
    inherit_cache = True


@compiles(TextCast)
def _compile_text_cast(element: TextCast, compiler: Any, **kw: Any) -> str:
    return f'CAST({compiler.process(element.clauses, **kw)} AS TEXT)'


@compiles(TextCast, 'postgresql')
def _compile_text_cast_postgresql(element: TextCast, compiler: Any, **kw: Any) -> str:
    return f'{compiler.process(element.clauses, **kw)}::text'


def as_text(expr: Any) -> TextCast:
    """Select an ENUM column as its raw text label.
    """
    return TextCast(expr)


def enum_literal(codec: EnumCodec, value: Any) -> sa.ColumnElement:
    """Inline literal expression for a member, e.g. `'sad'`.

    Rendered with `codec.literal`, the same formatter used for server
    defaults, and typed so results decode through the codec.
    """
    return sa.literal_column(codec.literal(value), type_=PgEnumType(codec))


def enum_column(name: str, codec: EnumCodec, default: Any = None, **kw: Any) -> sa.Column:
    """Build a NOT NULL ENUM column, optionally with a server default.
    """
    kw.setdefault('nullable', False)
    if default is not None:
        if kw.get('server_default') is not None:
            raise ValueError(f'Column {name}: pass either default or server_default, not both')
        kw['server_default'] = sa.text(codec.default_literal(default))
    return sa.Column(name, PgEnumType(codec), **kw)


def register_engine(engine: Engine, codecs: Iterable[EnumCodec] | None = None) -> None:
    """Configure every new DBAPI connection of an engine for enum codecs.

    Installs the payload dumpers and registers `codecs` (default: every codec
    in the global CodecRegistry at connect time) on psycopg connections.
    """
    if engine.dialect.driver != 'psycopg':
        logger.debug(f'Engine driver {engine.dialect.driver} needs no adapters')
        return

    fixed = list(codecs) if codecs is not None else None

    @sa.event.listens_for(engine, 'connect')
    def on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        selected = fixed if fixed is not None else CodecRegistry.get_instance().codecs()
        configure_psycopg_connection(get_raw_connection(dbapi_connection), selected)
