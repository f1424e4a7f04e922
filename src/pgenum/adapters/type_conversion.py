"""
psycopg adapters for enum codecs.

This module handles both directions at the driver level:

1. Python -> Database: dumpers that send an enum label as a parameter tagged
   with the oid of the server-side ENUM type, so the server never has to
   guess the parameter type
2. Database -> Python: a loader registered on the ENUM type oid that turns
   labels back into members through `EnumCodec.decode`

Usage:
    # Typed scalar dumpers for statements built with EnumCodec.bind_parameter
    adapter_registry = get_adapter_registry()
    adapter_registry.apply(conn)

    # Bind and load Mood members directly
    register_enum_codec(EnumCodec('mood', Mood), conn)
    conn.execute('insert into person values (%s, %s)', ('John', Mood.SAD))
"""
import logging
from collections.abc import Iterable
from typing import Any

import psycopg
from pgenum.codec import EnumCodec, NullScalar, TypedScalar
from pgenum.exceptions import TypeConversionError
from psycopg.abc import AdaptContext
from psycopg.adapt import AdaptersMap, Dumper, Loader, PyFormat
from psycopg.types import TypeInfo
from psycopg.types.array import register_array
from psycopg.types.enum import EnumInfo

logger = logging.getLogger(__name__)

__all__ = [
    'TypedScalarDumper',
    'EnumMemberDumper',
    'EnumLabelLoader',
    'AdapterRegistry',
    'get_adapter_registry',
    'register_enum_codec',
    'register_codec_adapters',
    'configure_psycopg_connection',
]

_ENCODING = 'utf-8'


class TypedScalarDumper(Dumper):
    """Dumper for TypedScalar and NullScalar payloads.

    Each payload names its server-side type; the dumper resolves the oid from
    the connection's type registry so the parameter is sent typed. Types not
    registered on the connection are sent with the unknown oid (0) and the
    server infers them from context.
    """

    def __init__(self, cls: type, context: AdaptContext | None = None) -> None:
        super().__init__(cls, context)
        self._context = context
        self._adapters = context.adapters if context else None

    def get_key(self, obj: TypedScalar | NullScalar, format: PyFormat) -> Any:
        return (self.cls, obj.type_name)

    def upgrade(self, obj: TypedScalar | NullScalar, format: PyFormat) -> Dumper:
        dumper = type(self)(self.cls, self._context)
        dumper.oid = self._lookup_oid(obj.type_name)
        return dumper

    def _lookup_oid(self, type_name: str) -> int:
        info = self._adapters.types.get(type_name) if self._adapters else None
        if info is None:
            logger.debug(f'Type {type_name} not registered, binding with unknown oid')
            return 0
        return info.oid

    def dump(self, obj: TypedScalar | NullScalar) -> bytes | None:
        if isinstance(obj, NullScalar):
            return None
        return obj.text.encode(_ENCODING)


class EnumMemberDumper(Dumper):
    """Dumper for members of one Enum class; subclassed per codec.
    """

    codec: EnumCodec

    def dump(self, obj: Any) -> bytes:
        return self.codec.encode(obj).encode(_ENCODING)


class EnumLabelLoader(Loader):
    """Loader for labels of one ENUM type; subclassed per codec.
    """

    codec: EnumCodec

    def load(self, data: Any) -> Any:
        if isinstance(data, memoryview):
            data = bytes(data)
        return self.codec.decode(data.decode(_ENCODING))


class AdapterRegistry:
    """Registry for the codec-independent psycopg dumpers"""

    PAYLOAD_TYPES = (TypedScalar, NullScalar)

    def _register_payload_dumpers(self, adapters: AdaptersMap) -> None:
        for payload_type in self.PAYLOAD_TYPES:
            adapters.register_dumper(payload_type, TypedScalarDumper)

    def postgres(self) -> AdaptersMap:
        """Create a PostgreSQL adapter map with the payload dumpers

        Returns
            AdaptersMap usable as `psycopg.connect(context=...)`
        """
        postgres_adapters = AdaptersMap(psycopg.adapters)
        self._register_payload_dumpers(postgres_adapters)
        return postgres_adapters

    def apply(self, context: AdaptContext) -> None:
        """Register the payload dumpers on a live connection or cursor
        """
        self._register_payload_dumpers(context.adapters)


def get_adapter_registry() -> AdapterRegistry:
    """Get the adapter registry for database connections
    """
    return AdapterRegistry()


def register_enum_codec(codec: EnumCodec, context: AdaptContext) -> EnumInfo:
    """Register a codec's dumper and loader on a connection.

    Fetches the ENUM type from the server, adds it to the connection's type
    registry (so TypedScalar payloads for it bind with its oid), then
    registers a dumper for the codec's Enum class and a loader for the oid.

    Args:
        codec: Codec to register
        context: psycopg connection (or cursor) to register on

    Returns
        The fetched EnumInfo

    Raises
        TypeConversionError: If the type does not exist on the server
    """
    conn = context if isinstance(context, psycopg.BaseConnection) else context.connection
    info = EnumInfo.fetch(conn, codec.type_name)
    if info is None:
        raise TypeConversionError(f'Enum type {codec.type_name} not found in database')

    if not codec.compatible_with(info.labels):
        logger.warning(
            f'Labels of {codec.type_name} differ between codec {list(codec.labels)} '
            f'and database {list(info.labels)}')

    register_codec_adapters(codec, info, context)
    return info


def register_codec_adapters(codec: EnumCodec, info: TypeInfo, context: AdaptContext) -> None:
    """Register the type, member dumper, label loader and array loader for a
    codec whose type info is already known.
    """
    info.register(context)

    enum_name = codec.enum_class.__name__
    dumper = type(f'{enum_name}Dumper', (EnumMemberDumper,),
                  {'codec': codec, 'oid': info.oid})
    loader = type(f'{enum_name}Loader', (EnumLabelLoader,), {'codec': codec})

    context.adapters.register_dumper(codec.enum_class, dumper)
    context.adapters.register_loader(info.oid, loader)
    if info.array_oid:
        register_array(info, context)

    logger.debug(f'Registered codec {codec!r} for oid {info.oid}')


def configure_psycopg_connection(conn: psycopg.Connection,
                                 codecs: Iterable[EnumCodec] = ()) -> list[EnumCodec]:
    """Install payload dumpers and register codecs on a psycopg connection.

    Codecs whose type does not exist yet are skipped; they can be registered
    later with `register_enum_codec` once the type has been created.

    Returns
        The codecs that were registered
    """
    get_adapter_registry().apply(conn)

    registered = []
    for codec in codecs:
        try:
            register_enum_codec(codec, conn)
        except TypeConversionError as e:
            logger.debug(f'Skipping codec registration: {e}')
            continue
        registered.append(codec)
    return registered
