"""
Enum codec adapters package.

This package provides the following components:

- type_conversion: psycopg dumpers/loaders and the AdapterRegistry
- type_mapping: CodecRegistry mapping server-side type names to codecs

Type conversion principles:
1. Python -> Database: payloads and Enum members are dumped with the oid of
   the server-side ENUM type
2. Database -> Python: labels are decoded by a loader registered on that oid,
   or by the caller through `EnumCodec.decode` on raw text
"""
from pgenum.adapters.type_conversion import AdapterRegistry, EnumLabelLoader
from pgenum.adapters.type_conversion import EnumMemberDumper, TypedScalarDumper
from pgenum.adapters.type_conversion import configure_psycopg_connection
from pgenum.adapters.type_conversion import get_adapter_registry
from pgenum.adapters.type_conversion import register_codec_adapters
from pgenum.adapters.type_conversion import register_enum_codec
from pgenum.adapters.type_mapping import CodecRegistry, register_codec

__all__ = [
    'AdapterRegistry',
    'CodecRegistry',
    'EnumLabelLoader',
    'EnumMemberDumper',
    'TypedScalarDumper',
    'configure_psycopg_connection',
    'get_adapter_registry',
    'register_codec',
    'register_codec_adapters',
    'register_enum_codec',
]
