"""
Registry of enum codecs keyed by server-side type name.

Connections and SQLAlchemy engines register every codec found here when they
are created, so a codec only has to be declared once per process.
"""
import logging

from pgenum.codec import EnumCodec

logger = logging.getLogger(__name__)

__all__ = ['CodecRegistry', 'register_codec']


class CodecRegistry:
    """Process-wide registry of enum codecs.
    """

    _instance = None

    @classmethod
    def get_instance(cls) -> 'CodecRegistry':
        """Get singleton instance.
        """
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def __init__(self) -> None:
        self._codecs: dict[str, EnumCodec] = {}

    def __contains__(self, type_name: str) -> bool:
        return type_name in self._codecs

    def __len__(self) -> int:
        return len(self._codecs)

    def register(self, codec: EnumCodec) -> EnumCodec:
        """Add a codec, replacing any codec registered for the same type.
        """
        previous = self._codecs.get(codec.type_name)
        if previous is not None and previous != codec:
            logger.warning(f'Replacing codec {previous!r} with {codec!r}')
        self._codecs[codec.type_name] = codec
        return codec

    def unregister(self, type_name: str) -> None:
        self._codecs.pop(type_name, None)

    def get(self, type_name: str) -> EnumCodec | None:
        return self._codecs.get(type_name)

    def codecs(self) -> list[EnumCodec]:
        return list(self._codecs.values())

    def clear(self) -> None:
        self._codecs.clear()


def register_codec(codec: EnumCodec) -> EnumCodec:
    """Register a codec in the global registry and return it.
    """
    return CodecRegistry.get_instance().register(codec)
