"""
Adapter tests using a standalone psycopg adapters map, no database required.
"""
import logging

import pytest
from pgenum.adapters import CodecRegistry, EnumLabelLoader, EnumMemberDumper
from pgenum.adapters import TypedScalarDumper, get_adapter_registry, register_codec
from pgenum.adapters.type_conversion import register_codec_adapters
from pgenum.codec import EnumCodec, NullScalar, TypedScalar
from pgenum.exceptions import DecodeError, EncodeError
from psycopg import pq
from psycopg.adapt import PyFormat, Transformer
from psycopg.types import TypeInfo
from tests.fixtures.enums import Mood, Weather

MOOD_OID = 70000


@pytest.fixture
def adapters():
    """Adapters map with the payload dumpers and a fake `mood` type."""
    adapters = get_adapter_registry().postgres()
    TypeInfo('mood', MOOD_OID, MOOD_OID + 1).register(adapters)
    return adapters


class TestTypedScalarDumper:

    def test_registered_type_binds_with_oid(self, adapters):
        tx = Transformer(adapters)
        payload = TypedScalar('mood', 'sad')
        dumper = tx.get_dumper(payload, PyFormat.TEXT)
        assert dumper.oid == MOOD_OID
        assert dumper.dump(payload) == b'sad'

    def test_unregistered_type_binds_unknown(self, adapters):
        tx = Transformer(adapters)
        payload = TypedScalar('weather', 'sunny')
        dumper = tx.get_dumper(payload, PyFormat.TEXT)
        assert dumper.oid == 0
        assert dumper.dump(payload) == b'sunny'

    def test_null_payload(self, adapters):
        tx = Transformer(adapters)
        payload = NullScalar('mood')
        dumper = tx.get_dumper(payload, PyFormat.TEXT)
        assert dumper.oid == MOOD_OID
        assert dumper.dump(payload) is None

    def test_without_context(self):
        dumper = TypedScalarDumper(TypedScalar)
        upgraded = dumper.upgrade(TypedScalar('mood', 'ok'), PyFormat.TEXT)
        assert upgraded.oid == 0
        assert upgraded.dump(TypedScalar('mood', 'ok')) == b'ok'


class TestMemberAdapters:

    def test_member_dumper(self, mood_codec):
        dumper_cls = type('MoodDumper', (EnumMemberDumper,),
                          {'codec': mood_codec, 'oid': MOOD_OID})
        dumper = dumper_cls(Mood)
        assert dumper.dump(Mood.HAPPY) == b'happy'
        with pytest.raises(EncodeError):
            dumper.dump(Weather.Sunny)

    @pytest.mark.parametrize('data', [b'sad', b'SAD', memoryview(b'Sad')])
    def test_label_loader(self, mood_codec, data):
        loader = type('MoodLoader', (EnumLabelLoader,), {'codec': mood_codec})(MOOD_OID)
        assert loader.load(data) is Mood.SAD

    def test_label_loader_unknown(self, mood_codec):
        loader = type('MoodLoader', (EnumLabelLoader,), {'codec': mood_codec})(MOOD_OID)
        with pytest.raises(DecodeError):
            loader.load(b'furious')


class TestCodecAdapters:
    """Adapters registered for a known type info"""

    @pytest.fixture
    def registered(self, mood_codec):
        adapters = get_adapter_registry().postgres()
        register_codec_adapters(mood_codec, TypeInfo('mood', MOOD_OID, MOOD_OID + 1), adapters)
        return Transformer(adapters)

    def test_member_binds_with_oid(self, registered):
        dumper = registered.get_dumper(Mood.OK, PyFormat.TEXT)
        assert dumper.oid == MOOD_OID
        assert dumper.dump(Mood.OK) == b'ok'

    def test_label_loads_member(self, registered):
        loader = registered.get_loader(MOOD_OID, pq.Format.TEXT)
        assert loader.load(b'happy') is Mood.HAPPY

    def test_array_loads_members(self, registered):
        loader = registered.get_loader(MOOD_OID + 1, pq.Format.TEXT)
        assert loader.load(b'{sad,HAPPY}') == [Mood.SAD, Mood.HAPPY]

    def test_payload_binds_with_oid(self, registered):
        assert registered.get_dumper(TypedScalar('mood', 'ok'), PyFormat.TEXT).oid == MOOD_OID


class TestCodecRegistry:

    def test_singleton(self):
        assert CodecRegistry.get_instance() is CodecRegistry.get_instance()

    def test_register(self, mood_codec, weather_codec):
        register_codec(mood_codec)
        register_codec(weather_codec)
        registry = CodecRegistry.get_instance()
        assert 'mood' in registry
        assert len(registry) == 2
        assert registry.get('mood') is mood_codec
        assert registry.codecs() == [mood_codec, weather_codec]

    def test_replace_warns(self, mood_codec, caplog):
        register_codec(mood_codec)
        with caplog.at_level(logging.WARNING):
            register_codec(EnumCodec('mood', Weather))
        assert 'Replacing codec' in caplog.text
        assert CodecRegistry.get_instance().get('mood').enum_class is Weather

    def test_unregister(self, mood_codec):
        register_codec(mood_codec)
        CodecRegistry.get_instance().unregister('mood')
        CodecRegistry.get_instance().unregister('mood')
        assert 'mood' not in CodecRegistry.get_instance()


if __name__ == '__main__':
    __import__('pytest').main([__file__])
