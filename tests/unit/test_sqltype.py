"""
Compilation tests for the SQLAlchemy column type, no database required.
"""
import pytest
import sqlalchemy as sa
from pgenum.codec import NullScalar, TypedScalar
from pgenum.exceptions import DecodeError, EncodeError
from pgenum.sqltype import PgEnumType, as_text, enum_column, enum_literal
from sqlalchemy.dialects.postgresql import psycopg as pg_psycopg
from sqlalchemy.dialects.postgresql import psycopg2 as pg_psycopg2
from sqlalchemy.schema import CreateTable
from tests.fixtures.enums import Mood


@pytest.fixture
def dialect():
    return pg_psycopg.dialect()


@pytest.fixture
def person(mood_codec):
    return sa.Table(
        'person', sa.MetaData(),
        sa.Column('name', sa.Text, nullable=False),
        enum_column('mood', mood_codec, default=Mood.OK),
    )


def render(stmt, dialect, **compile_kwargs):
    return str(stmt.compile(dialect=dialect, compile_kwargs=compile_kwargs))


def test_column_ddl(person, dialect):
    ddl = render(CreateTable(person), dialect)
    assert "mood mood DEFAULT 'ok' NOT NULL" in ddl


def test_nullable_column_without_default(mood_codec, dialect):
    table = sa.Table('t', sa.MetaData(), enum_column('mood', mood_codec, nullable=True))
    ddl = render(CreateTable(table), dialect)
    assert 'mood mood' in ddl
    assert 'NOT NULL' not in ddl
    assert 'DEFAULT' not in ddl


def test_default_conflicts_with_server_default(mood_codec):
    with pytest.raises(ValueError, match='not both'):
        enum_column('mood', mood_codec, default=Mood.OK, server_default=sa.text("'sad'"))


def test_server_default_passes_through(mood_codec, dialect):
    table = sa.Table('t', sa.MetaData(),
                     enum_column('mood', mood_codec, server_default=sa.text(mood_codec.literal(Mood.SAD))))
    assert "mood mood DEFAULT 'sad' NOT NULL" in render(CreateTable(table), dialect)


def test_literal_binds(person, dialect):
    stmt = sa.select(person.c.name).where(person.c.mood == Mood.SAD)
    assert "person.mood = 'sad'" in render(stmt, dialect, literal_binds=True)


def test_enum_literal_matches_default(person, mood_codec, dialect):
    sql = render(sa.select(enum_literal(mood_codec, Mood.OK)), dialect)
    assert "'ok'" in sql
    assert person.c.mood.server_default.arg.text == mood_codec.literal(Mood.OK)


def test_enum_literal_cast(casting_mood_codec, dialect):
    sql = render(sa.select(enum_literal(casting_mood_codec, Mood.HAPPY)), dialect)
    assert "'happy'::mood" in sql


def test_as_text(person, dialect):
    assert 'person.mood::text' in render(sa.select(as_text(person.c.mood)), dialect)
    assert 'CAST(person.mood AS TEXT)' in str(sa.select(as_text(person.c.mood)))


class TestProcessors:

    def test_psycopg_binds_payload(self, mood_codec, dialect):
        process = PgEnumType(mood_codec).bind_processor(dialect)
        assert process(Mood.SAD) == TypedScalar('mood', 'sad')
        assert process(None) == NullScalar('mood')

    def test_other_driver_binds_label(self, mood_codec):
        process = PgEnumType(mood_codec).bind_processor(pg_psycopg2.dialect())
        assert process(Mood.SAD) == 'sad'
        assert process(None) is None

    def test_bind_rejects_non_member(self, mood_codec, dialect):
        process = PgEnumType(mood_codec).bind_processor(dialect)
        with pytest.raises(EncodeError):
            process('sad')

    def test_result_decodes(self, mood_codec, dialect):
        process = PgEnumType(mood_codec).result_processor(dialect, None)
        assert process('HAPPY') is Mood.HAPPY
        assert process(Mood.OK) is Mood.OK
        assert process(None) is None
        with pytest.raises(DecodeError):
            process('furious')

    def test_python_type(self, mood_codec):
        assert PgEnumType(mood_codec).python_type is Mood


if __name__ == '__main__':
    __import__('pytest').main([__file__])
