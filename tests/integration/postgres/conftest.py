"""
Fixtures for PostgreSQL-specific integration tests.
"""
import pytest
from tests.fixtures.enums import Mood

PEOPLE = [
    ('John', Mood.SAD),
    ('Ann', Mood.OK),
    ('Bob', Mood.HAPPY),
    ('Zoe', None),
]


@pytest.fixture
def people(conn, mood_codec):
    """Insert one person per mood (and one without) through bound statements."""
    stmt = conn.prepare('insert into person (name, mood) values (%s, %s)')
    for name, mood in PEOPLE:
        stmt.set_value(0, name)
        mood_codec.bind_parameter(stmt, 1, mood)
        stmt.execute()
    return PEOPLE
