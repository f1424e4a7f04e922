"""
Mock statement utilities for codec tests.

Provides a recording implementation of the statement binding primitives so
codec binding can be tested without a database.

Usage:
    def test_bind(recording_statement, mood_codec):
        stmt = recording_statement()
        mood_codec.bind_parameter(stmt, 0, Mood.SAD)
        assert stmt.calls == [('set_typed_object', 0, TypedScalar('mood', 'sad'), 'mood')]
"""
import pytest


class RecordingStatement:
    """Statement double that records every binding call in order."""

    def __init__(self):
        self.calls = []

    def set_null(self, index, type_hint):
        self.calls.append(('set_null', index, type_hint))

    def set_typed_object(self, index, payload, type_hint):
        self.calls.append(('set_typed_object', index, payload, type_hint))


@pytest.fixture
def recording_statement():
    """
    Fixture that provides a factory for RecordingStatement objects.

    Returns
        Factory function that creates an empty RecordingStatement
    """
    def factory():
        return RecordingStatement()

    return factory
