"""
SQL text helpers: identifier/literal quoting and placeholder handling.

- `quote_identifier()` - Quote table/column/type names
- `quote_literal()` - Single-quote a string literal
- `count_placeholders()` - Count positional `%s` slots outside string literals
- `escape_percent_signs_in_literals()` - Double `%` inside string literals
- `prepare_query()` - SQL and parameters as they are handed to psycopg
"""
import re
from collections.abc import Sequence
from typing import Any

__all__ = [
    'quote_identifier',
    'quote_literal',
    'count_placeholders',
    'has_placeholders',
    'escape_percent_signs_in_literals',
    'prepare_query',
]

_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_POSITIONAL_PH = re.compile(r'(?<!%)%s')
_PERCENT = re.compile(r'%%?')


def quote_identifier(identifier: str) -> str:
    """Safely quote database identifiers.

    >>> quote_identifier('person')
    '"person"'
    >>> quote_identifier('we"ird')
    '"we""ird"'
    """
    return '"' + identifier.replace('"', '""') + '"'


def quote_literal(text: str) -> str:
    """Render text as a single-quoted SQL string literal.

    >>> quote_literal('happy')
    "'happy'"
    >>> quote_literal("it's")
    "'it''s'"
    """
    return "'" + text.replace("'", "''") + "'"


def count_placeholders(sql: str | None) -> int:
    """Count positional placeholders, ignoring those inside string literals.

    >>> count_placeholders("insert into t values (%s, %s)")
    2
    >>> count_placeholders("select '%s' where a = %s")
    1
    """
    if not sql:
        return 0
    return len(_POSITIONAL_PH.findall(_STRING_LITERAL.sub('', sql)))


def has_placeholders(sql: str | None) -> bool:
    """Check if SQL has any positional placeholders.
    """
    return count_placeholders(sql) > 0


def escape_percent_signs_in_literals(sql: str) -> str:
    """Escape percent signs in string literals.

    Already doubled signs are kept, so escaping twice is harmless.

    >>> escape_percent_signs_in_literals("select * from person where name like '%sam%' and mood = %s")
    "select * from person where name like '%%sam%%' and mood = %s"
    >>> escape_percent_signs_in_literals("select '100%%', %s")
    "select '100%%', %s"
    """
    if not sql or '%' not in sql:
        return sql

    def escape(match: re.Match) -> str:
        return _PERCENT.sub('%%', match.group(0))
    return _STRING_LITERAL.sub(escape, sql)


def prepare_query(sql: str, args: Sequence[Any]) -> tuple[str, Sequence[Any] | None]:
    """Return the SQL and parameters to pass to a psycopg cursor.

    psycopg only interprets `%` when parameters are passed, so literal
    percent signs are escaped only in that case.

    >>> prepare_query("select 'a%'", ())
    ("select 'a%'", None)
    >>> prepare_query("select 'a%', %s", (1,))
    ("select 'a%%', %s", (1,))
    """
    if not has_placeholders(sql):
        return sql, None
    return escape_percent_signs_in_literals(sql), args


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
