"""
Bidirectional codec between a Python enumeration and a PostgreSQL ENUM type.

The codec owns two lookup tables built once at construction time:

- label -> member, used by `decode` (case-insensitive)
- member -> label, used by `encode` (always lowercase)

and knows the server-side type name, which is used verbatim in column
definitions and as the type tag of bound parameters.

Usage:
    class Mood(enum.Enum):
        SAD = enum.auto()
        OK = enum.auto()
        HAPPY = enum.auto()

    codec = EnumCodec('mood', Mood)
    codec.encode(Mood.SAD)        # 'sad'
    codec.decode('HAPPY')         # Mood.HAPPY
    codec.literal(Mood.OK)        # "'ok'"
    codec.bind_parameter(stmt, 0, Mood.SAD)
"""
import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, Literal, Protocol, TypeVar

from pgenum.exceptions import DecodeError, EncodeError
from pgenum.sql import quote_literal

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=enum.Enum)

__all__ = [
    'EnumCodec',
    'TypedScalar',
    'NullScalar',
    'Payload',
    'StatementApi',
    'define_enum',
]


@dataclass(frozen=True)
class TypedScalar:
    """Text payload tagged with the server-side type it must be bound as.
    """
    type_name: str
    text: str
    kind: Literal['typed_scalar'] = 'typed_scalar'


@dataclass(frozen=True)
class NullScalar:
    """SQL NULL tagged with the server-side type of its slot.
    """
    type_name: str
    kind: Literal['null'] = 'null'


Payload = TypedScalar | NullScalar


class StatementApi(Protocol):
    """Parameterized statement primitives the codec binds through.
    """

    def set_null(self, index: int, type_hint: str) -> None:
        ...

    def set_typed_object(self, index: int, payload: TypedScalar, type_hint: str) -> None:
        ...


def define_enum(name: str, labels: Iterable[str]) -> type[enum.Enum]:
    """Build an Enum whose member names are the upper-cased labels.

    >>> Mood = define_enum('Mood', ['sad', 'ok', 'happy'])
    >>> [m.name for m in Mood]
    ['SAD', 'OK', 'HAPPY']
    """
    return enum.Enum(name, [(label.upper(), label.lower()) for label in labels])


class EnumCodec(Generic[E]):
    """Codec for one server-side enumerated type and one Python Enum.

    Labels are the member names lowercased, in definition order. Instances
    are read-only after construction and may be shared between threads and
    between columns of the same type.
    """

    def __init__(self, type_name: str, enum_class: type[E],
                 cast_literals: bool = False) -> None:
        if not type_name:
            raise ValueError('type_name must be a non-empty string')
        if not (isinstance(enum_class, type) and issubclass(enum_class, enum.Enum)):
            raise TypeError(f'enum_class must be an Enum subclass, got {enum_class!r}')

        label_to_member: dict[str, E] = {}
        for member in enum_class:
            label = member.name.lower()
            if label in label_to_member:
                raise ValueError(
                    f'{enum_class.__name__}: members {label_to_member[label].name} '
                    f'and {member.name} map to the same label {label!r}')
            label_to_member[label] = member

        if not label_to_member:
            raise ValueError(f'{enum_class.__name__} defines no members')

        self._type_name = type_name
        self._enum_class = enum_class
        self._cast_literals = cast_literals
        self._label_to_member = label_to_member
        self._member_to_label = {m: label for label, m in label_to_member.items()}
        logger.debug(f'Created codec for {type_name} with labels {list(label_to_member)}')

    def __repr__(self) -> str:
        return f'EnumCodec({self._type_name!r}, {self._enum_class.__name__})'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EnumCodec):
            return NotImplemented
        return (self._type_name, self._enum_class) == (other._type_name, other._enum_class)

    def __hash__(self) -> int:
        return hash((self._type_name, self._enum_class))

    @property
    def type_name(self) -> str:
        """Server-side type name, used verbatim in DDL and as the bind type tag.
        """
        return self._type_name

    @property
    def enum_class(self) -> type[E]:
        return self._enum_class

    @property
    def labels(self) -> tuple[str, ...]:
        """Labels in definition order.
        """
        return tuple(self._label_to_member)

    @property
    def cast_literals(self) -> bool:
        return self._cast_literals

    def decode(self, raw: str) -> E:
        """Look up the member for a label returned by the database.

        The comparison ignores case. Anything that is not a known label
        raises DecodeError.
        """
        if not isinstance(raw, str):
            raise DecodeError(self._type_name, raw)
        try:
            return self._label_to_member[raw.lower()]
        except KeyError:
            raise DecodeError(self._type_name, raw) from None

    def encode(self, value: E) -> str:
        """Return the canonical lowercase label of a member.
        """
        if not isinstance(value, self._enum_class):
            raise EncodeError(self._type_name, value)
        try:
            return self._member_to_label[value]
        except KeyError:
            raise EncodeError(self._type_name, value) from None

    def to_payload(self, value: E | None) -> Payload:
        """Wrap a value as the wire payload for a typed bind.
        """
        if value is None:
            return NullScalar(self._type_name)
        return TypedScalar(self._type_name, self.encode(value))

    def bind_parameter(self, statement: StatementApi, index: int, value: E | None) -> None:
        """Bind a member (or NULL) into a statement slot with an explicit type.
        """
        if value is None:
            statement.set_null(index, self._type_name)
            return
        payload = TypedScalar(self._type_name, self.encode(value))
        statement.set_typed_object(index, payload, self._type_name)

    def literal(self, value: E, cast: bool | None = None) -> str:
        """Render a member as an inline SQL literal, e.g. 'happy'.

        With cast the literal carries an explicit '::type_name' suffix.
        """
        text = quote_literal(self.encode(value))
        if self._cast_literals if cast is None else cast:
            return f'{text}::{self._type_name}'
        return text

    def default_literal(self, value: E) -> str:
        """Render a member for a column DEFAULT clause.
        """
        return self.literal(value)

    def compatible_with(self, labels: Iterable[str]) -> bool:
        """Check a server-side label list against this codec's labels.
        """
        return tuple(label.lower() for label in labels) == self.labels
