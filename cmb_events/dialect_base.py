"""
Base classes for per-revision event dialects.

A dialect is one title's mapping from numeric event code to Event Schema.
Codes only have meaning relative to a revision: "Turn" is 0x03 in FE10 but
0x10 in FE14, with a different argument order.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from schema_errors import DuplicateCode, DuplicateEventName, UnknownEvent
from value_decoders import ValueDecoder


class SlotKind(Enum):
    """Argument slot kinds. Values are the names used in dialect files."""
    RAW_INTEGER = "raw_integer"
    COORDINATE = "coordinate"
    CHARACTER_ID = "character_id"
    BITFLAGS = "bitflags"
    ENUM_VALUE = "enum_value"
    FUNCTION_OR_FLAG_REF = "function_ref"
    STRING_REF = "string_ref"
    UNKNOWN_RESERVED = "unknown"

    def needs_decoder(self) -> bool:
        return self in (SlotKind.BITFLAGS, SlotKind.ENUM_VALUE)

    def is_text_ref(self) -> bool:
        """Check if operands of this kind are offsets into the text section."""
        return self in (SlotKind.CHARACTER_ID, SlotKind.FUNCTION_OR_FLAG_REF, SlotKind.STRING_REF)


@dataclass(frozen=True, order=True)
class Revision:
    """Identifies one title's bytecode dialect, e.g. FE14 or FE12/JP."""
    title: str
    variant: str = ""

    def __str__(self) -> str:
        if self.variant:
            return f"{self.title}/{self.variant}"
        return self.title

    @classmethod
    def parse(cls, text: str) -> 'Revision':
        title, _, variant = text.strip().partition('/')
        return cls(title=title, variant=variant)


def as_revision(value) -> Revision:
    """Coerce a Revision or its text form to a Revision."""
    if isinstance(value, Revision):
        return value
    return Revision.parse(str(value))


@dataclass(frozen=True)
class ArgumentSlot:
    """One positional argument of a callback.

    bits/signed describe the fixed operand width the revision stores the value
    in. Coordinate slots span `fields` consecutive operands (2 or 4).
    """
    name: str
    kind: SlotKind
    decoder: Optional[ValueDecoder] = None
    bits: int = 32
    signed: bool = True
    fields: int = 1

    def __post_init__(self):
        if self.kind.needs_decoder() and self.decoder is None:
            raise ValueError(f"Slot '{self.name}' of kind {self.kind.value} needs a decoder")
        if self.kind == SlotKind.COORDINATE and self.fields not in (2, 4):
            raise ValueError(f"Coordinate slot '{self.name}' must have 2 or 4 fields, not {self.fields}")
        if self.kind != SlotKind.COORDINATE and self.fields != 1:
            raise ValueError(f"Slot '{self.name}' of kind {self.kind.value} spans exactly one operand")

    def value_range(self) -> Tuple[int, int]:
        """Inclusive (min, max) raw operand range for this slot's width."""
        if self.signed:
            return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1
        return 0, (1 << self.bits) - 1


@dataclass(frozen=True)
class EventSchema:
    """Name and ordered argument slots for one event code of one revision."""
    code: int
    name: str
    slots: Tuple[ArgumentSlot, ...] = field(default_factory=tuple)
    revision: Optional[Revision] = None

    @property
    def arity(self) -> int:
        """Number of raw operands the schema consumes."""
        return sum(slot.fields for slot in self.slots)

    @property
    def slot_names(self) -> Tuple[str, ...]:
        return tuple(slot.name for slot in self.slots)


class DialectTable:
    """Code -> EventSchema mapping for a single revision.

    Tables are filled once by the dialect loader and sealed when registered
    with a DialectRegistry; lookups never mutate.
    """

    def __init__(self, revision, title: Optional[str] = None, operand_bits: int = 32):
        self.revision = as_revision(revision)
        self.title = title
        self.operand_bits = operand_bits
        self._schemas: Dict[int, EventSchema] = {}
        self._codes_by_name: Dict[str, int] = {}
        self._sealed = False

    def register(self, code: int, schema: EventSchema) -> EventSchema:
        """Add a schema under `code`, binding it to this table's revision.

        Raises:
            DuplicateCode: If the code is already present
            DuplicateEventName: If another code already uses the schema's name
        """
        if self._sealed:
            raise RuntimeError(f"Dialect table {self.revision} is sealed")
        if code in self._schemas:
            raise DuplicateCode(self.revision, code)
        if schema.name in self._codes_by_name:
            raise DuplicateEventName(self.revision, schema.name, self._codes_by_name[schema.name])

        bound = replace(schema, code=code, revision=self.revision)
        self._schemas[code] = bound
        self._codes_by_name[schema.name] = code
        return bound

    def seal(self):
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def lookup(self, code: int) -> EventSchema:
        if code not in self._schemas:
            raise UnknownEvent(self.revision, code)
        return self._schemas[code]

    def lookup_name(self, name: str) -> EventSchema:
        if name not in self._codes_by_name:
            raise UnknownEvent(self.revision, name)
        return self._schemas[self._codes_by_name[name]]

    @property
    def schemas(self) -> Mapping[int, EventSchema]:
        """Read-only view of code -> schema, in registration order."""
        return MappingProxyType(self._schemas)

    def __contains__(self, code: int) -> bool:
        return code in self._schemas

    def __iter__(self) -> Iterator[EventSchema]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)

    def __repr__(self) -> str:
        return f"DialectTable({self.revision}, {len(self)} events)"
