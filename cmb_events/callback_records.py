#!/usr/bin/env python3
"""
Callback records and typed argument values.
A record is the named, typed form of one callback registration in a script.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class StringRef:
    """Offset of a string in the script's text section."""
    offset: int


@dataclass(frozen=True)
class Pid(StringRef):
    """Text offset of a character PID string (e.g. "PID_IKE")."""
    pass


@dataclass(frozen=True)
class FunctionRef(StringRef):
    """Text offset of a script function name or event flag name."""
    pass


@dataclass(frozen=True)
class CallbackRecord:
    """One decoded callback registration.

    Arguments are stored in the schema's slot order; slot_names carries the
    matching names so records can be inspected without the schema.
    """
    revision: Any  # Revision the record was decoded under
    code: int
    event_name: str
    slot_names: Tuple[str, ...]
    arguments: Tuple[Any, ...]

    def __len__(self) -> int:
        """Return number of arguments."""
        return len(self.arguments)

    def __getitem__(self, slot_name: str):
        """Get an argument by slot name."""
        try:
            return self.arguments[self.slot_names.index(slot_name)]
        except ValueError:
            raise KeyError(f"{self.event_name} has no slot named '{slot_name}'") from None

    def named_arguments(self) -> Dict[str, Any]:
        """Return arguments keyed by slot name, in slot order."""
        return dict(zip(self.slot_names, self.arguments))

    def to_dict(self) -> Dict:
        """Plain representation suitable for json.dumps / yaml.safe_dump."""
        return {
            'revision': str(self.revision),
            'event': self.event_name,
            'code': self.code,
            'arguments': {name: plain_value(value)
                          for name, value in zip(self.slot_names, self.arguments)},
        }


def plain_value(value):
    """Convert a typed argument value to JSON/YAML friendly data."""
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (set, frozenset)):
        return sorted(plain_value(v) for v in value)
    if isinstance(value, Pid):
        return {'pid': value.offset}
    if isinstance(value, FunctionRef):
        return {'function': value.offset}
    if isinstance(value, StringRef):
        return {'string': value.offset}
    if isinstance(value, tuple):
        return list(value)
    return value


def make_record(revision, code: int, event_name: str,
                arguments: Dict[str, Any]) -> CallbackRecord:
    """Create a record from slot name -> value pairs (insertion order is slot order)."""
    return CallbackRecord(
        revision=revision,
        code=code,
        event_name=event_name,
        slot_names=tuple(arguments.keys()),
        arguments=tuple(arguments.values())
    )
