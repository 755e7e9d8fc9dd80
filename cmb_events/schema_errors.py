"""
Error taxonomy for callback schema resolution.

Every failure raised by the resolver, codec, and registry is a subclass of
CallbackSchemaError. classify() maps the reportable ones to a FailureCategory
for compatibility reporting across titles.
"""

from enum import Enum
from typing import Optional, Sequence


class CallbackSchemaError(ValueError):
    """Base class for all resolver/codec failures."""
    pass


class DialectConfigError(CallbackSchemaError):
    """A dialect or equivalence definition file is malformed."""
    pass


class RegistrationInputError(CallbackSchemaError):
    """A registrations file or command line value cannot be read."""
    pass


class DuplicateCode(CallbackSchemaError):
    def __init__(self, revision, code: int):
        self.revision = revision
        self.code = code
        super().__init__(f"{revision}: event code 0x{code:02X} is already registered")


class DuplicateEventName(CallbackSchemaError):
    def __init__(self, revision, name: str, code: int):
        self.revision = revision
        self.name = name
        self.code = code
        super().__init__(f"{revision}: event name '{name}' is already bound to code 0x{code:02X}")


class DuplicateRevision(CallbackSchemaError):
    def __init__(self, revision):
        self.revision = revision
        super().__init__(f"Dialect for revision {revision} is already registered")


class UnknownRevision(CallbackSchemaError):
    """No dialect table exists for the requested game revision."""

    def __init__(self, revision):
        self.revision = revision
        super().__init__(f"Unknown revision: {revision}")


class UnknownEvent(CallbackSchemaError):
    """The revision is known but the event code (or name) is not defined in it.

    Also covers opcodes found outside an expected callback registration context.
    """

    def __init__(self, revision, event):
        self.revision = revision
        self.event = event
        if isinstance(event, int):
            label = f"code 0x{event:02X}"
        else:
            label = f"name '{event}'"
        super().__init__(f"{revision}: no event with {label}")


class ArityMismatch(CallbackSchemaError):
    """Raw operand count disagrees with the schema (e.g. an underflowed operand stack)."""

    def __init__(self, event_name: str, expected: int, actual: int):
        self.event_name = event_name
        self.expected = expected
        self.actual = actual
        super().__init__(f"{event_name}: expected {expected} operands but actual count is {actual}")


class SchemaMismatch(CallbackSchemaError):
    """A record's slots disagree with the schema it is encoded against."""

    def __init__(self, event_name: str, expected: Sequence[str], actual: Sequence[str]):
        self.event_name = event_name
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(
            f"{event_name}: schema has slots ({', '.join(self.expected)}) but record has "
            f"({', '.join(self.actual)}) (was the record resolved against the target revision?)"
        )


class UnknownVariant(CallbackSchemaError):
    """A raw value is outside a value decoder's closed domain."""

    def __init__(self, decoder_name: str, raw: int):
        self.decoder_name = decoder_name
        self.raw = raw
        super().__init__(f"{decoder_name}: no variant for raw value {raw} (0x{raw & 0xFFFFFFFF:X})")


class OperandOutOfRange(CallbackSchemaError):
    """A raw operand does not fit the slot's declared fixed width."""

    def __init__(self, value: int, bits: int, signed: bool):
        self.value = value
        self.bits = bits
        self.signed = signed
        kind = "signed" if signed else "unsigned"
        super().__init__(f"value {value} does not fit a {bits}-bit {kind} operand")


class SlotDecodeError(CallbackSchemaError):
    def __init__(self, slot_name: str, underlying: Exception):
        self.slot_name = slot_name
        self.underlying = underlying
        super().__init__(f"slot '{slot_name}': {underlying}")


class SlotEncodeError(CallbackSchemaError):
    def __init__(self, slot_name: str, reason: str):
        self.slot_name = slot_name
        self.reason = reason
        super().__init__(f"slot '{slot_name}': {reason}")


class FailureCategory(Enum):
    """Reportable failure classes used by compatibility reports."""
    UNKNOWN_REVISION = "unknown_revision"
    UNKNOWN_EVENT = "unknown_event"
    ARITY_MISMATCH = "arity_mismatch"
    SLOT_DECODE_ERROR = "slot_decode_error"
    SLOT_ENCODE_ERROR = "slot_encode_error"
    SCHEMA_MISMATCH = "schema_mismatch"


_CATEGORY_BY_TYPE = {
    UnknownRevision: FailureCategory.UNKNOWN_REVISION,
    UnknownEvent: FailureCategory.UNKNOWN_EVENT,
    ArityMismatch: FailureCategory.ARITY_MISMATCH,
    SlotDecodeError: FailureCategory.SLOT_DECODE_ERROR,
    SlotEncodeError: FailureCategory.SLOT_ENCODE_ERROR,
    SchemaMismatch: FailureCategory.SCHEMA_MISMATCH,
}


def classify(error: Exception) -> FailureCategory:
    """Map a resolver/codec error to its FailureCategory.

    Args:
        error: An exception raised by resolve/decode/encode

    Returns:
        The matching FailureCategory

    Raises:
        TypeError: If the error is not part of the reportable taxonomy
    """
    category: Optional[FailureCategory] = None
    for error_type, candidate in _CATEGORY_BY_TYPE.items():
        if isinstance(error, error_type):
            category = candidate
            break
    if category is None:
        raise TypeError(f"Not a reportable schema error: {type(error).__name__}: {error}")
    return category
