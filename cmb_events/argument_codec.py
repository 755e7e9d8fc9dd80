"""
Argument codec: raw operand lists <-> typed CallbackRecords.

Decoding walks the schema's slots in order, consuming one operand per slot
(or 2/4 for coordinates). Encoding is the exact inverse and must be done with
the target revision's own schema.
"""

from typing import Callable, Dict, List, Sequence

from callback_records import CallbackRecord, FunctionRef, Pid, StringRef
from dialect_base import ArgumentSlot, EventSchema, SlotKind
from schema_errors import (
    ArityMismatch, CallbackSchemaError, OperandOutOfRange, SchemaMismatch,
    SlotDecodeError, SlotEncodeError
)


def _check_width(slot: ArgumentSlot, value: int):
    low, high = slot.value_range()
    if not low <= value <= high:
        raise OperandOutOfRange(value, slot.bits, slot.signed)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# Decode handlers: (slot, raw operands for the slot) -> typed value

def _decode_integer(slot: ArgumentSlot, raw: Sequence[int]):
    _check_width(slot, raw[0])
    return raw[0]


def _decode_coordinate(slot: ArgumentSlot, raw: Sequence[int]):
    for value in raw:
        _check_width(slot, value)
    return tuple(raw)


def _text_ref_decoder(ref_cls) -> Callable:
    def decode(slot: ArgumentSlot, raw: Sequence[int]):
        _check_width(slot, raw[0])
        return ref_cls(raw[0])
    return decode


def _decode_with_decoder(slot: ArgumentSlot, raw: Sequence[int]):
    _check_width(slot, raw[0])
    return slot.decoder.decode(raw[0])


def _decode_reserved(slot: ArgumentSlot, raw: Sequence[int]):
    # Undocumented fields round-trip verbatim
    return raw[0]


DECODE_DISPATCH: Dict[SlotKind, Callable] = {
    SlotKind.RAW_INTEGER: _decode_integer,
    SlotKind.COORDINATE: _decode_coordinate,
    SlotKind.CHARACTER_ID: _text_ref_decoder(Pid),
    SlotKind.FUNCTION_OR_FLAG_REF: _text_ref_decoder(FunctionRef),
    SlotKind.STRING_REF: _text_ref_decoder(StringRef),
    SlotKind.BITFLAGS: _decode_with_decoder,
    SlotKind.ENUM_VALUE: _decode_with_decoder,
    SlotKind.UNKNOWN_RESERVED: _decode_reserved,
}


# Encode handlers: (slot, typed value) -> raw operands.
# Each raises SlotEncodeError when the value is outside the slot's domain.

def _encode_integer(slot: ArgumentSlot, value) -> List[int]:
    if not _is_int(value):
        raise SlotEncodeError(slot.name, f"expected an integer, got {type(value).__name__}")
    try:
        _check_width(slot, value)
    except OperandOutOfRange as e:
        raise SlotEncodeError(slot.name, str(e)) from None
    return [value]


def _encode_coordinate(slot: ArgumentSlot, value) -> List[int]:
    if not isinstance(value, tuple) or len(value) != slot.fields:
        raise SlotEncodeError(slot.name, f"expected a {slot.fields}-field coordinate, got {value!r}")
    raw = []
    for field_value in value:
        raw.extend(_encode_integer(slot, field_value))
    return raw


def _text_ref_encoder(ref_cls) -> Callable:
    def encode(slot: ArgumentSlot, value) -> List[int]:
        # Exact type: a Pid is not accepted where a FunctionRef is declared
        if type(value) is not ref_cls:
            raise SlotEncodeError(slot.name, f"expected {ref_cls.__name__}, got {type(value).__name__}")
        return _encode_integer(slot, value.offset)
    return encode


def _encode_with_decoder(slot: ArgumentSlot, value) -> List[int]:
    if not slot.decoder.accepts(value):
        raise SlotEncodeError(slot.name, f"{value!r} is not a {slot.decoder.name} variant")
    return _encode_integer(slot, slot.decoder.encode(value))


def _encode_reserved(slot: ArgumentSlot, value) -> List[int]:
    if not _is_int(value):
        raise SlotEncodeError(slot.name, f"expected the raw reserved value, got {type(value).__name__}")
    return [value]


ENCODE_DISPATCH: Dict[SlotKind, Callable] = {
    SlotKind.RAW_INTEGER: _encode_integer,
    SlotKind.COORDINATE: _encode_coordinate,
    SlotKind.CHARACTER_ID: _text_ref_encoder(Pid),
    SlotKind.FUNCTION_OR_FLAG_REF: _text_ref_encoder(FunctionRef),
    SlotKind.STRING_REF: _text_ref_encoder(StringRef),
    SlotKind.BITFLAGS: _encode_with_decoder,
    SlotKind.ENUM_VALUE: _encode_with_decoder,
    SlotKind.UNKNOWN_RESERVED: _encode_reserved,
}


def decode(schema: EventSchema, raw_operands: Sequence[int]) -> CallbackRecord:
    """Decode one callback registration's raw operands.

    Args:
        schema: Schema resolved for the registration's revision and code
        raw_operands: Operands in positional order, already extracted as ints

    Returns:
        CallbackRecord with one typed argument per slot

    Raises:
        ArityMismatch: If the operand count differs from schema.arity
        SlotDecodeError: For the first slot whose operand is outside its domain
    """
    raw_operands = list(raw_operands)
    if len(raw_operands) != schema.arity:
        raise ArityMismatch(schema.name, schema.arity, len(raw_operands))

    arguments = []
    pos = 0
    for slot in schema.slots:
        raw = raw_operands[pos:pos + slot.fields]
        pos += slot.fields
        try:
            arguments.append(DECODE_DISPATCH[slot.kind](slot, raw))
        except CallbackSchemaError as e:
            raise SlotDecodeError(slot.name, e) from e

    return CallbackRecord(
        revision=schema.revision,
        code=schema.code,
        event_name=schema.name,
        slot_names=schema.slot_names,
        arguments=tuple(arguments)
    )


def encode(schema: EventSchema, record: CallbackRecord) -> List[int]:
    """Encode a record back to raw operands using `schema`.

    The schema must come from the target revision; reusing the schema a record
    was decoded under for another revision is a caller error.

    Raises:
        SchemaMismatch: If the record's slots are not the schema's slots in order
        SlotEncodeError: If a value is outside its slot's declared domain
    """
    if (len(record.arguments) != len(schema.slots)
            or tuple(record.slot_names) != schema.slot_names):
        raise SchemaMismatch(schema.name, schema.slot_names, record.slot_names)

    raw: List[int] = []
    for slot, value in zip(schema.slots, record.arguments):
        raw.extend(ENCODE_DISPATCH[slot.kind](slot, value))
    return raw

