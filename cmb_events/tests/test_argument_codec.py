#!/usr/bin/env python3
"""Tests for decoding and encoding callback arguments."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

import argument_codec
from callback_records import CallbackRecord, FunctionRef, Pid, StringRef, make_record
from dialect_base import SlotKind
from dialect_registry import default_registry
from schema_errors import (
    ArityMismatch, OperandOutOfRange, SchemaMismatch, SlotDecodeError,
    SlotEncodeError, UnknownVariant
)
from value_decoders import BattleFlag, CannonType, SpawnEffect


def schema_for(revision, code):
    return default_registry().get(revision).lookup(code)


def valid_operands(schema):
    """Build one operand list that satisfies every slot's domain."""
    operands = []
    for i, slot in enumerate(schema.slots):
        if slot.kind == SlotKind.BITFLAGS:
            operands.append(96)
        elif slot.kind == SlotKind.ENUM_VALUE:
            operands.append(1)
        elif slot.kind.is_text_ref():
            operands.append(0x100 + i)
        else:
            operands.extend(-i if f % 2 else i + f for f in range(slot.fields))
    return operands


def test_turn_decodes_and_encodes():
    schema = schema_for('FE14', 16)
    record = argument_codec.decode(schema, [1, 3, 0])
    assert record.event_name == 'Turn'
    assert record['start_turn'] == 1
    assert record['end_turn'] == 3
    assert record['phase'] == 0
    assert len(record) == len(schema.slots)
    assert argument_codec.encode(schema, record) == [1, 3, 0]


def test_round_trip_every_registered_schema():
    registry = default_registry()
    for revision in registry.all_revisions():
        for schema in registry.get(revision):
            operands = valid_operands(schema)
            record = argument_codec.decode(schema, operands)
            assert len(record.arguments) == len(schema.slots)
            assert argument_codec.encode(schema, record) == operands, (revision, schema.name)


def test_short_operands_fail_with_arity_mismatch():
    registry = default_registry()
    for revision in registry.all_revisions():
        for schema in registry.get(revision):
            operands = valid_operands(schema)
            with pytest.raises(ArityMismatch) as excinfo:
                argument_codec.decode(schema, operands[:-1])
            assert excinfo.value.expected == schema.arity
            assert excinfo.value.actual == schema.arity - 1


def test_empty_operand_stack():
    with pytest.raises(ArityMismatch) as excinfo:
        argument_codec.decode(schema_for('FE10', 0x08), [])
    assert excinfo.value.expected == 4
    assert excinfo.value.actual == 0


def test_extra_operands_fail_with_arity_mismatch():
    with pytest.raises(ArityMismatch):
        argument_codec.decode(schema_for('FE14', 16), [1, 3, 0, 0])


def test_typed_values():
    schema = schema_for('FE10', 0x12)  # Reinforce
    record = argument_codec.decode(schema, [0x40, 0x50, 0x60, 2, 0x70])
    assert record['group'] == StringRef(0x40)
    assert record['leader'] == Pid(0x50)
    assert record['target'] == Pid(0x60)
    assert record['effect'] is SpawnEffect.FADE_IN
    assert record['condition'] == FunctionRef(0x70)
    assert record['group'] != Pid(0x40)


def test_coordinates_are_tuples():
    record = argument_codec.decode(schema_for('FE14', 0x16), list(range(13)))
    assert record['area'] == (0, 1, 2, 3)
    assert record['exit'] == (4, 5)
    assert record['phase'] == 6
    assert record['reserved_5'] == 12


def test_battle_flags_slot():
    schema = schema_for('FE10', 0x11)
    record = argument_codec.decode(schema, [0x10, 0x20, 96, 0x30])
    assert record['outcome'] == frozenset({BattleFlag.HIT, BattleFlag.CRIT})

    record = argument_codec.decode(schema, [0x10, 0x20, 0, 0x30])
    assert record['outcome'] == frozenset()


def test_undefined_flag_bit_is_slot_decode_error():
    # 32-bit title: the value fits, but the bit is undefined
    with pytest.raises(SlotDecodeError) as excinfo:
        argument_codec.decode(schema_for('FE14', 0x19), [0x10, 65536, 0, 0, 0, 0x20])
    assert excinfo.value.slot_name == 'outcome'
    assert isinstance(excinfo.value.underlying, UnknownVariant)

    # 16-bit title: the value does not even fit the operand
    with pytest.raises(SlotDecodeError) as excinfo:
        argument_codec.decode(schema_for('FE10', 0x11), [0x10, 0x20, 65536, 0x30])
    assert isinstance(excinfo.value.underlying, OperandOutOfRange)


def test_unknown_enum_value_is_slot_decode_error():
    with pytest.raises(SlotDecodeError) as excinfo:
        argument_codec.decode(schema_for('FE14', 0x12), [3, 4, 42])
    assert excinfo.value.slot_name == 'cannon_type'


def test_first_failing_slot_is_reported():
    with pytest.raises(SlotDecodeError) as excinfo:
        argument_codec.decode(schema_for('FE10', 0x12), [0x40, -1, 0x60, 99, 0x70])
    assert excinfo.value.slot_name == 'leader'


def test_operand_width_is_enforced():
    schema = schema_for('FE10', 0x03)
    assert argument_codec.decode(schema, [0, -32768, 32767])['end_turn'] == 32767
    with pytest.raises(SlotDecodeError):
        argument_codec.decode(schema, [0, 1, 32768])


def test_reserved_slots_round_trip_verbatim():
    schema = schema_for('FE9', 0x0E)
    operands = [0x10, 0x20, 0x7FFFFFFF]
    record = argument_codec.decode(schema, operands)
    assert record['reserved'] == 0x7FFFFFFF
    assert argument_codec.encode(schema, record) == operands


def test_encode_schema_mismatch():
    fe14_turn = schema_for('FE14', 0x10)
    fe14_cannon = schema_for('FE14', 0x12)
    record = argument_codec.decode(fe14_turn, [1, 3, 0])
    with pytest.raises(SchemaMismatch):
        argument_codec.encode(fe14_cannon, make_record('FE14', 0x12, 'Cannon', {'position': (1, 2)}))
    with pytest.raises(SchemaMismatch):
        argument_codec.encode(schema_for('FE10', 0x0B), record)


def test_encode_with_foreign_schema_is_schema_mismatch():
    # FE10 Seize {unit, condition} reused against FE14 Defeat {unit, side}
    seize = argument_codec.decode(schema_for('FE10', 0x14), [0x10, 0x20])
    with pytest.raises(SchemaMismatch) as excinfo:
        argument_codec.encode(schema_for('FE14', 0x1C), seize)
    assert excinfo.value.expected == ('unit', 'side')
    assert excinfo.value.actual == ('unit', 'condition')


def test_encode_rejects_same_slots_in_another_order():
    # FE14 Turn {start_turn, end_turn, phase} against FE9 Turn {phase, start_turn, end_turn}
    turn = argument_codec.decode(schema_for('FE14', 0x10), [1, 3, 0])
    with pytest.raises(SchemaMismatch):
        argument_codec.encode(schema_for('FE9', 0x03), turn)


def test_encode_value_from_foreign_domain_is_slot_encode_error():
    # Matching slot names, but 'side' holds a FunctionRef instead of an integer
    defeat = CallbackRecord('FE14', 0x1C, 'Defeat', ('unit', 'side'), (Pid(0x10), FunctionRef(0x20)))
    with pytest.raises(SlotEncodeError) as excinfo:
        argument_codec.encode(schema_for('FE14', 0x1C), defeat)
    assert excinfo.value.slot_name == 'side'


def test_encode_rejects_values_outside_slot_domain():
    schema = schema_for('FE10', 0x11)  # Battle {attacker, defender, outcome, condition}
    good = argument_codec.decode(schema, [0x10, 0x20, 32, 0x30])

    def with_argument(index, value):
        arguments = list(good.arguments)
        arguments[index] = value
        return CallbackRecord(good.revision, good.code, good.event_name, good.slot_names, tuple(arguments))

    with pytest.raises(SlotEncodeError):
        argument_codec.encode(schema, with_argument(0, FunctionRef(0x10)))
    with pytest.raises(SlotEncodeError):
        argument_codec.encode(schema, with_argument(2, 32))
    with pytest.raises(SlotEncodeError):
        argument_codec.encode(schema, with_argument(2, CannonType.BALLISTA))
    with pytest.raises(SlotEncodeError):
        argument_codec.encode(schema, with_argument(3, Pid(70000)))


def test_encode_rejects_bad_integers_and_coordinates():
    turn = schema_for('FE10', 0x03)
    with pytest.raises(SlotEncodeError):
        argument_codec.encode(turn, make_record('FE10', 3, 'Turn', {'phase': True, 'start_turn': 1, 'end_turn': 2}))
    with pytest.raises(SlotEncodeError):
        argument_codec.encode(turn, make_record('FE10', 3, 'Turn', {'phase': 0, 'start_turn': 1, 'end_turn': 40000}))

    visit = schema_for('FE10', 0x05)
    with pytest.raises(SlotEncodeError):
        argument_codec.encode(visit, make_record('FE10', 5, 'Visit', {
            'position': (1, 2, 3, 4), 'visit_type': 0, 'condition': FunctionRef(1)}))
    assert argument_codec.encode(visit, make_record('FE10', 5, 'Visit', {
        'position': (1, 2), 'visit_type': 0, 'condition': FunctionRef(1)})) == [1, 2, 0, 1]
