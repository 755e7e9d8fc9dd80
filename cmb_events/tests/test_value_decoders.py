#!/usr/bin/env python3
"""Tests for the spawn effect, cannon type and battle flag decoders."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from schema_errors import UnknownVariant
from value_decoders import (
    BattleFlag, CannonType, SpawnEffect, EnumDecoder, get_decoder
)


def test_battle_flags_decode_hit_and_crit():
    decoder = get_decoder('battle_flags')
    assert decoder.decode(96) == frozenset({BattleFlag.HIT, BattleFlag.CRIT})


def test_battle_flags_zero_is_no_flags():
    decoder = get_decoder('battle_flags')
    assert decoder.decode(0) == frozenset()
    assert decoder.encode(frozenset()) == 0


def test_battle_flags_reject_unknown_high_bit():
    decoder = get_decoder('battle_flags')
    with pytest.raises(UnknownVariant) as excinfo:
        decoder.decode(65536)
    assert excinfo.value.raw == 65536
    with pytest.raises(UnknownVariant):
        decoder.decode(96 | 256)


def test_battle_flags_reject_negative():
    with pytest.raises(UnknownVariant):
        get_decoder('battle_flags').decode(-1)


def test_battle_flags_encode_is_inverse():
    decoder = get_decoder('battle_flags')
    flags = frozenset({BattleFlag.MISS, BattleFlag.COUNTER, BattleFlag.KILL})
    assert decoder.encode(flags) == 16 + 2 + 128
    assert decoder.decode(decoder.encode(flags)) == flags


def test_battle_flags_accepts_only_member_sets():
    decoder = get_decoder('battle_flags')
    assert decoder.accepts(frozenset({BattleFlag.HIT}))
    assert decoder.accepts({BattleFlag.HIT, BattleFlag.CRIT})
    assert not decoder.accepts(96)
    assert not decoder.accepts(frozenset({SpawnEffect.WARP}))
    # Composite flag values are not single members
    assert not decoder.accepts(frozenset({BattleFlag.HIT | BattleFlag.CRIT}))


def test_spawn_effects_enum():
    decoder = get_decoder('spawn_effects')
    assert decoder.decode(1) is SpawnEffect.WARP
    assert decoder.encode(SpawnEffect.FROM_FOG) == 4
    with pytest.raises(UnknownVariant):
        decoder.decode(99)
    assert not decoder.accepts(CannonType.BALLISTA)


def test_cannon_types_enum():
    decoder = get_decoder('cannon_types')
    assert decoder.decode(2) is CannonType.KILLER_BALLISTA
    with pytest.raises(UnknownVariant):
        decoder.decode(-1)
    for member in CannonType:
        assert decoder.decode(decoder.encode(member)) is member


def test_enum_decoder_name_in_error():
    decoder = EnumDecoder('test_cannons', CannonType)
    with pytest.raises(UnknownVariant, match='test_cannons'):
        decoder.decode(7)


def test_unknown_decoder_name():
    with pytest.raises(KeyError):
        get_decoder('weapon_ranks')
