"""
Decoders for the small closed value domains referenced by callback slots.

Spawn effects and cannon subtypes are plain enumerations; battle outcomes are
bitflags. Each decoder maps raw integer -> variant and back, and rejects any
raw value outside its domain.
"""

from abc import ABC, abstractmethod
from enum import Enum, Flag
from typing import Dict, FrozenSet, Iterable

from schema_errors import UnknownVariant


class SpawnEffect(Enum):
    """How a unit appears on the map when a reinforcement callback fires."""
    APPEAR = 0
    WARP = 1
    FADE_IN = 2
    FLY_IN = 3
    FROM_FOG = 4
    FROM_VEIN = 5


class CannonType(Enum):
    """Siege weapon subtype placed by cannon/ballista callbacks."""
    BALLISTA = 0
    IRON_BALLISTA = 1
    KILLER_BALLISTA = 2
    STONE_LAUNCHER = 3
    FIRE_ORB = 4


class BattleFlag(Flag):
    """Battle outcome bits reported to battle callbacks."""
    ATTACK = 1
    COUNTER = 2
    FOLLOW_UP = 4
    BRAVE = 8
    MISS = 16
    HIT = 32
    CRIT = 64
    KILL = 128


class ValueDecoder(ABC):
    """A closed raw-integer <-> variant mapping."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def decode(self, raw: int):
        """Decode a raw value, raising UnknownVariant outside the domain."""
        pass

    @abstractmethod
    def encode(self, variant) -> int:
        """Encode a variant previously produced by decode()."""
        pass

    @abstractmethod
    def accepts(self, variant) -> bool:
        """Check whether a value belongs to this decoder's variant domain."""
        pass


class EnumDecoder(ValueDecoder):
    """Decoder over an Enum whose values are the raw codes."""

    def __init__(self, name: str, enum_cls):
        super().__init__(name)
        self.enum_cls = enum_cls
        self._by_value: Dict[int, Enum] = {member.value: member for member in enum_cls}

    def decode(self, raw: int) -> Enum:
        if raw not in self._by_value:
            raise UnknownVariant(self.name, raw)
        return self._by_value[raw]

    def encode(self, variant: Enum) -> int:
        return variant.value

    def accepts(self, variant) -> bool:
        return isinstance(variant, self.enum_cls)


class FlagSetDecoder(ValueDecoder):
    """Decoder over a Flag class; variants are frozensets of single-bit members.

    Zero decodes to the empty set. Any bit outside the defined mask is rejected.
    """

    def __init__(self, name: str, flag_cls):
        super().__init__(name)
        self.flag_cls = flag_cls
        self.members = [member for member in flag_cls]
        self.mask = 0
        for member in self.members:
            self.mask |= member.value

    def decode(self, raw: int) -> FrozenSet[Flag]:
        if raw < 0 or raw & ~self.mask:
            raise UnknownVariant(self.name, raw)
        return frozenset(m for m in self.members if raw & m.value)

    def encode(self, variant: Iterable[Flag]) -> int:
        raw = 0
        for member in variant:
            raw |= member.value
        return raw

    def accepts(self, variant) -> bool:
        if not isinstance(variant, (set, frozenset)):
            return False
        return all(isinstance(m, self.flag_cls) and m in self.members for m in variant)


VALUE_DECODERS: Dict[str, ValueDecoder] = {
    'spawn_effects': EnumDecoder('spawn_effects', SpawnEffect),
    'cannon_types': EnumDecoder('cannon_types', CannonType),
    'battle_flags': FlagSetDecoder('battle_flags', BattleFlag),
}


def get_decoder(name: str) -> ValueDecoder:
    """Look up a value decoder by the name used in dialect definition files."""
    if name not in VALUE_DECODERS:
        raise KeyError(f"Unknown value decoder: {name}")
    return VALUE_DECODERS[name]
