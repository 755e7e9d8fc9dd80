"""
Cross-revision equivalence of callback records.

An Equivalence Class lists the (revision, code) pairs that denote the same
semantic callback in different titles. Used only by validation tooling and
tests; decoding always uses the exact revision's own table.
"""

from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

import yaml

from callback_records import CallbackRecord
from dialect_base import Revision, as_revision
from dialect_registry import DIALECT_DIR
from schema_errors import CallbackSchemaError, DialectConfigError


@dataclass(frozen=True)
class EquivalenceMember:
    """One (revision, code) member and how its slots map to canonical names."""
    revision: Revision
    code: int
    event_name: str
    rename: Tuple[Tuple[str, str], ...] = ()  # (local slot, canonical slot)
    ignore: FrozenSet[str] = frozenset()  # local slots dropped against records that lack them

    def canonical_name(self, slot_name: str) -> str:
        return dict(self.rename).get(slot_name, slot_name)

    def canonical_arguments(self, record: CallbackRecord,
                            counterpart_slots: FrozenSet[str] = frozenset()) -> Dict[str, object]:
        """Map a record's arguments to canonical slot names using its own slot order.

        Ignored slots are dropped unless the other side also has a slot with
        the same canonical name (`counterpart_slots`), in which case they are
        compared like any other slot.
        """
        out = {}
        for name, value in zip(record.slot_names, record.arguments):
            canonical = self.canonical_name(name)
            if name in self.ignore and canonical not in counterpart_slots:
                continue
            out[canonical] = value
        return out


@dataclass(frozen=True)
class EquivalenceClass:
    name: str
    members: Tuple[EquivalenceMember, ...]
    order_insensitive: FrozenSet[str] = frozenset()

    def member_for(self, record: CallbackRecord) -> Optional[EquivalenceMember]:
        revision = as_revision(record.revision)
        for member in self.members:
            if (member.revision == revision and member.code == record.code
                    and member.event_name == record.event_name):
                return member
        return None


class EquivalenceTable:
    """Registry of Equivalence Classes keyed by (revision, code)."""

    def __init__(self, classes: Optional[List[EquivalenceClass]] = None):
        self.classes: List[EquivalenceClass] = []
        self._by_member: Dict[Tuple[Revision, int], EquivalenceClass] = {}
        for eq_class in classes or []:
            self.add(eq_class)

    def add(self, eq_class: EquivalenceClass):
        for member in eq_class.members:
            key = (member.revision, member.code)
            if key in self._by_member:
                raise DialectConfigError(
                    f"{member.revision} code 0x{member.code:02X} is already in "
                    f"equivalence class '{self._by_member[key].name}'"
                )
        for member in eq_class.members:
            self._by_member[(member.revision, member.code)] = eq_class
        self.classes.append(eq_class)

    def class_for(self, revision, code: int) -> Optional[EquivalenceClass]:
        return self._by_member.get((as_revision(revision), code))

    def __len__(self) -> int:
        return len(self.classes)


def are_equivalent(record_a: CallbackRecord, record_b: CallbackRecord,
                   equivalence_table: EquivalenceTable) -> bool:
    """Check whether two records denote the same semantic callback.

    The records must belong to one Equivalence Class. Their arguments are
    mapped to canonical slot names through each side's own slot ordering;
    order-sensitive slots must be value-equal, and the order-insensitive slots
    must hold the same values as a multiset.
    """
    eq_class = equivalence_table.class_for(record_a.revision, record_a.code)
    if eq_class is None or eq_class is not equivalence_table.class_for(record_b.revision, record_b.code):
        return False

    member_a = eq_class.member_for(record_a)
    member_b = eq_class.member_for(record_b)
    if member_a is None or member_b is None:
        return False

    slots_a = frozenset(member_a.canonical_name(name) for name in record_a.slot_names)
    slots_b = frozenset(member_b.canonical_name(name) for name in record_b.slot_names)
    args_a = member_a.canonical_arguments(record_a, counterpart_slots=slots_b)
    args_b = member_b.canonical_arguments(record_b, counterpart_slots=slots_a)
    if set(args_a) != set(args_b):
        return False

    unordered_a = Counter()
    unordered_b = Counter()
    for name in args_a:
        if name in eq_class.order_insensitive:
            unordered_a[hashable_value(args_a[name])] += 1
            unordered_b[hashable_value(args_b[name])] += 1
        elif args_a[name] != args_b[name]:
            return False
    return unordered_a == unordered_b


def hashable_value(value):
    """Convert list/set/dict argument values to hashable equivalents for multiset comparison."""
    if isinstance(value, (list, tuple)):
        return tuple(hashable_value(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(hashable_value(v) for v in value)
    if isinstance(value, dict):
        return frozenset((k, hashable_value(v)) for k, v in value.items())
    return value


def build_equivalences(config: Dict, resolver, source: str = '<config>') -> EquivalenceTable:
    """Build an EquivalenceTable, resolving each member's event name to its code.

    Members refer to events by name so the file stays auditable; a name that
    does not resolve in its revision is a configuration error.
    """
    table = EquivalenceTable()
    for class_cfg in (config or {}).get('classes') or []:
        if 'name' not in class_cfg:
            raise DialectConfigError(f"{source}: equivalence class needs a 'name'")
        members = []
        for member_cfg in class_cfg.get('members') or []:
            try:
                revision = as_revision(member_cfg['revision'])
                event_name = member_cfg.get('event', class_cfg['name'])
                schema = resolver.resolve_name(revision, event_name)
            except KeyError:
                raise DialectConfigError(f"{source}: {class_cfg['name']}: member needs a 'revision'") from None
            except CallbackSchemaError as e:
                raise DialectConfigError(f"{source}: {class_cfg['name']}: {e}") from None

            rename = member_cfg.get('slots') or {}
            ignore = frozenset(member_cfg.get('ignore') or [])
            for local in list(rename) + list(ignore):
                if local not in schema.slot_names:
                    raise DialectConfigError(
                        f"{source}: {class_cfg['name']}: {revision} {event_name} has no slot '{local}'"
                    )
            members.append(EquivalenceMember(
                revision=revision,
                code=schema.code,
                event_name=schema.name,
                rename=tuple(rename.items()),
                ignore=ignore
            ))
        table.add(EquivalenceClass(
            name=class_cfg['name'],
            members=tuple(members),
            order_insensitive=frozenset(class_cfg.get('order_insensitive') or [])
        ))
    return table


def load_equivalences(resolver, path=None) -> EquivalenceTable:
    """Load the equivalence definition file (dialects/equivalences.yaml by default)."""
    path = Path(path) if path else DIALECT_DIR / 'equivalences.yaml'
    with open(path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)
    return build_equivalences(config, resolver, source=path.name)
