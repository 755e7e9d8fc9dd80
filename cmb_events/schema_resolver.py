"""
Schema resolution and the decode/encode entry points used by the
disassembler, decompiler and compiler front ends.
"""

from typing import List, Optional, Sequence

import argument_codec
from callback_records import CallbackRecord
from dialect_base import EventSchema
from dialect_registry import DialectRegistry, default_registry
from schema_errors import SchemaMismatch


class SchemaResolver:
    """Resolves (revision, code) and (revision, name) to Event Schemas.

    UnknownRevision ("never heard of this game version") and UnknownEvent
    ("heard of the version but the code is undefined in it") stay distinct.
    """

    def __init__(self, registry: Optional[DialectRegistry] = None):
        self.registry = registry if registry is not None else default_registry()

    def resolve(self, revision, code: int) -> EventSchema:
        return self.registry.get(revision).lookup(code)

    def resolve_name(self, revision, event_name: str) -> EventSchema:
        """Reverse lookup for scripts that refer to callbacks symbolically."""
        return self.registry.get(revision).lookup_name(event_name)

    def all_revisions(self):
        return self.registry.all_revisions()

    def decode(self, revision, code: int, raw_operands: Sequence[int]) -> CallbackRecord:
        """Decode one raw (revision, code, operands) registration."""
        schema = self.resolve(revision, code)
        return argument_codec.decode(schema, raw_operands)

    def encode(self, schema: EventSchema, record: CallbackRecord) -> List[int]:
        return argument_codec.encode(schema, record)

    def encode_for(self, revision, record: CallbackRecord) -> List[int]:
        """Encode a record for `revision`, re-resolving its event by name there.

        This is the path for migrating a record between titles: the target
        revision's own schema (and code) is always used. Arguments are matched
        to the target's slots by name, so titles that order the same slots
        differently (FE14 Turn vs FE9 Turn) encode correctly.

        Raises:
            SchemaMismatch: If the target event does not have the same slot names
        """
        schema = self.resolve_name(revision, record.event_name)
        if sorted(record.slot_names) != sorted(schema.slot_names):
            raise SchemaMismatch(schema.name, schema.slot_names, record.slot_names)
        reordered = CallbackRecord(
            revision=record.revision,
            code=record.code,
            event_name=record.event_name,
            slot_names=schema.slot_names,
            arguments=tuple(record[name] for name in schema.slot_names)
        )
        return argument_codec.encode(schema, reordered)
