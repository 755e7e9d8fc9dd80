"""
Revision -> DialectTable registry, and loading of dialect definition files.

Each supported title has a YAML file under dialects/ declaring its event
codes and argument slots. The registry is built once and is read-only after.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict, KeysView, List, Optional

import yaml

from dialect_base import ArgumentSlot, DialectTable, EventSchema, Revision, SlotKind, as_revision
from schema_errors import DialectConfigError, DuplicateRevision, UnknownRevision
from value_decoders import get_decoder


DIALECT_DIR = Path(__file__).parent / 'dialects'

# Files in the dialect directory that are not dialect tables
NON_DIALECT_FILES = {'equivalences.yaml'}


class DialectRegistry:
    """Maps revision identifiers to their dialect tables."""

    def __init__(self):
        self._tables: Dict[Revision, DialectTable] = {}

    def register_dialect(self, revision, table: DialectTable):
        """Register and seal a table.

        Raises:
            DialectConfigError: If the table is bound to another revision
            DuplicateRevision: If the revision already has a table
        """
        revision = as_revision(revision)
        if revision != table.revision:
            raise DialectConfigError(
                f"Cannot register the {table.revision} dialect table as {revision}"
            )
        if revision in self._tables:
            raise DuplicateRevision(revision)
        table.seal()
        self._tables[revision] = table

    def get(self, revision) -> DialectTable:
        revision = as_revision(revision)
        if revision not in self._tables:
            raise UnknownRevision(revision)
        return self._tables[revision]

    def all_revisions(self) -> KeysView:
        """Revisions in registration order.

        The returned view is lazy and can be iterated any number of times.
        """
        return self._tables.keys()

    def __contains__(self, revision) -> bool:
        return as_revision(revision) in self._tables

    def __len__(self) -> int:
        return len(self._tables)


def _parse_code(key) -> int:
    """Event keys may be ints (0x10 parses as 16) or strings ("0x10")."""
    if isinstance(key, str):
        return int(key, 0)  # base 0 auto-detects hex
    return int(key)


def _build_slot(slot_cfg: Dict, operand_bits: int, where: str) -> ArgumentSlot:
    """Build an ArgumentSlot from its YAML mapping."""
    if 'name' not in slot_cfg or 'kind' not in slot_cfg:
        raise DialectConfigError(f"{where}: slot needs 'name' and 'kind': {slot_cfg}")
    try:
        kind = SlotKind(slot_cfg['kind'])
    except ValueError:
        raise DialectConfigError(f"{where}: unknown slot kind '{slot_cfg['kind']}'") from None

    decoder = None
    if kind.needs_decoder():
        try:
            decoder = get_decoder(slot_cfg.get('decoder', ''))
        except KeyError as e:
            raise DialectConfigError(f"{where}: {e.args[0]}") from None

    # Text-section references are stored unsigned, everything else signed
    signed = slot_cfg.get('signed', not kind.is_text_ref())
    default_fields = 2 if kind == SlotKind.COORDINATE else 1

    try:
        return ArgumentSlot(
            name=slot_cfg['name'],
            kind=kind,
            decoder=decoder,
            bits=slot_cfg.get('bits', operand_bits),
            signed=signed,
            fields=slot_cfg.get('fields', default_fields)
        )
    except ValueError as e:
        raise DialectConfigError(f"{where}: {e}") from None


def build_dialect(config: Dict, source: str = '<config>') -> DialectTable:
    """Build a DialectTable from a parsed dialect definition.

    Args:
        config: Parsed YAML mapping with 'revision', 'operand_bits', 'events'
        source: Name used in error messages

    Returns:
        Unsealed DialectTable
    """
    if not isinstance(config, dict) or 'revision' not in config:
        raise DialectConfigError(f"{source}: missing 'revision'")

    revision = Revision(title=str(config['revision']), variant=str(config.get('variant', '')))
    operand_bits = config.get('operand_bits', 32)
    table = DialectTable(revision, title=config.get('title'), operand_bits=operand_bits)

    events_config = config.get('events') or {}
    for event_key, event_cfg in events_config.items():
        try:
            code = _parse_code(event_key)
        except ValueError:
            raise DialectConfigError(f"{source}: bad event code '{event_key}'") from None
        if not isinstance(event_cfg, dict) or 'name' not in event_cfg:
            raise DialectConfigError(f"{source}: event 0x{code:02X} needs a 'name'")

        where = f"{source}: {event_cfg['name']}"
        slots = tuple(_build_slot(slot_cfg, operand_bits, where)
                      for slot_cfg in event_cfg.get('slots') or [])
        table.register(code, EventSchema(code=code, name=event_cfg['name'], slots=slots))

    return table


def load_dialect(path) -> DialectTable:
    """Load one dialect definition YAML file."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)
    return build_dialect(config, source=path.name)


def load_registry(dialect_dir=None) -> DialectRegistry:
    """Build a registry from every dialect file in a directory.

    Files are registered by their 'order' key (then file name), so
    all_revisions() follows release order rather than file system order.
    """
    dialect_dir = Path(dialect_dir) if dialect_dir else DIALECT_DIR
    if not dialect_dir.is_dir():
        raise DialectConfigError(f"Dialect directory not found: {dialect_dir}")

    entries: List = []
    for path in sorted(dialect_dir.glob('*.yaml')):
        if path.name in NON_DIALECT_FILES:
            continue
        with open(path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
        order = config.get('order', 0) if isinstance(config, dict) else 0
        entries.append((order, path.name, config))

    registry = DialectRegistry()
    for _, name, config in sorted(entries, key=lambda e: (e[0], e[1])):
        table = build_dialect(config, source=name)
        registry.register_dialect(table.revision, table)
    return registry


@lru_cache(maxsize=None)
def default_registry(dialect_dir: Optional[str] = None) -> DialectRegistry:
    """Process-wide registry built from the bundled (or given) definitions."""
    return load_registry(dialect_dir)
