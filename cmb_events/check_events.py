#!/usr/bin/env python3
"""
Command line front end for the callback schema resolver.

Lists the supported titles and their events, decodes single callback
registrations, and checks files of extracted registrations for compatibility.
"""

import json
import sys
import traceback
from pathlib import Path

import yaml

from compat_report import check_registrations, parse_number, registrations_from_config
from dialect_base import SlotKind
from dialect_registry import load_registry
from schema_errors import CallbackSchemaError, RegistrationInputError
from schema_resolver import SchemaResolver


def print_usage():
    print("Usage: python check_events.py <command> [arguments] [options]")
    print()
    print("Commands:")
    print("  revisions                          - List supported revisions")
    print("  events <revision>                  - List a revision's events and argument slots")
    print("  decode <revision> <code> <ops...>  - Decode one registration (code/operands decimal or hex with 0x)")
    print("  check <registrations.yaml>         - Decode and re-encode every registration in a file")
    print()
    print("Options:")
    print("  --dialects <dir>                   - Load dialect definitions from another directory")
    print("  --format <json|yaml>               - Output format for decode (default: yaml)")
    print()
    print("Examples:")
    print("  python check_events.py events FE14")
    print("  python check_events.py decode FE14 0x10 1 3 0")
    print("  python check_events.py check fe14_registrations.yaml")


def describe_slot(slot) -> str:
    """Short description of a slot for event listings."""
    text = f"{slot.name}: {slot.kind.value}"
    if slot.kind == SlotKind.COORDINATE:
        text += f"[{slot.fields}]"
    if slot.decoder is not None:
        text += f"({slot.decoder.name})"
    return text


def cmd_revisions(resolver: SchemaResolver) -> int:
    for revision in resolver.all_revisions():
        table = resolver.registry.get(revision)
        print(f"{str(revision):8s} {table.title or '':28s} {table.operand_bits}-bit  {len(table):3d} events")
    return 0


def cmd_events(resolver: SchemaResolver, revision: str) -> int:
    table = resolver.registry.get(revision)
    print(f"{table.revision}: {table.title or ''}")
    for schema in table:
        slots = ", ".join(describe_slot(s) for s in schema.slots)
        print(f"  0x{schema.code:02X}  {schema.name:12s} {{ {slots} }}")
    return 0


def cmd_decode(resolver: SchemaResolver, revision: str, code: int, operands, output_format: str) -> int:
    record = resolver.decode(revision, code, operands)
    if output_format == 'json':
        print(json.dumps(record.to_dict(), indent=2))
    else:
        print(yaml.safe_dump(record.to_dict(), sort_keys=False), end='')
    return 0


def cmd_check(resolver: SchemaResolver, registrations_path: str) -> int:
    with open(registrations_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}
    if 'revision' not in config:
        raise RegistrationInputError(f"{registrations_path}: missing 'revision'")

    revision = str(config['revision'])
    print(f"Testing registrations at '{registrations_path}' for game '{revision}'")
    report = check_registrations(resolver, revision, registrations_from_config(config))
    print(report.to_text())
    return 0 if report.failures == 0 else 1


def main(argv=None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else list(argv)

    # Parse command-line arguments
    dialect_dir = None
    output_format = 'yaml'
    args = []

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == '--dialects' and i + 1 < len(argv):
            dialect_dir = argv[i + 1]
            i += 1  # Skip next arg
        elif arg == '--format' and i + 1 < len(argv):
            output_format = argv[i + 1]
            i += 1
        else:
            args.append(arg)
        i += 1

    if not args or output_format not in ('json', 'yaml'):
        print_usage()
        return 1

    command, rest = args[0], args[1:]
    try:
        resolver = SchemaResolver(load_registry(Path(dialect_dir) if dialect_dir else None))

        if command == 'revisions':
            return cmd_revisions(resolver)
        if command == 'events' and len(rest) == 1:
            return cmd_events(resolver, rest[0])
        if command == 'decode' and len(rest) >= 2:
            try:
                code = parse_number(rest[1])  # Support hex with 0x prefix
                operands = [parse_number(v) for v in rest[2:]]
            except RegistrationInputError as e:
                print(f"Error: {e}")
                print()
                print_usage()
                return 1
            return cmd_decode(resolver, rest[0], code, operands, output_format)
        if command == 'check' and len(rest) == 1:
            return cmd_check(resolver, rest[0])
    except CallbackSchemaError as e:
        print(f"Error: {e}")
        return 1
    except Exception as e:
        print(f"\nError: {e}")
        print("\nFull traceback:")
        traceback.print_exc()
        return 1

    print_usage()
    return 1


if __name__ == '__main__':
    sys.exit(main())
