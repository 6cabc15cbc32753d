#!/usr/bin/env python3
"""
Pattern presets CLI - thin entrypoint for operator commands.

Commands:
- list: Show factory and user presets for a generator type
- save: Save parameters as a new user preset
- delete: Delete a user preset
- export: Write user presets to an export file
- import: Import presets from an export file
- default set|clear|show: Manage per-generator defaults
- stats: Show storage statistics

Design Principles:
==================
- CLI is a dispatcher only; all logic lives in PresetService
- Surface errors verbatim
- Exit non-zero on failure
- No interactive prompts

Exit Codes:
===========
- 0: Success
- 1: Validation error (duplicate, bad name, unknown id, malformed payload)
- 4: System error (file not found, unreadable file, storage failure)
"""

import argparse
import asyncio
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, Dict, NoReturn

from .bootstrap import build_service
from .config import Settings
from .logging_config import configure_logging
from .persistence.errors import PersistenceError
from .presets.codec import export_filename
from .presets.errors import PresetError
from .presets.service import PresetService

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_SYSTEM = 4


def _fail(message: str, code: int) -> NoReturn:
    print(f"ERROR: {message}", file=sys.stderr)
    sys.exit(code)


def _read_json_file(path: Path) -> Any:
    """
    Load JSON from a file.

    Raises:
        SystemExit(4): File missing or unreadable
        SystemExit(1): File is not valid JSON
    """
    if not path.exists():
        _fail(f"File not found: {path}", EXIT_SYSTEM)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON in {path}: {e}", EXIT_VALIDATION)
    except OSError as e:
        _fail(f"Cannot read {path}: {e}", EXIT_SYSTEM)


def _parse_parameters(args: argparse.Namespace) -> Dict[str, Any]:
    if args.params_file:
        params = _read_json_file(Path(args.params_file))
    else:
        try:
            params = json.loads(args.params)
        except json.JSONDecodeError as e:
            _fail(f"Invalid --params JSON: {e}", EXIT_VALIDATION)
    if not isinstance(params, dict):
        _fail("Parameters must be a JSON object", EXIT_VALIDATION)
    return params


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


# Commands

def cmd_list(service: PresetService, args: argparse.Namespace) -> None:
    presets = asyncio.run(service.list_for_generator_type(args.generator_type))
    if args.json:
        _print_json([p.to_dict() for p in presets])
        return
    if not presets:
        print(f"No presets for {args.generator_type}")
        return
    for preset in presets:
        marker = "factory" if preset.is_factory else "user"
        flags = []
        if getattr(preset, "is_default", False) or getattr(preset, "is_user_default", False):
            flags.append("default")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"{preset.id}  {preset.name}  ({marker}){suffix}")


def cmd_save(service: PresetService, args: argparse.Namespace) -> None:
    parameters = _parse_parameters(args)
    try:
        preset = service.save(args.name, args.generator_type, parameters, args.description)
    except TypeError as e:
        _fail(f"Invalid parameters: {e}", EXIT_VALIDATION)
    print(f"Saved preset '{preset.name}' ({preset.id})")


def cmd_delete(service: PresetService, args: argparse.Namespace) -> None:
    if not service.delete(args.preset_id):
        _fail(f"Preset not found: {args.preset_id}", EXIT_VALIDATION)
    print(f"Deleted preset {args.preset_id}")


def cmd_export(service: PresetService, args: argparse.Namespace) -> None:
    envelope = service.export_selection(args.ids or None)
    output = Path(args.output) if args.output else Path(export_filename(args.generator_type))
    try:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(envelope.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        _fail(f"Cannot write {output}: {e}", EXIT_SYSTEM)
    print(f"Exported {len(envelope.presets)} presets to {output}")


def cmd_import(service: PresetService, args: argparse.Namespace) -> None:
    envelope = _read_json_file(Path(args.file))
    result = service.import_envelope(envelope)
    print(result.summary())
    if result.errors and not result.imported_ids:
        sys.exit(EXIT_VALIDATION)


def cmd_default(service: PresetService, args: argparse.Namespace) -> None:
    if args.default_command == "set":
        preset = service.set_user_default(args.preset_id)
        print(f"Default for {preset.generator_type}: '{preset.name}' ({preset.id})")
    elif args.default_command == "clear":
        if service.clear_user_default(args.generator_type):
            print(f"Cleared user default for {args.generator_type}")
        else:
            print(f"No user default set for {args.generator_type}")
    else:
        preset = asyncio.run(service.get_effective_default(args.generator_type))
        if preset is None:
            print(f"No default for {args.generator_type} (generator built-ins apply)")
        else:
            origin = "factory" if preset.is_factory else "user"
            print(f"{preset.id}  {preset.name}  ({origin})")


def cmd_stats(service: PresetService, args: argparse.Namespace) -> None:
    stats = service.store.stats()
    _print_json(stats.model_dump(mode="json", by_alias=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pattern-presets",
        description="Manage pattern generator presets",
    )
    parser.add_argument(
        "--storage",
        help="Storage file (default: $PATTERN_PRESETS_STORAGE_PATH or ~/.pattern-presets/storage.json)",
    )
    parser.add_argument(
        "--catalog",
        help="Factory catalog URL or path (default: packaged catalog)",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to execute")

    parser_list = subparsers.add_parser("list", help="List presets for a generator type")
    parser_list.add_argument("generator_type", help="Generator type, e.g. pixelated-noise")
    parser_list.add_argument("--json", action="store_true", help="Print presets as JSON")
    parser_list.set_defaults(func=cmd_list)

    parser_save = subparsers.add_parser("save", help="Save parameters as a new user preset")
    parser_save.add_argument("name", help="Preset name")
    parser_save.add_argument("--type", dest="generator_type", required=True, help="Generator type")
    source = parser_save.add_mutually_exclusive_group(required=True)
    source.add_argument("--params", help="Parameters as a JSON object")
    source.add_argument("--params-file", help="Path to a JSON file holding the parameters")
    parser_save.add_argument("--description", default=None, help="Optional description")
    parser_save.set_defaults(func=cmd_save)

    parser_delete = subparsers.add_parser("delete", help="Delete a user preset")
    parser_delete.add_argument("preset_id", help="Preset id")
    parser_delete.set_defaults(func=cmd_delete)

    parser_export = subparsers.add_parser("export", help="Export user presets")
    parser_export.add_argument("ids", nargs="*", help="Preset ids (default: all user presets)")
    parser_export.add_argument("--type", dest="generator_type", default=None, help="Generator type for the file name")
    parser_export.add_argument("--output", "-o", default=None, help="Output file (default: dated file name)")
    parser_export.set_defaults(func=cmd_export)

    parser_import = subparsers.add_parser("import", help="Import presets from an export file")
    parser_import.add_argument("file", help="Path to export file")
    parser_import.set_defaults(func=cmd_import)

    parser_default = subparsers.add_parser("default", help="Manage default presets")
    default_sub = parser_default.add_subparsers(dest="default_command", required=True)
    default_set = default_sub.add_parser("set", help="Make a user preset the default for its type")
    default_set.add_argument("preset_id", help="User preset id")
    default_clear = default_sub.add_parser("clear", help="Clear the user default for a type")
    default_clear.add_argument("generator_type", help="Generator type")
    default_show = default_sub.add_parser("show", help="Show the effective default for a type")
    default_show.add_argument("generator_type", help="Generator type")
    parser_default.set_defaults(func=cmd_default)

    parser_stats = subparsers.add_parser("stats", help="Show storage statistics")
    parser_stats.set_defaults(func=cmd_stats)

    return parser


def main(argv=None) -> NoReturn:
    """
    Main CLI entrypoint.

    Parses arguments and dispatches to subcommands.
    """
    args = build_parser().parse_args(argv)

    settings = Settings.from_env()
    overrides = {}
    if args.storage:
        overrides["storage_path"] = Path(args.storage).expanduser()
    if args.catalog:
        overrides["catalog_url"] = args.catalog
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    configure_logging(args.log_level or "WARNING")

    service = build_service(settings)
    try:
        args.func(service, args)
    except PresetError as e:
        _fail(str(e), EXIT_VALIDATION)
    except PersistenceError as e:
        _fail(str(e), EXIT_SYSTEM)
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
