"""CLI for folgezettel - addresses and links for a markdown Zettelkasten."""

import argparse
import asyncio
import json
import logging
import os
import platform
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from . import __version__
from .core.address import extract_address, kind_of, parse_address
from .core.algebra import canonical, last_segment_kind, parent_address, parent_of
from .core.model import Note
from .errors import LookupMiss
from .runtime import build_runtime


def resolve_note(rt: Any, ref: str) -> Note:
    """Find a note by vault-relative path, basename or folgezettel address."""
    for note in rt.host.list_all_notes():
        if note.path == ref:
            return note
    note = rt.index.find_by_basename(ref) or rt.index.find_by_exact_address(ref)
    if note is None:
        raise LookupMiss("Note", ref)
    return note


def cmd_parse(args: argparse.Namespace, rt: Any) -> int:
    """Show how an address is segmented."""
    parsed = parse_address(args.address)
    parent = parent_of(parsed)
    info = {
        "raw": parsed.raw,
        "canonical": canonical(parsed),
        "segments": [s.value for s in parsed.segments],
        "kinds": [kind_of(s) for s in parsed.segments],
        "parent": parent.raw if parent else None,
        "last_kind": last_segment_kind(parsed),
    }
    if args.json:
        print(json.dumps(info, indent=2))
    else:
        print(f"Canonical: {info['canonical']}")
        print(f"Segments: {' '.join(str(s) for s in info['segments'])}")
        print(f"Parent: {info['parent'] or '(root)'}")
        print(f"Ends with: {info['last_kind']}")
    return 0


def cmd_suggest(args: argparse.Namespace, rt: Any) -> int:
    """Suggest the next child address of a note."""
    note = resolve_note(rt, args.note)
    validation = rt.linker.suggest_next_child_for(note)
    if validation is None:
        return 1
    if args.json:
        print(
            json.dumps(
                {
                    "address": validation.address,
                    "is_duplicate": validation.is_duplicate,
                    "existing": validation.existing_note.path if validation.existing_note else None,
                },
                indent=2,
            )
        )
    return 1 if validation.is_duplicate else 0


def cmd_new_child(args: argparse.Namespace, rt: Any) -> int:
    """Create the next child note."""
    note = resolve_note(rt, args.note)
    created = asyncio.run(rt.linker.create_next_child(note))
    if created is None:
        return 1
    if args.json:
        print(json.dumps({"path": created.path}))
    return 0


def cmd_link(args: argparse.Namespace, rt: Any) -> int:
    """Add backlink to parent (and forward link in the parent)."""
    note = resolve_note(rt, args.note)
    if asyncio.run(rt.linker.add_backlink_to_parent(note)):
        return 0
    # no address, a root note or a missing parent
    parent = parent_address(extract_address(note.basename) or "")
    if parent and rt.index.find_by_exact_address(parent):
        return 0
    return 1


def cmd_process(args: argparse.Namespace, rt: Any) -> int:
    """Run the automatic new-note linking for one note."""
    note = resolve_note(rt, args.note)
    rt.linker.check_for_duplicate_address(note)
    asyncio.run(rt.linker.process_note(note))
    return 0


def cmd_check(args: argparse.Namespace, rt: Any) -> int:
    """Report addresses used by more than one note."""
    dups = rt.index.duplicates()
    if args.json:
        print(json.dumps({a: [n.path for n in notes] for a, notes in dups.items()}, indent=2))
    elif not args.quiet:
        for address, notes in sorted(dups.items()):
            print(f"{address}:")
            for n in notes:
                print(f"  {n.path}")
        if not dups:
            print("No duplicate addresses")
    return 1 if dups else 0


def cmd_ls(args: argparse.Namespace, rt: Any) -> int:
    """List addressed notes."""
    rows = [(a, n.path) for n, a in rt.index.addressed_notes()]
    if args.json:
        print(json.dumps([{"address": a, "path": p} for a, p in rows], indent=2))
    else:
        for address, path in rows:
            print(f"{address}\t{path}")
    return 0


def cmd_config_show(args: argparse.Namespace, rt: Any) -> int:
    """Print link settings."""
    settings = asdict(rt.settings)
    if args.json:
        print(json.dumps(settings, indent=2))
    else:
        for key, value in settings.items():
            print(f"{key} = {value}")
    return 0


def cmd_config_set(args: argparse.Namespace, rt: Any) -> int:
    """Change one link setting and persist it."""
    try:
        rt.update_settings(**{args.key: args.value})
    except (KeyError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not args.quiet:
        print(f"{args.key} = {getattr(rt.settings, args.key)}")
    return 0


def cmd_watch(args: argparse.Namespace, rt: Any) -> int:
    """Watch vault for changes and keep links up to date."""
    from .watch import watch_vault

    debounce_ms = args.debounce_ms
    if debounce_ms is None:
        debounce_ms = rt.config.watch.debounce_ms

    return watch_vault(
        rt.host,
        debounce_ms=debounce_ms,
        quiet=args.quiet,
        json_output=args.json,
    )


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start local JSON API server."""
    import uvicorn

    from .api.app import create_app, generate_token

    token_arg = getattr(args, 'token', 'auto')
    token = None

    if token_arg == 'auto':
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == 'none':
        print("Warning: Running without authentication. Only use in trusted environments.")
        token = None
    else:
        token = token_arg

    app = create_app(rt, token=token, enable_cors=args.cors)

    print(f"Starting server on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")

    return 0


def version_string() -> str:
    return (
        f"folgezettel {__version__} "
        f"(python {platform.python_version()}, platform {platform.platform()})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="folge", description="Folgezettel addresses and links"
    )
    parser.add_argument("--version", action="version", version=version_string())
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/folge.toml, vault/folge.toml)",
    )
    parser.add_argument(
        "--vault",
        type=Path,
        default=None,
        help="Path to vault directory (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    parser_parse = subparsers.add_parser("parse", help="Show the segments of an address")
    parser_parse.add_argument("address", help="Folgezettel address, e.g. 1.2a3")

    parser_suggest = subparsers.add_parser("suggest", help="Suggest the next child address")
    parser_suggest.add_argument("note", help="Note path, basename or address")

    parser_new_child = subparsers.add_parser("new-child", help="Create the next child note")
    parser_new_child.add_argument("note", help="Note path, basename or address")
    parser_new_child.add_argument(
        "--yes", action="store_true", help="Create even if the address is taken"
    )
    parser_new_child.add_argument(
        "--edit", action="store_true", help="Open in $EDITOR after creation"
    )

    parser_link = subparsers.add_parser("link", help="Add backlink to parent note")
    parser_link.add_argument("note", help="Note path, basename or address")

    parser_process = subparsers.add_parser(
        "process", help="Run new-note processing (duplicate check, parent links)"
    )
    parser_process.add_argument("note", help="Note path, basename or address")

    subparsers.add_parser("check", help="Report duplicate addresses")
    subparsers.add_parser("ls", help="List notes that carry an address")

    parser_config = subparsers.add_parser("config", help="Show or change link settings")
    config_sub = parser_config.add_subparsers(dest="config_cmd", required=True)
    config_sub.add_parser("show", help="Print settings")
    parser_config_set = config_sub.add_parser("set", help="Change a setting")
    parser_config_set.add_argument("key", help="Setting name, e.g. backlink_heading")
    parser_config_set.add_argument("value", help="New value")

    parser_watch = subparsers.add_parser("watch", help="Watch vault for changes")
    parser_watch.add_argument(
        "--debounce-ms", type=int, default=None,
        help="Debounce window in milliseconds (default: from config, 150)"
    )

    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument(
        "--host", default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser_serve.add_argument(
        "--port", type=int, default=8765,
        help="Port to bind to (default: 8765)"
    )
    parser_serve.add_argument(
        "--token", default="auto",
        help="Bearer token (auto|<string>|none, default: auto)"
    )
    parser_serve.add_argument(
        "--cors", action="store_true",
        help="Enable CORS (default: false)"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    editor = None
    if getattr(args, "edit", False):
        editor = os.environ.get("EDITOR", "vi")

    rt = build_runtime(
        vault_path=args.vault,
        config_path=args.config,
        editor=editor,
        assume_yes=getattr(args, "yes", False),
        quiet=args.quiet or args.json,
    )

    handlers = {
        "parse": cmd_parse,
        "suggest": cmd_suggest,
        "new-child": cmd_new_child,
        "link": cmd_link,
        "process": cmd_process,
        "check": cmd_check,
        "ls": cmd_ls,
        "watch": cmd_watch,
        "serve": cmd_serve,
    }

    if args.cmd == "config":
        config_handlers = {
            "show": cmd_config_show,
            "set": cmd_config_set,
        }
        handler = config_handlers.get(args.config_cmd)
    else:
        handler = handlers.get(args.cmd)

    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
