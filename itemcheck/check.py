#!/usr/bin/env python3
"""
Item translation checker.

Usage:
    # Mine the current item list from the game bundle
    python -m itemcheck.check items --output items.json

    # Coverage of the wiki dictionary
    python -m itemcheck.check report

    # Browse items
    python -m itemcheck.check list --filter missing --search wood --sort name-asc

    # Template for translators
    python -m itemcheck.check template
    python -m itemcheck.check template --json --output missing.json
"""

import sys
import json
import argparse
from pathlib import Path

from .session import CheckerSession, describe_failure
from .translations import (
    FILTERS,
    SORTS,
    annotated_template,
    default_template_filename,
    item_rows,
    missing_template,
    render_json_template,
)
from .utils.config import Config, LOG_LEVEL, load_tables
from .utils.exceptions import ItemCheckError
from .utils.logger import set_level, setup_logging


def build_session(args) -> CheckerSession:
    """Session from the common command-line options."""
    config = Config.load(args.config)
    if args.tables:
        config.tables_file = args.tables
    if args.dictionary_file:
        config.dictionary.file = args.dictionary_file
    if args.concurrent:
        config.session.concurrent_loading = True
    return CheckerSession(config, load_tables(config.tables_file))


def _print_failures(session: CheckerSession) -> None:
    for kind, status in session.status.items():
        if status.state == "error":
            print(f"{kind}: {status.message}", file=sys.stderr)


def cmd_items(args):
    """Mine the item list."""
    session = build_session(args)
    if not session.refresh_items():
        _print_failures(session)
        return 1

    print(f"Items: {len(session.items)}")
    for chunk in session.last_pipeline.chunks:
        strategy = f" via {chunk.strategy}" if chunk.strategy else ""
        print(f"  chunk {chunk.chunk_id}: {chunk.status}{strategy} ({chunk.count})")

    if args.output:
        path = Path(args.output)
        path.write_text(json.dumps(list(session.items), ensure_ascii=False, indent=2), encoding="utf-8")
        print(f"Output: {path}")
    return 0


def cmd_report(args):
    """Load both sources and print coverage."""
    session = build_session(args)
    results = session.refresh()
    stats = session.stats()

    print(f"\n{'='*50}")
    print(f"Game items:       {stats.game_count}")
    print(f"Dictionary items: {stats.dictionary_count}")
    print(f"Missing:          {stats.missing_count}")
    print(f"Coverage:         {stats.coverage:.1f}%")
    if stats.last_update:
        print(f"Updated:          {stats.last_update:%Y-%m-%d %H:%M:%S}")

    if not all(results.values()):
        _print_failures(session)
        return 1
    return 0


def cmd_list(args):
    """Print item rows."""
    session = build_session(args)
    results = session.refresh()
    if not all(results.values()):
        _print_failures(session)
        return 1

    rows = item_rows(session.items, session.translations, args.filter, args.search, args.sort)
    if args.limit:
        rows = rows[:args.limit]

    for row in rows:
        mark = "orphan" if row.orphan else ("ok" if row.translated else "missing")
        translation = row.translation or ""
        print(f"{row.number:>5}  [{mark:<7}] {row.name}  {translation}".rstrip())
    print(f"\n{len(rows)} rows")
    return 0


def cmd_template(args):
    """Print or write the translation template."""
    session = build_session(args)
    results = session.refresh()
    if not all(results.values()):
        _print_failures(session)
        return 1

    if not args.json:
        text = annotated_template(session.items, session.translations)
        if args.output:
            Path(args.output).write_text(text + "\n", encoding="utf-8")
            print(f"Output: {args.output}")
        else:
            print(text)
        return 0

    template = missing_template(session.items, session.translations)
    path = Path(args.output or default_template_filename())
    path.write_text(render_json_template(template) + "\n", encoding="utf-8")
    print(f"Missing: {len(template)}")
    print(f"Output: {path}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Bloxd item translation checker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m itemcheck.check items --output items.json
    python -m itemcheck.check report
    python -m itemcheck.check list --filter missing --limit 50
    python -m itemcheck.check template --json
        """
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--tables", help="Extraction tables YAML (default: bundled tables)")
    parser.add_argument("--dictionary-file", help="Read the dictionary from a local JSON file")
    parser.add_argument("--concurrent", action="store_true", help="Load items and dictionary concurrently")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", help="Also write logs to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Items command
    items_parser = subparsers.add_parser("items", help="Mine the item list from the game bundle")
    items_parser.add_argument("--output", help="Write the item list as JSON")
    items_parser.set_defaults(func=cmd_items)

    # Report command
    report_parser = subparsers.add_parser("report", help="Print translation coverage")
    report_parser.set_defaults(func=cmd_report)

    # List command
    list_parser = subparsers.add_parser("list", help="List items with their translations")
    list_parser.add_argument("--filter", choices=FILTERS, default="all")
    list_parser.add_argument("--search", default="", help="Substring of name or translation")
    list_parser.add_argument("--sort", choices=SORTS, default="original")
    list_parser.add_argument("--limit", type=int, help="Show at most N rows")
    list_parser.set_defaults(func=cmd_list)

    # Template command
    template_parser = subparsers.add_parser("template", help="Template of missing translations")
    template_parser.add_argument("--json", action="store_true", help="Write the JSON template")
    template_parser.add_argument("--output", help="Output file (JSON default: missing_translations_<date>.json)")
    template_parser.set_defaults(func=cmd_template)

    args = parser.parse_args(argv)

    setup_logging(LOG_LEVEL, log_file=args.log_file)
    if args.verbose:
        set_level("DEBUG")

    try:
        return args.func(args)
    except ItemCheckError as e:
        print(describe_failure(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
