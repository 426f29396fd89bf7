"""
marktguru command line.

    marktguru login
    marktguru search raw "kellys OR \\"erdnuss snips\\""
    marktguru search build --term kellys --phrase "erdnuss snips" --or manner --explain
    marktguru search syntax
    marktguru set-zip 8010
    marktguru config
"""
from __future__ import annotations
import argparse
import asyncio
import json
import logging
import re
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from . import __version__
from .commands.login import login
from .commands.search import search_build_command, search_raw_command
from .config import DEFAULT_ZIP_CODE, ConfigStore
from .query import QUERY_SYNTAX_HELP

log = logging.getLogger("marktguru.cli")

LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")

EPILOG = """\
Examples:
  $ marktguru login
  $ marktguru search raw "kellys OR \\"erdnuss snips\\""
  $ marktguru search build --term kellys --phrase "erdnuss snips" --or manner --explain
  $ marktguru search syntax
"""


def positive_int(value: str) -> int:
    """Leading-integer parse: "5abc" is 5, "abc" is rejected."""
    match = LEADING_INT_RE.match(value)
    parsed = int(match.group(1)) if match else 0
    if parsed <= 0:
        raise argparse.ArgumentTypeError("Value must be a positive integer.")
    return parsed


def _add_json_flag(parser: argparse.ArgumentParser):
    # SUPPRESS keeps a subcommand from resetting the global flag
    parser.add_argument("-j", "--json", action="store_true", default=argparse.SUPPRESS,
                        help="Output JSON")


def _add_search_options(parser: argparse.ArgumentParser):
    parser.add_argument("-z", "--zip", help="ZIP code for location-based results")
    parser.add_argument("-n", "--limit", type=positive_int,
                        help="Number of results (default: 10)")
    parser.add_argument("-r", "--retailer",
                        help="Filter by retailer (e.g., SPAR, BILLA, HOFER)")
    _add_json_flag(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marktguru",
        description="CLI for Austrian Marktguru supermarket deals",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-j", "--json", action="store_true", default=False,
                        help="Output JSON (for all commands)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command")

    login_p = commands.add_parser("login", help="Extract API key from marktguru.at via HTTP")
    _add_json_flag(login_p)

    search_p = commands.add_parser(
        "search", help="Search for product deals using the Marktguru query syntax")
    search_p.set_defaults(print_search_help=search_p.print_help)
    search_cmds = search_p.add_subparsers(dest="search_command")

    raw_p = search_cmds.add_parser("raw", help="Search using a raw query string")
    raw_p.add_argument("query")
    _add_search_options(raw_p)

    build_p = search_cmds.add_parser("build", help="Build a query from structured flags")
    build_p.add_argument("--term", action="append", default=[], help="Add a term")
    build_p.add_argument("--phrase", action="append", default=[], help="Add an exact phrase")
    build_p.add_argument("--wildcard", action="append", default=[],
                         help="Add a wildcard term (e.g., kell*)")
    build_p.add_argument("--or", dest="ors", action="append", default=[],
                         help="Add a term to the OR group")
    build_p.add_argument("--group", action="append", default=[],
                         help="Add a raw group (wrapped in parentheses)")
    build_p.add_argument("--explain", action="store_true", help="Print the built query to stderr")
    _add_search_options(build_p)

    search_cmds.add_parser("syntax", help="Show supported query syntax")

    zip_p = commands.add_parser("set-zip", help="Set default ZIP code for searches")
    zip_p.add_argument("code")
    _add_json_flag(zip_p)

    config_p = commands.add_parser("config", help="Show current configuration")
    _add_json_flag(config_p)

    return parser


def set_zip(store: ConfigStore, code: str, *, json_output: bool = False) -> int:
    store.save(zip_code=code)
    if json_output:
        print(json.dumps({"success": True, "zipCode": code}))
    else:
        print(f"✓ Default ZIP code set to: {code}")
    return 0


def show_config(store: ConfigStore, *, json_output: bool = False) -> int:
    config = store.load()
    masked = config.api_key[:10] + "..." if config.api_key else None
    if json_output:
        print(json.dumps({
            "apiKey": masked,
            "apiKeySet": bool(config.api_key),
            "zipCode": config.effective_zip_code,
            "configPath": str(config.config_path),
        }))
    else:
        print("Configuration:")
        print("  API Key:", masked or "(not set)")
        print("  ZIP Code:", config.zip_code or f"(default: {DEFAULT_ZIP_CODE})")
        print("  Config file:", config.config_path)
    return 0


def run(args: argparse.Namespace, parser: argparse.ArgumentParser, store: ConfigStore) -> int:
    json_output = bool(args.json)

    if args.command == "login":
        return asyncio.run(login(store, json_output=json_output))

    if args.command == "search":
        options = dict(zip_code=None, limit=None, retailer=None, json_output=json_output)
        if args.search_command in ("raw", "build"):
            options.update(zip_code=args.zip, limit=args.limit, retailer=args.retailer)
        if args.search_command == "raw":
            return asyncio.run(search_raw_command(args.query, store, **options))
        if args.search_command == "build":
            return asyncio.run(search_build_command(
                store,
                terms=args.term,
                phrases=args.phrase,
                wildcards=args.wildcard,
                ors=args.ors,
                groups=args.group,
                explain=args.explain,
                **options,
            ))
        if args.search_command == "syntax":
            print(QUERY_SYNTAX_HELP)
            return 0
        args.print_search_help()
        return 0

    if args.command == "set-zip":
        return set_zip(store, args.code, json_output=json_output)

    if args.command == "config":
        return show_config(store, json_output=json_output)

    parser.print_help()
    return 0


def main(argv: Optional[Sequence[str]] = None, store: Optional[ConfigStore] = None) -> int:
    load_dotenv()
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return run(args, parser, store or ConfigStore())


if __name__ == "__main__":
    sys.exit(main())
