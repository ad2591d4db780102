"""Command line: run the server or manage the deprecation cache."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from .cache import CacheService
from .config import TIMESTAMP_DISPLAY_FORMAT
from .deprecations import DeprecationService
from .flutter_api import FlutterAPIService
from .handlers import MCPHandlers
from .models import CacheServiceProtocol
from .server import build_server
from .version_info import VersionInfoService

log = logging.getLogger(__name__)

HELP_TEXT = """\
Flutter Deprecations MCP Server

Usage:
  server [options]

Options:
  --update, -u       Update the Flutter deprecations cache and exit
  --clear-cache, -cc Clear the Flutter deprecations cache and exit
  --show-cache, -sc  Display the current Flutter deprecations cache and exit
  --help, -h         Show this help information
  --vvv              Enable verbose logging

Examples:
  server             Start the MCP server
  server -u          Update deprecations cache
  server -cc         Clear deprecations cache
  server -sc         Show current cache contents
  server --vvv       Start with verbose logging
"""


def build_parser() -> argparse.ArgumentParser:
    """Return the parser for the command's flags."""
    parser = argparse.ArgumentParser(prog="server", add_help=False)
    parser.add_argument("--update", "-u", action="store_true",
                        help="Update the Flutter deprecations cache and exit")
    parser.add_argument("--clear-cache", "-cc", action="store_true",
                        help="Clear the Flutter deprecations cache and exit")
    parser.add_argument("--show-cache", "-sc", action="store_true",
                        help="Display the current Flutter deprecations cache and exit")
    parser.add_argument("--help", "-h", action="store_true",
                        help="Show help information")
    parser.add_argument("--vvv", "-vvv", dest="verbose", action="store_true",
                        help="Enable verbose logging")
    return parser


def show_cache(cache_service: CacheServiceProtocol, out: TextIO) -> int:
    """Print the cache contents; return the exit status."""
    print("📋 Flutter Deprecations Cache Contents", file=out)
    print("=" * 41, file=out)
    try:
        cache = cache_service.load()
    except OSError as error:
        print(f"❌ Error loading deprecations cache: {error}", file=out)
        print("💡 Try running with --update to create the cache first", file=out)
        return 1

    if not cache.deprecations:
        print("📭 No deprecations found in cache", file=out)
        print("💡 Try running with --update to populate the cache", file=out)
        return 0

    print("📊 Cache Info:", file=out)
    print(f"  Last Updated: {cache.last_updated.strftime(TIMESTAMP_DISPLAY_FORMAT)}", file=out)
    print(f"  Total Deprecations: {len(cache.deprecations)}", file=out)
    print(file=out)
    print("📜 Deprecations:", file=out)
    for number, dep in enumerate(cache.deprecations, start=1):
        print(f"{number}. 🔴 {dep.api}", file=out)
        if dep.description:
            print(f"   📝 Description: {dep.description}", file=out)
        if dep.replacement:
            print(f"   ✅ Replacement: {dep.replacement}", file=out)
        if dep.version:
            print(f"   📅 Since version: {dep.version}", file=out)
        if dep.example:
            print(f"   💡 Example: {dep.example}", file=out)
        print(file=out)
    print(f"✨ Total: {len(cache.deprecations)} deprecations found", file=out)
    return 0


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            stream=sys.stderr,
            format="%(asctime)s %(filename)s:%(lineno)d: %(message)s",
        )
        log.info("Verbose logging enabled")
    else:
        logging.basicConfig(level=logging.WARNING, stream=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command; return the exit status."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    out = sys.stdout

    if args.help:
        out.write(HELP_TEXT)
        return 0

    cache_service = CacheService()

    if args.clear_cache:
        print("🗑️ Clearing Flutter deprecations cache...", file=out)
        try:
            cache_service.clear()
        except OSError as error:
            print(f"❌ Error clearing deprecations cache: {error}", file=out)
            return 1
        print("✅ Successfully cleared deprecations cache", file=out)
        return 0

    if args.show_cache:
        return show_cache(cache_service, out)

    api_service = FlutterAPIService()
    deprecation_service = DeprecationService(cache_service, api_service)

    if args.update:
        print("🔄 Updating Flutter deprecations cache...", file=out)
        try:
            deprecation_service.update_cache_with_progress(
                lambda message: print(f"  {message}", file=out), args.verbose
            )
        except (OSError, RuntimeError, ValueError) as error:
            print(f"❌ Error updating deprecations cache: {error}", file=out)
            return 1
        try:
            cache = cache_service.load()
        except OSError as error:
            print(f"❌ Cache updated but failed to load for verification: {error}", file=out)
            return 1
        print(
            "✅ Successfully updated deprecations cache. "
            f"Found {len(cache.deprecations)} deprecations. "
            f"Last updated: {cache.last_updated.strftime(TIMESTAMP_DISPLAY_FORMAT)}",
            file=out,
        )
        return 0

    version_info_service = VersionInfoService(api_service)
    handlers = MCPHandlers(deprecation_service, version_info_service, cache_service)
    server = build_server(handlers)

    try:
        deprecation_service.update_cache()
    except (OSError, RuntimeError, ValueError) as error:
        print(f"Warning: Failed to update deprecations cache: {error}", file=sys.stderr)

    print("Flutter Deprecations MCP Server started. Waiting for requests...", file=sys.stderr)
    server.serve(sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())