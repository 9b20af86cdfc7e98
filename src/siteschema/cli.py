# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""siteschema CLI: analyze, generate, types, serve commands.

Usage:
    python -m siteschema.cli analyze --url URL [--html-file PATH] [--format json|markdown|full]
    python -m siteschema.cli generate --url URL (--main-type TYPE | --selection FILE) [--html-file PATH] [--script-tag]
    python -m siteschema.cli types [--category C] [--no-hierarchy] [--no-descriptions] [--format table|json] [--refresh]
    python -m siteschema.cli serve [--transport http] [--port 8000] [--allow-local]
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import importlib
import json
import sys
from pathlib import Path
from typing import Any


def _require_cli_deps(*modules: str) -> None:
    """Exit with an install hint when a CLI optional dependency is missing."""
    for name in modules:
        try:
            importlib.import_module(name)
        except ImportError:
            print(
                f"Missing CLI dependency: {name}\nInstall with: pip install siteschema[cli]",
                file=sys.stderr,
            )
            sys.exit(1)


@contextlib.contextmanager
def _spinner(msg: str):
    """rich status spinner on an interactive stderr; silent when piped."""
    if not sys.stderr.isatty():
        yield
        return
    try:
        from rich.console import Console
    except ImportError:
        print(msg, file=sys.stderr)
        yield
        return
    with Console(stderr=True).status(msg):
        yield


def _load_html(path_str: str) -> str:
    path = Path(path_str)
    if not path.is_file():
        from .errors import InvalidInputError

        raise InvalidInputError(f"HTML file not found: {path.name}", value=path_str)
    return path.read_text(encoding="utf-8", errors="replace")


def _load_selection(path_str: str) -> dict[str, Any]:
    """Read a schema selection from a YAML or JSON file."""
    import yaml

    from .errors import InvalidInputError

    path = Path(path_str)
    if not path.is_file():
        raise InvalidInputError(f"Selection file not found: {path.name}", value=path_str)
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidInputError(f"Selection file {path.name} is not valid {path.suffix.lstrip('.') or 'YAML'}") from e
    if not isinstance(data, dict):
        raise InvalidInputError(f"Selection file {path.name} must contain a mapping")
    return data


def _renderer(args: argparse.Namespace):
    """Fixture renderer for --html-file, otherwise None (use a live browser)."""
    if getattr(args, "html_file", None):
        from .renderer import StaticRenderer

        return StaticRenderer(default=_load_html(args.html_file))
    return None


async def _with_renderer(args: argparse.Namespace, work):
    from .browser_session import BrowserConfig, create_session

    renderer = _renderer(args)
    with _spinner(f"Analyzing {args.url}..."):
        if renderer is not None:
            return await work(renderer)
        async with create_session(BrowserConfig(timeout_ms=args.timeout_ms)) as session:
            return await work(session)


def cmd_analyze(args: argparse.Namespace) -> None:
    """Analyze a page and print the result."""
    from . import report
    from .analyzer import analyze_website

    result = asyncio.run(
        _with_renderer(args, lambda r: analyze_website(r, args.url, allow_local=args.allow_local))
    )
    if args.format == "json":
        print(report.to_json(result, include_html=args.include_html))
    elif args.format == "full":
        print(report.format_recommendations(result))
    else:
        print(report.format_analysis(result))


def cmd_generate(args: argparse.Namespace) -> None:
    """Generate JSON-LD for a page under a schema selection."""
    if args.selection:
        _require_cli_deps("yaml")
    from . import report
    from .analyzer import generate_markup
    from .synthesizer import parse_selection, to_script_tag

    data = _load_selection(args.selection) if args.selection else {}
    if args.main_type:
        data["mainSchema"] = args.main_type
    if "mainSchema" not in data and "main_type" not in data:
        print(
            "Error: a main schema type is required.\n\n"
            "Examples:\n"
            "  python -m siteschema.cli generate --url https://example.com --main-type Product\n"
            "  python -m siteschema.cli generate --url https://example.com --selection selection.yaml\n",
            file=sys.stderr,
        )
        sys.exit(1)
    selection = parse_selection(data)

    result, document = asyncio.run(
        _with_renderer(args, lambda r: generate_markup(r, args.url, selection, allow_local=args.allow_local))
    )
    if args.script_tag:
        print(to_script_tag(document))
    elif args.markdown:
        print(report.format_markup(result, selection, document))
    else:
        print(json.dumps(document, indent=2, ensure_ascii=False))


def cmd_types(args: argparse.Namespace) -> None:
    """Print the schema.org type catalog."""
    _require_cli_deps("tabulate")
    from tabulate import tabulate

    from .report import schema_type_rows
    from .schema_catalog import fetch_type_count, get_schema_types

    total = None
    if args.refresh:
        with _spinner("Fetching schema.org type count..."):
            total = fetch_type_count()

    data = get_schema_types(
        include_hierarchy=not args.no_hierarchy,
        include_descriptions=not args.no_descriptions,
        category=args.category,
        total_types=total,
    )
    if args.format == "json":
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return

    meta = data["metadata"]
    print(tabulate(schema_type_rows(data), headers=["Category", "Type", "Description"], tablefmt="simple"))
    print(f"\n{meta['total_types']} schema.org types in total (as of {meta['extracted_date']}), source: {meta['source']}")


def cmd_serve(args: argparse.Namespace) -> None:
    """Start MCP server, forwarding any extra args to the server."""
    from .server import main

    main(argv=getattr(args, "_server_argv", []))


def _add_page_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--url", type=str, required=True, metavar="URL", help="Page URL to analyze")
    p.add_argument(
        "--html-file",
        type=str,
        metavar="PATH",
        help="Analyze this saved HTML as if served from --url (no browser)",
    )
    p.add_argument("--allow-local", action="store_true", help="Allow localhost and private IP URLs")
    p.add_argument("--timeout-ms", type=int, default=30000, metavar="MS", help="Navigation timeout (default: 30000)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="siteschema CLI",
        prog="python -m siteschema.cli",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_analyze = subparsers.add_parser(
        "analyze",
        help="Analyze a page: website type, detected elements, scraped data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s --url https://example.com                          Summary (Markdown)
  %(prog)s --url https://example.com --format full            Complete raw data
  %(prog)s --url https://example.com --format json            JSON to stdout
  %(prog)s --url https://shop.test/ --html-file page.html     Saved HTML, no browser
""",
    )
    _add_page_args(p_analyze)
    p_analyze.add_argument(
        "--format",
        type=str,
        choices=["markdown", "full", "json"],
        default="markdown",
        help="Output format (default: markdown)",
    )
    p_analyze.add_argument("--include-html", action="store_true", help="Include raw HTML in JSON output")

    p_generate = subparsers.add_parser(
        "generate",
        help="Generate JSON-LD markup for a page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s --url https://example.com --main-type Organization
  %(prog)s --url https://shop.test/p/1 --selection product.yaml --script-tag

selection file (YAML or JSON):
  mainSchema: Product
  nestedSchemas:
    - type: Offer
      context: offers
      properties: {price: "19.99", priceCurrency: USD}
  customProperties:
    brand: Acme
""",
    )
    _add_page_args(p_generate)
    p_generate.add_argument("--main-type", type=str, metavar="TYPE", help="Main schema.org type (overrides the file)")
    p_generate.add_argument("--selection", type=str, metavar="FILE", help="Schema selection file (.yaml or .json)")
    output = p_generate.add_mutually_exclusive_group()
    output.add_argument("--script-tag", action="store_true", help="Print an embeddable <script> element")
    output.add_argument("--markdown", action="store_true", help="Print the full Markdown report")

    p_types = subparsers.add_parser("types", help="List schema.org types by category")
    p_types.add_argument(
        "--category",
        type=str,
        default="all",
        choices=["all", "travel", "business", "content", "ecommerce", "events", "places", "actions"],
        help="Restrict to one category (default: all)",
    )
    p_types.add_argument("--no-hierarchy", action="store_true", help="Omit the type hierarchy (JSON only)")
    p_types.add_argument("--no-descriptions", action="store_true", help="Omit type descriptions")
    p_types.add_argument(
        "--format", type=str, choices=["table", "json"], default="table", help="Output format (default: table)"
    )
    p_types.add_argument("--refresh", action="store_true", help="Fetch the live type count from schema.org")

    subparsers.add_parser(
        "serve",
        help="Start MCP server (extra args forwarded to server)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s                                Start with stdio transport (default)
  %(prog)s --transport http --port 8000   Start HTTP server on port 8000
  %(prog)s --allow-local                  Allow localhost/private IP access""",
    )
    return parser


_COMMANDS = {
    "analyze": cmd_analyze,
    "generate": cmd_generate,
    "types": cmd_types,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args, remaining = parser.parse_known_args(argv)

    # Forward remaining args to server when using 'serve' command
    if args.command == "serve":
        args._server_argv = remaining
    elif remaining:
        parser.error(f"unrecognized arguments: {' '.join(remaining)}")

    if args.command != "serve":
        from .logging_config import configure

        configure(level="DEBUG" if args.verbose else "WARNING")

    try:
        _COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except Exception as e:
        from .problem_details import from_exception

        problem = from_exception(e, tool_context="cli")
        print(problem.to_cli_text(), file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
