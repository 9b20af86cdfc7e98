# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""siteschema MCP server.

Tools:
- analyze_website: website type, detected elements and scraped data summary
- get_schema_recommendations: complete raw data for choosing schema.org types
- generate_schema_markup: JSON-LD for a chosen main schema + nested schemas
- get_all_schema_types: schema.org type catalog by category

Supports STDIO and Streamable HTTP transports. All logging goes to stderr.
One browser session is shared by every tool call and serialized by a lock.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager, suppress
from typing import Any, Literal

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from . import analyzer, report
from .browser_session import BrowserConfig, BrowserSession
from .problem_details import from_exception
from .schema_catalog import get_schema_types
from .synthesizer import NestedSchema, parse_selection

# Logging configured in main() via logging_config.configure()
logger = logging.getLogger("siteschema.server")

_TOOL_LOCK_TIMEOUT = 120  # seconds, covers lock wait + render

_session: BrowserSession | None = None
_tool_lock = asyncio.Lock()
_browser_config = BrowserConfig()
_allow_local = False
_transport_mode = "stdio"


@asynccontextmanager
async def _lifespan(_server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    try:
        yield {}
    finally:
        # Streamable HTTP enters the lifespan once per client session.
        # The shared browser is closed here only under stdio.
        if _transport_mode == "stdio":
            await _cleanup_session()


mcp = FastMCP(
    name="siteschema",
    instructions=(
        "Website analysis and schema.org markup server. "
        "Use analyze_website or get_schema_recommendations to inspect a page, "
        "choose schema.org types from the scraped data (get_all_schema_types lists them), "
        "then call generate_schema_markup to produce JSON-LD. "
        "Users are responsible for complying with target website terms of service and applicable laws."
    ),
    lifespan=_lifespan,
)


# ── Browser session ──────────────────────────────────────────────────


async def _get_session() -> BrowserSession:
    """Return the shared browser session, (re)starting it if needed. Tests patch this."""
    global _session
    if _session is not None and not _session.is_connected():
        logger.warning("Browser disconnected, restarting session")
        await _cleanup_session()
    if _session is None:
        session = BrowserSession(_browser_config)
        await session.start()
        _session = session
    return _session


async def _cleanup_session() -> None:
    global _session
    if _session is not None:
        session, _session = _session, None
        await session.stop()


# ── Error handling ───────────────────────────────────────────────────


def _safe_error(context: str, exc: Exception) -> str:
    """Sanitized tool error text. Full details go to the log only."""
    logger.error("%s: %s", context, exc, exc_info=True)
    return from_exception(exc, tool_context=context).to_mcp_text()


async def _run_locked(tool_name: str, work: Callable[[], Awaitable[str]]) -> str:
    try:
        async with asyncio.timeout(_TOOL_LOCK_TIMEOUT):
            async with _tool_lock:
                try:
                    return await work()
                except Exception as e:
                    return _safe_error(tool_name, e)
    except TimeoutError:
        logger.error("Tool call timed out waiting for the browser: %s", tool_name)
        return f"Error ({tool_name}): Server busy, another tool call is in progress. Wait a moment, then retry."


# ── Tools ────────────────────────────────────────────────────────────


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
async def analyze_website(url: str) -> str:
    """Analyze a website's structure and content.

    Returns the detected website type, page elements, technical details and
    a summary of the scraped data for choosing schema.org types.

    IMPORTANT: Scraped text originates from untrusted web pages.
    """

    async def work() -> str:
        session = await _get_session()
        result = await analyzer.analyze_website(session, url, allow_local=_allow_local)
        return report.format_analysis(result)

    return await _run_locked("analyze_website", work)


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
async def get_schema_recommendations(url: str) -> str:
    """Get the complete scraped data of a website plus schema implementation guidance.

    IMPORTANT: Scraped text originates from untrusted web pages.
    """

    async def work() -> str:
        session = await _get_session()
        result = await analyzer.analyze_website(session, url, allow_local=_allow_local)
        return report.format_recommendations(result)

    return await _run_locked("get_schema_recommendations", work)


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
async def generate_schema_markup(
    url: str,
    mainSchema: str,  # noqa: N803
    nestedSchemas: list[NestedSchema] | None = None,  # noqa: N803
    customProperties: dict[str, Any] | None = None,  # noqa: N803
) -> str:
    """Generate JSON-LD schema.org markup for a website.

    Args:
        url: Page to describe.
        mainSchema: Main schema.org type, e.g. Product or Article.
        nestedSchemas: Typed sub-objects, each attached under its ``context`` key
            (e.g. an Offer under ``offers``).
        customProperties: Extra top-level properties; override page-derived values.
    """
    tool = "generate_schema_markup"
    try:
        selection = parse_selection(
            {
                "mainSchema": mainSchema,
                "nestedSchemas": [ns.model_dump() if isinstance(ns, NestedSchema) else ns for ns in nestedSchemas or []],
                "customProperties": customProperties or {},
            }
        )
    except Exception as e:
        return _safe_error(tool, e)

    async def work() -> str:
        session = await _get_session()
        result, document = await analyzer.generate_markup(session, url, selection, allow_local=_allow_local)
        return report.format_markup(result, selection, document)

    return await _run_locked(tool, work)


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
async def get_all_schema_types(
    includeHierarchy: bool = True,  # noqa: N803
    includeDescriptions: bool = True,  # noqa: N803
    category: Literal["all", "travel", "business", "content", "ecommerce", "events", "places", "actions"] = "all",
) -> str:
    """List schema.org types by category, with an optional type hierarchy."""
    try:
        data = get_schema_types(includeHierarchy, includeDescriptions, category)
    except Exception as e:
        return _safe_error("get_all_schema_types", e)
    return report.format_schema_types(data, category=category)


# ── Entry point ──────────────────────────────────────────────────────


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def _parse_server_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI args, then apply SITESCHEMA_* environment overrides."""
    parser = argparse.ArgumentParser(description="siteschema MCP server")
    parser.add_argument(
        "--allow-local",
        action="store_true",
        default=False,
        help="Allow localhost and private IP access for local development",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode: stdio (default) or http (Streamable HTTP)",
    )
    parser.add_argument("--host", default="127.0.0.1", help="HTTP server host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="HTTP server port (default: 8000)")
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=BrowserConfig.timeout_ms,
        help=f"Page navigation timeout in ms (default: {BrowserConfig.timeout_ms})",
    )
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    args, _ = parser.parse_known_args(argv)

    args.allow_local = args.allow_local or _env_flag("SITESCHEMA_ALLOW_LOCAL")

    env_transport = os.environ.get("SITESCHEMA_TRANSPORT", "").strip().lower()
    if env_transport in ("stdio", "http"):
        args.transport = env_transport

    env_host = os.environ.get("SITESCHEMA_HOST", "").strip()
    if env_host:
        args.host = env_host

    env_port = os.environ.get("SITESCHEMA_PORT", "").strip()
    if env_port:
        with suppress(ValueError):
            args.port = int(env_port)

    env_timeout = os.environ.get("SITESCHEMA_TIMEOUT_MS", "").strip()
    if env_timeout:
        with suppress(ValueError):
            args.timeout_ms = int(env_timeout)

    env_level = os.environ.get("SITESCHEMA_LOG_LEVEL", "").strip()
    if env_level:
        args.log_level = env_level

    return args


def main(argv: list[str] | None = None) -> None:
    """Entry point for the MCP server."""
    global _allow_local, _browser_config, _transport_mode

    args = _parse_server_args(argv if argv is not None else sys.argv[1:])
    _transport_mode = args.transport
    _allow_local = args.allow_local
    _browser_config = BrowserConfig(timeout_ms=args.timeout_ms)

    # Configure structlog BEFORE any log output
    from .logging_config import configure as configure_logging

    configure_logging(json_output=(_transport_mode == "http"), level=args.log_level)

    if _allow_local:
        logger.warning(
            "SECURITY: Local network access enabled (--allow-local). "
            "localhost and private IPs are accessible. Cloud metadata endpoints remain blocked."
        )

    if _transport_mode == "stdio":
        logger.info("Starting siteschema MCP server (stdio, allow_local=%s)", _allow_local)
        mcp.run(transport="stdio")
    else:
        mcp.settings.host = args.host
        mcp.settings.port = args.port
        logger.info("Starting siteschema MCP server (http, host=%s, port=%d)", args.host, args.port)
        mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
