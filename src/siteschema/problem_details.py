# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""RFC 9457-style Problem Details for tool and CLI errors.

Maps siteschema exceptions (and raw Playwright navigation errors) to a
small structured taxonomy, scrubbing secrets and filesystem paths from
messages before they leave the process.

Key public API:

- ``ProblemType``   — StrEnum error taxonomy.
- ``ProblemDetail`` — frozen dataclass (→ JSON dict / MCP text / CLI text).
- ``sanitize_detail()`` — scrub secrets & paths from error messages.
- ``classify_network_error()`` — ``net::ERR_*`` → ProblemType.
- ``from_exception()`` / ``from_validation()`` — factories.

Type URI namespace: ``https://siteschema.dev/errors/{slug}``
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .errors import BrowserError, InvalidInputError, SiteSchemaError

_ERROR_BASE = "https://siteschema.dev/errors"

MAX_DETAIL_LENGTH = 200


class ProblemType(StrEnum):
    INVALID_INPUT = "invalid-input"
    BROWSER_UNAVAILABLE = "browser-unavailable"
    PAGE_TIMEOUT = "page-timeout"
    DNS_RESOLUTION_FAILED = "dns-resolution-failed"
    NAVIGATION_FAILED = "navigation-failed"
    INTERNAL_ERROR = "internal-error"

    @property
    def uri(self) -> str:
        """Full type URI for the ``type`` field."""
        return f"{_ERROR_BASE}/{self.value}"


# (status, title)
_TYPE_METADATA: dict[ProblemType, tuple[int, str]] = {
    ProblemType.INVALID_INPUT: (422, "Invalid Input"),
    ProblemType.BROWSER_UNAVAILABLE: (503, "Browser Unavailable"),
    ProblemType.PAGE_TIMEOUT: (504, "Page Timed Out"),
    ProblemType.DNS_RESOLUTION_FAILED: (502, "DNS Resolution Failed"),
    ProblemType.NAVIGATION_FAILED: (502, "Navigation Failed"),
    ProblemType.INTERNAL_ERROR: (500, "Internal Error"),
}

# Per-tool recovery hints appended to MCP error text
_RECOVERY_HINTS: dict[str, str] = {
    "analyze_website": "Check the URL and try again.",
    "get_schema_recommendations": "Check the URL and try again.",
    "generate_schema_markup": "Check the URL and the schema selection, then retry.",
    "get_all_schema_types": "Use one of the listed categories or 'all'.",
}

_CLI_HINTS: dict[str, str] = {
    ProblemType.INVALID_INPUT.uri: "Check the URL and arguments, then try again with a valid https:// URL.",
    ProblemType.BROWSER_UNAVAILABLE.uri: "Ensure Chromium is installed: playwright install chromium",
    ProblemType.PAGE_TIMEOUT.uri: "The page took too long to load. Try again or check your connection.",
    ProblemType.DNS_RESOLUTION_FAILED.uri: "Check the URL spelling and ensure the domain exists.",
    ProblemType.NAVIGATION_FAILED.uri: "Try a different URL or check that the site is accessible.",
}

# ── Secret sanitization ──────────────────────────────────────────────

_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"sk-[a-zA-Z0-9_-]{8,}"), "<redacted>"),
    (re.compile(r"Bearer\s+\S+"), "Bearer <redacted>"),
    (
        re.compile(
            r"(?:API_KEY|SECRET|TOKEN|PASSWORD|CREDENTIAL)\s*[=:]\s*\S+",
            re.IGNORECASE,
        ),
        "<redacted>",
    ),
    (re.compile(r"Basic\s+[A-Za-z0-9+/=]{8,}"), "Basic <redacted>"),
    (re.compile(r"://[^@\s/]+@"), "://<redacted>@"),
    (re.compile(r"AKIA[0-9A-Z]{16}"), "<redacted>"),
]

_PATH_PATTERN = re.compile(
    r"(/(?:Users|home|tmp|var|etc|opt|root|srv|usr|Library|private|mnt)/[\w./-]+"
    r"|[A-Z]:\\[\w.\\-]+)"
)


def sanitize_detail(text: str) -> str:
    """Scrub secrets and filesystem paths from *text*, then truncate."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    text = _PATH_PATTERN.sub("<path>", text)
    if len(text) > MAX_DETAIL_LENGTH:
        text = text[:MAX_DETAIL_LENGTH] + "..."
    return text


# ── Chromium net::ERR_* classification ───────────────────────────────

_NET_ERR_RE = re.compile(r"net::ERR_(\w+)")
_HOSTNAME_RE = re.compile(r"https?://([^/:\s]+)")

_DNS_CODES = {"NAME_NOT_RESOLVED"}
_TIMEOUT_CODES = {"CONNECTION_TIMED_OUT", "TIMED_OUT"}


def classify_network_error(exc_message: str) -> tuple[ProblemType, str] | None:
    """Classify a Playwright navigation error message.

    Returns ``None`` if *exc_message* carries no ``net::ERR_*`` code.
    """
    m = _NET_ERR_RE.search(exc_message)
    if m is None:
        return None
    code = m.group(1)
    hm = _HOSTNAME_RE.search(exc_message)
    hostname = hm.group(1) if hm else ""

    if code in _DNS_CODES:
        host_part = f" '{hostname}'" if hostname else ""
        return ProblemType.DNS_RESOLUTION_FAILED, f"Could not resolve domain name{host_part}"
    if code in _TIMEOUT_CODES:
        host_part = f" to '{hostname}'" if hostname else ""
        return ProblemType.PAGE_TIMEOUT, f"Connection timed out{host_part}"
    if "CERT" in code or "SSL" in code:
        host_part = f" for '{hostname}'" if hostname else ""
        return ProblemType.NAVIGATION_FAILED, f"SSL/TLS error{host_part}"
    return ProblemType.NAVIGATION_FAILED, f"Navigation failed (net::ERR_{code})"


# ── ProblemDetail ────────────────────────────────────────────────────

_STANDARD_FIELDS = frozenset({"type", "title", "status", "detail", "instance"})


@dataclass(frozen=True, slots=True)
class ProblemDetail:
    """Immutable structured error, serialisable to dict / MCP text / CLI text."""

    type: str = "about:blank"
    title: str = ""
    status: int = 500
    detail: str = ""
    instance: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)
    _tool_context: str = field(default="", repr=False)

    def to_dict(self) -> dict[str, Any]:
        """JSON dict. Empty optional fields omitted, extensions merged at top level."""
        d: dict[str, Any] = {"type": self.type, "status": self.status}
        if self.title:
            d["title"] = self.title
        if self.detail:
            d["detail"] = self.detail
        if self.instance:
            d["instance"] = self.instance
        for k, v in self.extensions.items():
            if k not in _STANDARD_FIELDS:
                d[k] = v
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_mcp_text(self) -> str:
        """Format: ``"Error (<tool>): <detail>. <hint>"``"""
        context = self._tool_context
        hint = _RECOVERY_HINTS.get(context, "")
        if hint:
            return f"Error ({context}): {self.detail.rstrip('.')}. {hint}"
        return f"Error ({context}): {self.detail}"

    def to_cli_text(self) -> str:
        """Format::

        Error: <detail>
        Hint: <hint>
        """
        hint = _CLI_HINTS.get(self.type, "")
        lines = [f"Error: {self.detail}"]
        if hint:
            lines.append(f"Hint: {hint}")
        return "\n".join(lines)


def _build(problem_type: ProblemType, detail: str, *, tool_context: str, instance: str) -> ProblemDetail:
    status, title = _TYPE_METADATA[problem_type]
    return ProblemDetail(
        type=problem_type.uri,
        title=title,
        status=status,
        detail=sanitize_detail(detail),
        instance=instance,
        _tool_context=tool_context,
    )


def from_exception(exc: Exception, *, tool_context: str = "", instance: str = "") -> ProblemDetail:
    """Build a ProblemDetail from an exception.

    Known siteschema errors map to their own type; a raw ``net::ERR_*``
    message is classified even when wrapped in BrowserError. Anything
    else becomes ``internal-error`` with a sanitized message.
    """
    if isinstance(exc, InvalidInputError):
        return _build(ProblemType.INVALID_INPUT, str(exc), tool_context=tool_context, instance=instance)

    if isinstance(exc, TimeoutError):
        return _build(ProblemType.PAGE_TIMEOUT, str(exc) or "Page timed out", tool_context=tool_context, instance=instance)

    net_result = classify_network_error(str(exc))
    if net_result is not None:
        problem_type, human_msg = net_result
        return _build(problem_type, human_msg, tool_context=tool_context, instance=instance)

    if isinstance(exc, BrowserError):
        return _build(ProblemType.BROWSER_UNAVAILABLE, str(exc), tool_context=tool_context, instance=instance)

    if isinstance(exc, SiteSchemaError):
        return _build(ProblemType.INTERNAL_ERROR, str(exc), tool_context=tool_context, instance=instance)

    # Unknown exception: keep the class name only, never internal state
    return _build(
        ProblemType.INTERNAL_ERROR,
        f"Unexpected error ({type(exc).__name__})",
        tool_context=tool_context,
        instance=instance,
    )


def from_validation(detail: str, *, field_name: str = "", tool_context: str = "") -> ProblemDetail:
    """Build an invalid-input ProblemDetail for argument validation failures."""
    status, title = _TYPE_METADATA[ProblemType.INVALID_INPUT]
    return ProblemDetail(
        type=ProblemType.INVALID_INPUT.uri,
        title=title,
        status=status,
        detail=sanitize_detail(detail),
        extensions={"field": field_name} if field_name else {},
        _tool_context=tool_context,
    )
