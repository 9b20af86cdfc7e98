# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page renderer interface: ``render(url) -> html``.

The analyzer depends only on this protocol, so the pipeline can run
against a live browser (``browser_session.BrowserSession``) or fixture
HTML (``StaticRenderer``) without change.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from .errors import BrowserError


@runtime_checkable
class PageRenderer(Protocol):
    async def render(self, url: str) -> str:
        """Return the fully rendered HTML of *url*."""
        ...


class StaticRenderer:
    """Serve pre-rendered HTML keyed by URL.

    Used by the CLI ``--html-file`` option and by tests. An unknown URL
    falls back to *default*; with no default it raises BrowserError, the
    same failure a live renderer reports for an unreachable page.
    """

    def __init__(self, pages: Mapping[str, str] | None = None, default: str | None = None) -> None:
        self._pages = dict(pages or {})
        self._default = default
        self.requested: list[str] = []

    async def render(self, url: str) -> str:
        self.requested.append(url)
        html = self._pages.get(url, self._default)
        if html is None:
            raise BrowserError(f"No HTML available for {url}")
        return html
