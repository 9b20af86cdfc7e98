# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright-backed page renderer.

One Chromium process and one BrowserContext per session; every
``render()`` call opens a fresh page and always closes it. Playwright
failures surface as BrowserError (PageTimeoutError for navigation
timeouts) so callers never see Playwright exception types.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import BrowserError, PageTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class BrowserConfig:
    """Browser launch and navigation settings."""

    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str = DEFAULT_USER_AGENT
    locale: str = "en-US"
    timeout_ms: int = 30000
    wait_until: str = "networkidle"  # "networkidle" | "load" | "domcontentloaded"


def chromium_launch_args(config: BrowserConfig) -> list[str]:
    """Hardened Chromium flags for unattended rendering."""
    return [
        "--disable-blink-features=AutomationControlled",
        f"--lang={config.locale}",
        "--disable-extensions",
        "--disable-dev-shm-usage",
        "--disable-background-networking",
        "--disable-sync",
        "--disable-gpu",
        "--no-first-run",
        "--deny-permission-prompts",
        "--disable-breakpad",
        "--no-pings",
        "--noerrdialogs",
    ]


# ── Chromium auto-install ─────────────────────────────────────────

_chromium_install_attempted = False
_AUTO_INSTALL_TIMEOUT = 300  # seconds


async def _auto_install_chromium() -> bool:
    """Run ``playwright install chromium`` once per process.

    Output is captured so it cannot corrupt the MCP stdio stream.
    """
    global _chromium_install_attempted  # noqa: PLW0603
    if _chromium_install_attempted:
        return False
    _chromium_install_attempted = True

    logger.info("Chromium not found, running 'playwright install chromium'")
    try:
        proc = await asyncio.create_subprocess_exec(
            sys.executable,
            "-m",
            "playwright",
            "install",
            "chromium",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=_AUTO_INSTALL_TIMEOUT)
    except TimeoutError:
        logger.warning("Chromium install timed out after %ds", _AUTO_INSTALL_TIMEOUT)
        return False
    except OSError:
        logger.warning("Chromium auto-install failed", exc_info=True)
        return False
    if proc.returncode == 0:
        logger.info("Chromium installed successfully")
        return True
    logger.warning(
        "playwright install chromium failed (rc=%d): %s",
        proc.returncode,
        stderr.decode(errors="replace")[:500],
    )
    return False


class BrowserSession:
    """Chromium session implementing the ``PageRenderer`` protocol."""

    def __init__(self, config: BrowserConfig | None = None):
        self.config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    @property
    def is_started(self) -> bool:
        return self._context is not None

    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def _launch_browser(self) -> Browser:
        args = chromium_launch_args(self.config)
        try:
            return await self._playwright.chromium.launch(headless=self.config.headless, args=args)
        except PlaywrightError as exc:
            if "executable doesn't exist" not in str(exc).lower():
                raise BrowserError(f"Browser launch failed: {exc}") from exc
            if not await _auto_install_chromium():
                raise BrowserError(
                    "Chromium is not installed and auto-install failed. Please run: playwright install chromium"
                ) from exc
            try:
                return await self._playwright.chromium.launch(headless=self.config.headless, args=args)
            except PlaywrightError as retry_exc:
                raise BrowserError(f"Browser launch failed: {retry_exc}") from retry_exc

    async def start(self) -> None:
        """Launch Chromium and create the shared context."""
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._launch_browser()
            self._context = await self._browser.new_context(
                viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
                user_agent=self.config.user_agent,
                locale=self.config.locale,
                service_workers="block",
                permissions=[],
                accept_downloads=False,
            )
        except BaseException:
            await self.stop()
            raise
        logger.info("Browser session started (headless=%s)", self.config.headless)

    async def stop(self) -> None:
        """Close everything. Safe to call twice or on a crashed browser."""
        if self._context:
            with suppress(PlaywrightError):
                await self._context.close()
            self._context = None
        if self._browser:
            with suppress(PlaywrightError):
                await self._browser.close()
            self._browser = None
        if self._playwright:
            with suppress(PlaywrightError):
                await self._playwright.stop()
            self._playwright = None
        logger.info("Browser session stopped")

    async def __aenter__(self) -> BrowserSession:
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    async def render(self, url: str) -> str:
        """Navigate a fresh page to *url* and return its rendered HTML."""
        if self._context is None:
            raise BrowserError("Browser session not started. Use async with or call start().")
        try:
            page = await self._context.new_page()
        except PlaywrightError as exc:
            raise BrowserError(f"Could not open page: {exc}") from exc
        try:
            await page.goto(url, wait_until=self.config.wait_until, timeout=self.config.timeout_ms)
            html = await page.content()
        except PlaywrightTimeoutError as exc:
            raise PageTimeoutError(f"Timed out after {self.config.timeout_ms} ms loading {url}") from exc
        except PlaywrightError as exc:
            raise BrowserError(f"Navigation to {url} failed: {exc.message}") from exc
        finally:
            with suppress(PlaywrightError):
                await page.close()
        logger.debug("Rendered %s (%d chars)", url, len(html))
        return html


@asynccontextmanager
async def create_session(config: BrowserConfig | None = None) -> AsyncGenerator[BrowserSession, None]:
    """Start a session for the duration of the ``async with`` block."""
    session = BrowserSession(config)
    await session.start()
    try:
        yield session
    finally:
        await session.stop()
