# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for browser session configuration and rendering.

Playwright objects are mocked throughout; no browser is launched.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import siteschema.browser_session as bs
from siteschema.browser_session import DEFAULT_USER_AGENT, BrowserConfig, BrowserSession, chromium_launch_args
from siteschema.errors import BrowserError, PageTimeoutError
from siteschema.renderer import PageRenderer

# ── BrowserConfig ──────────────────────────────────────────────────


class TestBrowserConfig:
    def test_defaults(self):
        cfg = BrowserConfig()
        assert cfg.headless is True
        assert (cfg.viewport_width, cfg.viewport_height) == (1920, 1080)
        assert cfg.locale == "en-US"
        assert cfg.timeout_ms == 30000
        assert cfg.wait_until == "networkidle"
        assert cfg.user_agent == DEFAULT_USER_AGENT

    def test_frozen(self):
        with pytest.raises(AttributeError):
            BrowserConfig().timeout_ms = 1  # type: ignore[misc]

    def test_user_agent_looks_like_chrome(self):
        assert "Chrome" in DEFAULT_USER_AGENT
        assert "Mozilla" in DEFAULT_USER_AGENT

    def test_launch_args_follow_locale(self):
        args = chromium_launch_args(BrowserConfig(locale="de-DE"))
        assert "--lang=de-DE" in args
        assert "--disable-extensions" in args


# ── Rendering ──────────────────────────────────────────────────────


def _session_with_page(page: MagicMock, config: BrowserConfig | None = None) -> BrowserSession:
    session = BrowserSession(config)
    session._context = MagicMock()
    session._context.new_page = AsyncMock(return_value=page)
    return session


def _page(html: str = "<html><body>ok</body></html>") -> MagicMock:
    page = MagicMock()
    page.goto = AsyncMock()
    page.content = AsyncMock(return_value=html)
    page.close = AsyncMock()
    return page


class TestRender:
    def test_is_a_page_renderer(self):
        assert isinstance(BrowserSession(), PageRenderer)

    async def test_not_started(self):
        with pytest.raises(BrowserError, match="not started"):
            await BrowserSession().render("https://example.com/")

    async def test_returns_content_and_closes_page(self):
        page = _page("<p>hi</p>")
        session = _session_with_page(page, BrowserConfig(timeout_ms=1234, wait_until="load"))
        assert await session.render("https://example.com/") == "<p>hi</p>"
        page.goto.assert_awaited_once_with("https://example.com/", wait_until="load", timeout=1234)
        page.close.assert_awaited_once()

    async def test_timeout_maps_to_page_timeout(self):
        page = _page()
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded.")
        session = _session_with_page(page)
        with pytest.raises(PageTimeoutError, match="Timed out after 30000 ms"):
            await session.render("https://slow.test/")
        page.close.assert_awaited_once()

    async def test_navigation_error_keeps_net_code(self):
        page = _page()
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://nope.test/")
        session = _session_with_page(page)
        with pytest.raises(BrowserError, match="net::ERR_NAME_NOT_RESOLVED"):
            await session.render("https://nope.test/")
        page.close.assert_awaited_once()

    async def test_close_failure_is_ignored(self):
        page = _page("<p>x</p>")
        page.close.side_effect = PlaywrightError("Target closed")
        assert await _session_with_page(page).render("https://example.com/") == "<p>x</p>"

    async def test_new_page_failure(self):
        session = BrowserSession()
        session._context = MagicMock()
        session._context.new_page = AsyncMock(side_effect=PlaywrightError("Browser has been closed"))
        with pytest.raises(BrowserError, match="Could not open page"):
            await session.render("https://example.com/")


# ── Lifecycle ──────────────────────────────────────────────────────


class TestLifecycle:
    def test_not_started_state(self):
        session = BrowserSession()
        assert not session.is_started
        assert not session.is_connected()

    async def test_stop_is_idempotent(self):
        session = BrowserSession()
        await session.stop()
        await session.stop()
        assert not session.is_started

    async def test_launch_failure_wrapped(self):
        session = BrowserSession()
        session._playwright = MagicMock()
        session._playwright.chromium.launch = AsyncMock(side_effect=PlaywrightError("sandbox failure"))
        with pytest.raises(BrowserError, match="Browser launch failed"):
            await session._launch_browser()

    async def test_missing_chromium_install_failed(self, monkeypatch):
        monkeypatch.setattr(bs, "_auto_install_chromium", AsyncMock(return_value=False))
        session = BrowserSession()
        session._playwright = MagicMock()
        session._playwright.chromium.launch = AsyncMock(
            side_effect=PlaywrightError("Executable doesn't exist at /ms-playwright/chromium")
        )
        with pytest.raises(BrowserError, match="auto-install failed"):
            await session._launch_browser()

    async def test_missing_chromium_installed_then_retried(self, monkeypatch):
        monkeypatch.setattr(bs, "_auto_install_chromium", AsyncMock(return_value=True))
        browser = MagicMock()
        session = BrowserSession()
        session._playwright = MagicMock()
        session._playwright.chromium.launch = AsyncMock(
            side_effect=[PlaywrightError("Executable doesn't exist at /ms-playwright/chromium"), browser]
        )
        assert await session._launch_browser() is browser
        assert session._playwright.chromium.launch.await_count == 2

    async def test_start_failure_cleans_up(self, monkeypatch):
        pw = MagicMock()
        pw.chromium.launch = AsyncMock(side_effect=PlaywrightError("sandbox failure"))
        pw.stop = AsyncMock()
        starter = MagicMock()
        starter.start = AsyncMock(return_value=pw)
        monkeypatch.setattr(bs, "async_playwright", lambda: starter)

        session = BrowserSession()
        with pytest.raises(BrowserError):
            await session.start()
        pw.stop.assert_awaited_once()
        assert session._playwright is None

    async def test_context_manager(self, monkeypatch):
        context = MagicMock()
        context.close = AsyncMock()
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=context)
        browser.close = AsyncMock()
        browser.is_connected = MagicMock(return_value=True)
        pw = MagicMock()
        pw.chromium.launch = AsyncMock(return_value=browser)
        pw.stop = AsyncMock()
        starter = MagicMock()
        starter.start = AsyncMock(return_value=pw)
        monkeypatch.setattr(bs, "async_playwright", lambda: starter)

        async with bs.create_session(BrowserConfig(locale="fr-FR")) as session:
            assert session.is_started
            assert session.is_connected()
            kwargs = browser.new_context.await_args.kwargs
            assert kwargs["locale"] == "fr-FR"
            assert kwargs["service_workers"] == "block"
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()
        pw.stop.assert_awaited_once()
        assert not session.is_started
