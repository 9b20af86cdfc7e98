# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import siteschema  # noqa: F401
except ImportError:
    raise ImportError("siteschema is not installed. Run: pip install -e '.[dev]'") from None

import pytest

SHOP_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Acme Shop</title>
  <meta name="description" content="Buy anvils online">
  <link rel="stylesheet" href="/static/app.css">
  <script src="https://www.googletagmanager.com/gtag/js?id=G-1"></script>
</head>
<body>
  <header><nav><a href="/">Home</a><a href="/cart">Cart</a></nav></header>
  <h1>Anvil Deluxe</h1>
  <p>Shop the best anvils. Price: $19.99</p>
  <img src="/img/anvil.png" alt="Anvil">
  <form action="/cart/add" method="post">
    <input type="hidden" name="sku" value="A1">
    <button class="btn add-to-cart">Add to cart</button>
  </form>
  <a href="https://checkout.stripe.com/pay/cs_test">Pay now</a>
  <footer>(c) Acme</footer>
</body>
</html>
"""

BLOG_HTML = """<html>
<head><title>Notes from the Field</title></head>
<body>
  <article class="post">
    <h1>Field notes</h1>
    <span class="author">Ada</span>
    <time datetime="2024-01-02">Jan 2</time>
    <p>Read my latest blog post about birds.</p>
  </article>
</body>
</html>
"""

PLAIN_HTML = "<html><head><title>Hello</title></head><body><p>Just words here.</p></body></html>"


@pytest.fixture
def shop_html() -> str:
    return SHOP_HTML


@pytest.fixture
def blog_html() -> str:
    return BLOG_HTML


@pytest.fixture
def plain_html() -> str:
    return PLAIN_HTML


@pytest.fixture(autouse=True)
def _block_real_browser(request, monkeypatch):
    """Safety net: prevent real browser sessions in unit tests.

    Any test that needs a renderer should patch
    ``siteschema.server._get_session`` explicitly; that patch takes
    priority over this fixture. Tests that forget to patch get a clear
    error instead of silently trying to launch Chromium.

    Tests that test ``_get_session`` itself can opt out with::

        @pytest.mark.allow_real_get_session
    """
    if "allow_real_get_session" in request.keywords:
        return

    async def _no_real_session():
        raise RuntimeError(
            "Test tried to create a real browser session. Patch 'siteschema.server._get_session' in your test."
        )

    monkeypatch.setattr("siteschema.server._get_session", _no_real_session)


@pytest.fixture(autouse=True)
def _reset_state():
    """Reset server module state before and after each test."""
    import siteschema.server as srv

    old = (srv._session, srv._allow_local, srv._transport_mode, srv._browser_config)
    srv._session = None
    srv._allow_local = False
    srv._transport_mode = "stdio"
    yield
    srv._session, srv._allow_local, srv._transport_mode, srv._browser_config = old
