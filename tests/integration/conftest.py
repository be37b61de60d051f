"""Shared fixtures for patchright-session integration tests.

These fixtures launch a real headless Chromium browser via Patchright.
Every test gets its own registry, and with it a fresh browser process.
"""

from __future__ import annotations

import urllib.parse

import pytest

from patchright_session.config import SessionSettings
from patchright_session.registry import BrowserRegistry
from patchright_session.session import Session

# ---------------------------------------------------------------------------
# Test HTML page served via data: URL (no external HTTP server needed)
# ---------------------------------------------------------------------------

TEST_HTML = "data:text/html," + urllib.parse.quote(
    """<html><body>
<h1 id="title" data-user-id="7" data-role="admin">Test Page</h1>
<p id="total">Total: <b>42</b></p>
<form>
  <input type="text" name="username" id="username" value="initial">
  <input type="checkbox" name="agree" id="agree-cb" checked>
  <button type="button" id="hidden-btn" style="display:none"
          onclick="document.body.dataset.clicked = 'hidden'">Hidden</button>
  <button type="button" id="visible-btn"
          onclick="document.body.dataset.clicked = 'visible'">Visible</button>
</form>
<select name="color" id="color"><option value="red">Red</option><option value="blue">Blue</option></select>
<div id="spinner">Loading...</div>
<div id="plain"></div>
<input type="number" id="quantity">
<div id="host"></div>
<a id="export" download="export.txt" href="data:text/plain,exported%20rows">Export</a>
<script>
  document.getElementById('host').attachShadow({mode: 'open'}).innerHTML =
    '<span class="inner">shadow text</span>';
  setTimeout(() => document.getElementById('spinner').remove(), 300);
</script>
</body></html>"""
)


@pytest.fixture
def integration_settings() -> SessionSettings:
    return SessionSettings(
        headless=True,
        wait_until="load",
        poll_interval=0.1,
        wait_till_not_exists_timeout=5,
        log_viewport_width=800,
    )


@pytest.fixture
async def integration_registry(integration_settings: SessionSettings) -> BrowserRegistry:
    """A private registry whose browser is torn down after the test."""
    registry = BrowserRegistry(integration_settings)
    try:
        yield registry  # type: ignore[misc]
    finally:
        await registry.reset()


@pytest.fixture
async def page_session(integration_registry: BrowserRegistry) -> Session:
    """A real Session opened on TEST_HTML."""
    return await Session.create(TEST_HTML, registry=integration_registry)
