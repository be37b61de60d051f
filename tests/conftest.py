"""Shared fixtures for patchright-session tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from patchright_session.config import LaunchConfig, SessionSettings
from patchright_session.element import ElementHandle
from patchright_session.registry import BrowserRegistry
from patchright_session.session import Session


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep PATCHRIGHT_SESSION_* variables from the outer shell out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("PATCHRIGHT_SESSION_"):
            monkeypatch.delenv(key)


@pytest.fixture
def settings():
    """Settings with tiny poll intervals so polling tests run fast."""
    return SessionSettings(poll_interval=0.01, wait_till_not_exists_timeout=0.05)


@pytest.fixture
def mock_cdp():
    """A MagicMock standing in for a CDPSession."""
    cdp = MagicMock()
    cdp.send = AsyncMock(return_value={})
    cdp.detach = AsyncMock()
    return cdp


@pytest.fixture
def mock_page(mock_cdp):
    """A MagicMock standing in for a Patchright Page."""
    page = MagicMock()
    page.url = "https://h.example/a/b?y=2"
    page.goto = AsyncMock(return_value=MagicMock(status=200))
    page.reload = AsyncMock(return_value=MagicMock(status=200))
    page.evaluate = AsyncMock(return_value=None)
    page.query_selector = AsyncMock(return_value=None)
    page.query_selector_all = AsyncMock(return_value=[])
    page.wait_for_selector = AsyncMock(return_value=None)
    page.set_viewport_size = AsyncMock()
    page.screenshot = AsyncMock()
    page.close = AsyncMock()
    page.on = MagicMock()

    page.keyboard = MagicMock()
    page.keyboard.type = AsyncMock()
    page.keyboard.press = AsyncMock()

    page.context = MagicMock()
    page.context.new_cdp_session = AsyncMock(return_value=mock_cdp)
    return page


@pytest.fixture
def mock_element():
    """A MagicMock standing in for a Patchright ElementHandle."""
    element = MagicMock()
    element.evaluate = AsyncMock(return_value=None)
    element.evaluate_handle = AsyncMock()
    element.click = AsyncMock()
    element.type = AsyncMock()
    element.focus = AsyncMock()
    element.set_input_files = AsyncMock()
    element.select_option = AsyncMock(return_value=[])
    element.query_selector = AsyncMock(return_value=None)
    element.query_selector_all = AsyncMock(return_value=[])
    element.get_property = AsyncMock()
    element.dispose = AsyncMock()
    return element


@pytest.fixture
def mock_process(mock_page):
    """A MagicMock standing in for a launched BrowserProcess."""
    process = MagicMock()
    process.new_page = AsyncMock(return_value=mock_page)
    process.is_alive = True
    process.config = LaunchConfig()
    process.close = AsyncMock()
    return process


@pytest.fixture
def launcher(mock_process):
    return AsyncMock(return_value=mock_process)


@pytest.fixture
def registry(settings, launcher):
    """A BrowserRegistry whose launcher hands back the mock process."""
    return BrowserRegistry(settings=settings, launcher=launcher)


@pytest.fixture
def session(mock_page, registry, settings):
    """A Session wired to the mock page, without a request logger."""
    return Session(mock_page, registry=registry, settings=settings)


@pytest.fixture
def element(session, mock_element):
    return ElementHandle(session, mock_element)
