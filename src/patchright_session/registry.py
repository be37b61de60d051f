"""Registry owning the one browser process shared by all sessions.

The first :meth:`BrowserRegistry.get` call launches Chromium; every later call
returns the same process, even when asked for a different mode or executable.
A warning is logged whenever a later call asks for something else.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from patchright.async_api import async_playwright

from patchright_session.config import LaunchConfig, SessionSettings

logger = logging.getLogger(__name__)


@dataclass
class BrowserProcess:
    """A running browser together with its driver and shared context."""

    playwright: Any
    browser: Any
    context: Any
    config: LaunchConfig

    @property
    def is_alive(self) -> bool:
        return bool(self.browser.is_connected())

    async def new_page(self) -> Any:
        return await self.context.new_page()

    async def close(self) -> None:
        """Close the context and browser and stop the driver."""
        try:
            await self.context.close()
        except Exception:
            logger.debug("Context already closed", exc_info=True)
        try:
            await self.browser.close()
        finally:
            await self.playwright.stop()


async def launch_browser(config: LaunchConfig) -> BrowserProcess:
    """Start Patchright and launch Chromium according to *config*."""
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(**config.launch_options())
        context = await browser.new_context()
    except Exception:
        await playwright.stop()
        raise
    return BrowserProcess(
        playwright=playwright, browser=browser, context=context, config=config
    )


Launcher = Callable[[LaunchConfig], Awaitable[BrowserProcess]]


class BrowserRegistry:
    """Lazily launches and hands out the shared :class:`BrowserProcess`.

    Launch and reset are serialised by an ``asyncio.Lock`` so concurrent
    session creation never starts two browsers.
    """

    def __init__(
        self,
        settings: SessionSettings | None = None,
        launcher: Launcher = launch_browser,
    ) -> None:
        self.settings = settings or SessionSettings()
        self._launcher = launcher
        self._process: BrowserProcess | None = None
        self._lock = asyncio.Lock()

    @property
    def process(self) -> BrowserProcess | None:
        return self._process

    async def get(
        self, debug: bool = False, executable_path: str | None = None
    ) -> BrowserProcess:
        """Return the shared process, launching it on first use."""
        config = LaunchConfig.for_mode(debug, executable_path, self.settings)
        async with self._lock:
            if self._process is not None and not self._process.is_alive:
                logger.warning("Shared browser is no longer connected, relaunching")
                await self._close_quietly(self._process)
                self._process = None

            if self._process is None:
                logger.info(
                    f"Launching browser (headless={config.headless}, "
                    f"slow_mo={config.slow_mo}, executable={config.executable_path})"
                )
                self._process = await self._launcher(config)
            elif self._process.config != config:
                logger.warning(
                    "Browser already running with a different launch config; "
                    f"ignoring {config.model_dump()} in favour of "
                    f"{self._process.config.model_dump()}"
                )
            return self._process

    async def reset(self) -> None:
        """Terminate the shared process (if any) so the next ``get`` relaunches."""
        async with self._lock:
            process, self._process = self._process, None
            if process is None:
                return
            logger.info("Shutting down shared browser")
            await process.close()

    @staticmethod
    async def _close_quietly(process: BrowserProcess) -> None:
        try:
            await process.close()
        except Exception:
            logger.debug("Error closing dead browser", exc_info=True)


default_registry = BrowserRegistry()
