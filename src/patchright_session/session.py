"""Session: one page of the shared browser and everything you can do with it.

A :class:`Session` wraps a Patchright ``Page``. Every remote call goes through
:func:`~patchright_session.errors.translate_errors`, so callers only ever see
:class:`~patchright_session.errors.PageError` for failed interactions. After
each navigation the optional request logger receives a full-page screenshot
and the page HTML.

Sessions are not safe to drive from several tasks at once; multi-step
sequences such as :meth:`Session.trigger_download` assume a single caller.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

from patchright.async_api import Error as PatchrightError

from patchright_session.config import SessionSettings
from patchright_session.debug import await_commands
from patchright_session.downloads import (
    DownloadResult,
    TriggerAction,
    TriggerKind,
    run_trigger,
    wait_for_new_file,
)
from patchright_session.element import ElementHandle
from patchright_session.errors import (
    DownloadError,
    InvalidArgumentError,
    PageError,
    translate_errors,
)
from patchright_session.logs import CONSOLE_LOGGER_NAME
from patchright_session.registry import BrowserRegistry, default_registry
from patchright_session.scripts import (
    FETCH_AS_DATA_URI,
    OUTER_HTML,
    PAGE_HEIGHT,
    JsFunction,
    as_function,
)
from patchright_session.urls import decode_data_uri, merge_url, origin_root, same_origin

logger = logging.getLogger(__name__)
console_logger = logging.getLogger(CONSOLE_LOGGER_NAME)

RequestLogger = Callable[[str, bytes, str], None]

_CONSOLE_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
}


class Session:
    """A single browser tab in the shared browser process."""

    def __init__(
        self,
        page: Any,
        request_logger: RequestLogger | None = None,
        *,
        registry: BrowserRegistry | None = None,
        settings: SessionSettings | None = None,
        debug: bool = False,
        executable_path: str | None = None,
    ) -> None:
        self.page = page
        self.keyboard = page.keyboard
        self.request_logger = request_logger
        self.registry = registry or default_registry
        self.settings = settings or self.registry.settings
        self.debug = debug
        self.executable_path = executable_path
        self.download_path: Path | None = None
        self._download_cdp: Any = None

        if self.settings.log_browser_console:
            page.on("console", self._on_console)

    # -- Construction --------------------------------------------------------

    @classmethod
    async def create(
        cls,
        url: str,
        debug: bool | None = None,
        executable_path: str | None = None,
        request_logger: RequestLogger | None = None,
        *,
        registry: BrowserRegistry | None = None,
        settings: SessionSettings | None = None,
    ) -> Session:
        """Open a new tab in the shared browser and navigate it to *url*."""
        registry = registry or default_registry
        settings = settings or registry.settings
        if debug is None:
            debug = settings.debug

        process = await registry.get(debug, executable_path)
        page = await process.new_page()
        session = cls(
            page,
            request_logger,
            registry=registry,
            settings=settings,
            debug=debug,
            executable_path=executable_path,
        )
        with translate_errors(session, f"Opening {url}"):
            await page.set_viewport_size(settings.initial_viewport.as_dict())
            await page.goto(url, wait_until=settings.wait_until)
        await session.log_request()
        return session

    async def new_tab(self, url: str) -> Session:
        """Open *url* in a sibling tab sharing this session's browser and logger.

        *url* may be partial; missing components come from the current page
        URL, so ``"/other?x=1"`` stays on the same host.
        """
        return await self._open_tab(merge_url(self.url, url))

    async def _open_tab(self, target: str) -> Session:
        process = await self.registry.get(self.debug, self.executable_path)
        with translate_errors(self, "Opening a new tab"):
            page = await process.new_page()
        tab = type(self)(
            page,
            self.request_logger,
            registry=self.registry,
            settings=self.settings,
            debug=self.debug,
            executable_path=self.executable_path,
        )
        with translate_errors(tab, f"Opening {target}"):
            await page.goto(target, wait_until=self.settings.wait_until)
        await tab.log_request()
        return tab

    # -- Properties ----------------------------------------------------------

    @property
    def url(self) -> str:
        return self.page.url

    # -- Evaluation ----------------------------------------------------------

    async def evaluate(self, script: str | JsFunction, arg: Any = None) -> Any:
        """Run *script* in the page and return its JSON-serialisable result.

        A plain string is the body of a function taking one parameter, ``arg``.
        """
        with translate_errors(self, "Evaluating script"):
            return await self.page.evaluate(as_function(script, ("arg",)), arg)

    async def send_command(self, name: str, params: dict | None = None) -> dict:
        """Send a raw protocol command (e.g. ``Browser.getVersion``) on a one-off CDP session."""
        with translate_errors(self, f"Sending {name}"):
            cdp = await self.page.context.new_cdp_session(self.page)
            try:
                return await cdp.send(name, params or {})
            finally:
                await cdp.detach()

    # -- Request logging -----------------------------------------------------

    async def log_request(self) -> None:
        """Hand a screenshot and the HTML of the current page to the request logger."""
        if self.request_logger is None:
            return

        height = await self.get_page_height()
        with translate_errors(self, "Capturing page for request log"):
            await self.page.set_viewport_size(
                {"width": self.settings.log_viewport_width, "height": height}
            )
            png_contents = await self._screenshot()
        html_contents = await self.get_html()
        self.request_logger(self.url, png_contents, html_contents or "")

    async def _screenshot(self) -> bytes:
        with tempfile.NamedTemporaryFile(
            prefix=f"{int(time.time())}-", suffix=".png", delete=False
        ) as handle:
            path = Path(handle.name)
        try:
            await self.page.screenshot(path=str(path))
            return path.read_bytes()
        finally:
            path.unlink(missing_ok=True)

    def _on_console(self, msg: Any) -> None:
        level = _CONSOLE_LEVELS.get(msg.type, logging.DEBUG)
        console_logger.log(level, f"[{msg.type}] {msg.text} ({self.url})")

    # -- Introspection -------------------------------------------------------

    async def get_page_height(self) -> int:
        return int(await self.evaluate(PAGE_HEIGHT))

    async def get_html(self) -> str | None:
        """Return the serialised document, or ``None`` if it cannot be read."""
        try:
            return await self.evaluate(OUTER_HTML)
        except PageError as exc:
            logger.debug(f"Could not read page HTML: {exc.message}")
            return None

    async def contains(self, string: str) -> bool:
        """Check whether the current HTML contains *string*."""
        html = await self.get_html()
        return html is not None and string in html

    async def exists(self, selector: str) -> bool:
        """Check whether there's a match for *selector*."""
        with translate_errors(self, f"Querying {selector!r}"):
            return bool(await self.page.query_selector_all(selector))

    # -- Querying ------------------------------------------------------------

    async def query_selector(self, selector: str) -> ElementHandle | None:
        with translate_errors(self, f"Querying {selector!r}"):
            element = await self.page.query_selector(selector)
        if element is None:
            return None
        return ElementHandle(self, element)

    async def query_selector_all(self, selector: str) -> list[ElementHandle]:
        with translate_errors(self, f"Querying {selector!r}"):
            elements = await self.page.query_selector_all(selector)
        return [ElementHandle(self, element) for element in elements]

    async def wait_for_selector(self, selector: str, **options: Any) -> ElementHandle:
        """Wait until an element matching *selector* is visible and return it."""
        options = {"state": "visible", **options}
        with translate_errors(self, f"Waiting for {selector!r}"):
            element = await self.page.wait_for_selector(selector, **options)
        if element is None:
            raise PageError(self, f"Waiting for {selector!r} returned no element")
        return ElementHandle(self, element)

    async def wait_for_selector_to_disappear(self, selector: str, **options: Any) -> None:
        """Wait until no visible element matches *selector*."""
        options = {"state": "hidden", **options}
        with translate_errors(self, f"Waiting for {selector!r} to disappear"):
            await self.page.wait_for_selector(selector, **options)

    async def wait_till_not_exists(
        self,
        selector: str,
        timeout: float | None = None,
        poll_interval: float | None = None,
    ) -> None:
        """Poll until *selector* has no match, giving up quietly after *timeout*."""
        if timeout is None:
            timeout = self.settings.wait_till_not_exists_timeout
        if poll_interval is None:
            poll_interval = self.settings.poll_interval

        deadline = time.monotonic() + timeout
        while True:
            try:
                if not await self.exists(selector):
                    return
            except PageError as exc:
                logger.debug(f"Stopped waiting for {selector!r}: {exc.message}")
                return
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.debug(f"{selector!r} still present after {timeout}s")
                return
            await asyncio.sleep(min(poll_interval, remaining))

    # -- Navigation ----------------------------------------------------------

    async def goto(self, url: str, **options: Any) -> Any:
        with translate_errors(self, f"Navigating to {url}"):
            response = await self.page.goto(url, **options)
        await self.log_request()
        return response

    async def reload(self, **options: Any) -> Any:
        with translate_errors(self, "Reloading"):
            response = await self.page.reload(**options)
        await self.log_request()
        return response

    async def wait_for_navigation(
        self, action: Callable[[], Awaitable[Any]] | None = None, **options: Any
    ) -> Any:
        """Wait for the next navigation, optionally triggered by *action*.

        Waits for network idle unless ``wait_until`` says otherwise.
        """
        options = {"wait_until": self.settings.wait_until, **options}
        with translate_errors(self, "Waiting for navigation"):
            async with self.page.expect_navigation(**options) as navigation:
                if action is not None:
                    await action()
            response = await navigation.value
        await self.log_request()
        return response

    async def close(self, run_before_unload: bool = True) -> None:
        with translate_errors(self, "Closing page"):
            await self.page.close(run_before_unload=run_before_unload)
        self._download_cdp = None

    # -- Downloads -----------------------------------------------------------

    async def set_download_path(self, path: str | Path | None) -> None:
        """Send native downloads to *path*; ``None`` restores the browser default.

        Chromium drops the override when the CDP session that set it detaches,
        so that session stays attached until the default is restored.
        """
        if path is None:
            params = {"behavior": "default"}
        else:
            params = {"behavior": "allow", "downloadPath": str(path)}

        with translate_errors(self, "Setting download path"):
            if self._download_cdp is None:
                self._download_cdp = await self.page.context.new_cdp_session(self.page)
            cdp = self._download_cdp
            try:
                await cdp.send("Page.setDownloadBehavior", params)
            except PatchrightError:
                self._download_cdp = None
                await _detach_quietly(cdp)
                raise
            if path is None:
                self._download_cdp = None
                await cdp.detach()
        self.download_path = Path(path) if path is not None else None

    async def trigger_download(
        self,
        action: TriggerAction,
        *,
        timeout: float,
        poll_interval: float | None = None,
    ) -> DownloadResult:
        """Run *action* and return the single file it makes the browser download.

        Downloads go to a fresh temp directory for the duration of the call;
        the previous download path is restored and the directory removed
        afterwards. *timeout* bounds the wait for the file to appear.
        """
        if poll_interval is None:
            poll_interval = self.settings.poll_interval

        previous = self.download_path
        directory = Path(tempfile.mkdtemp(prefix="download-"))
        try:
            existing = {entry.name for entry in directory.iterdir()}
            await self.set_download_path(directory)
            try:
                outcome = await run_trigger(action)
                if outcome.kind is TriggerKind.FAILED:
                    raise PageError(
                        self, f"Download trigger failed: {outcome.error}"
                    ) from outcome.error
                path = await wait_for_new_file(
                    directory, existing, timeout=timeout, poll_interval=poll_interval
                )
                result = DownloadResult(filename=path.name, content=path.read_bytes())
            except BaseException:
                # the original failure wins over a failed restore
                try:
                    await self.set_download_path(previous)
                except PageError as exc:
                    logger.warning(f"Could not restore download path: {exc.message}")
                raise
            await self.set_download_path(previous)
            logger.debug(f"Captured download {result.filename} ({len(result.content)} bytes)")
            return result
        finally:
            shutil.rmtree(directory, ignore_errors=True)

    async def download(self, url: str) -> bytes:
        """Fetch *url* from inside the page and return the response body.

        Relative URLs resolve against the current page. Cross-origin URLs are
        fetched from a helper tab opened on the target origin's root, which is
        closed again afterwards.
        """
        url = urljoin(self.url, url)
        if same_origin(self.url, url):
            return await _fetch_bytes(self, url)

        root = origin_root(url)
        logger.debug(f"Opening {root} to download cross-origin {url}")
        try:
            helper = await self._open_tab(root)
        except PageError as exc:
            message = f"Could not open {root} to download {url}: {exc.message}"
            opened = exc.session if exc.session is not self else None
            if opened is not None and not await _close_tab(opened):
                raise DownloadError(message, session=opened) from exc
            raise DownloadError(message) from exc

        try:
            content = await _fetch_bytes(helper, url)
        except DownloadError as exc:
            if not await _close_tab(helper):
                exc.session = helper
            raise
        if not await _close_tab(helper):
            raise DownloadError(
                f"Downloaded {url} but could not close the helper tab on {root}",
                session=helper,
            )
        return content

    # -- Interactive debugging -----------------------------------------------

    async def await_commands(
        self,
        script_path: str | Path,
        *,
        poll_interval: float = 1.0,
        timeout: float | None = None,
    ) -> None:
        """Run *script_path* against this session whenever it changes."""
        await await_commands(
            self, script_path, poll_interval=poll_interval, timeout=timeout
        )


async def _fetch_bytes(session: Session, url: str) -> bytes:
    try:
        data_uri = await session.evaluate(FETCH_AS_DATA_URI, url)
    except PageError as exc:
        raise DownloadError(f"Downloading {url} failed: {exc.message}") from exc
    try:
        return decode_data_uri(data_uri)
    except InvalidArgumentError as exc:
        raise DownloadError(f"Downloading {url} returned unreadable data: {exc}") from exc


async def _close_tab(session: Session) -> bool:
    try:
        await session.close()
    except PageError as exc:
        logger.warning(f"Could not close tab {session.url}: {exc.message}")
        return False
    return True


async def _detach_quietly(cdp: Any) -> None:
    try:
        await cdp.detach()
    except PatchrightError:
        logger.debug("CDP session already detached", exc_info=True)
