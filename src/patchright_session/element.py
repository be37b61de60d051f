"""ElementHandle: one DOM node of a session's page."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from patchright_session.errors import InvalidArgumentError, translate_errors
from patchright_session.scripts import (
    BLUR,
    CLICK,
    DATASET,
    INNER_HTML,
    IS_VISIBLE,
    OPTIONS,
    SET_VALUE_FROM_JSON,
    SHADOW_QUERY,
    VALUE,
    JsFunction,
)

if TYPE_CHECKING:
    from pathlib import Path

    from patchright_session.session import Session

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


def _function(body: str, *parameters: str) -> str:
    return JsFunction(body, ("elem", *parameters)).source()


class ElementHandle:
    """Wraps a Patchright element handle owned by a :class:`Session`.

    Every method translates Patchright errors into ``PageError`` bound to the
    owning session, including the "element is not attached" errors raised
    once the page has navigated away.
    """

    def __init__(self, session: Session, element: Any) -> None:
        if element is None:
            raise InvalidArgumentError("ElementHandle requires an element")
        self.session = session
        self.element = element

    def __repr__(self) -> str:
        return f"<ElementHandle {self.element!r} on {self.session.url}>"

    async def evaluate(self, script: str | JsFunction, arg: Any = None) -> Any:
        """Run *script* with the node bound to ``elem`` (and ``arg``)."""
        source = script.source() if isinstance(script, JsFunction) else _function(script, "arg")
        with translate_errors(self.session, "Evaluating script on element"):
            return await self.element.evaluate(source, arg)

    # -- Properties ----------------------------------------------------------

    async def inner_html(self) -> str:
        return await self.evaluate(INNER_HTML)

    async def inner_text(self) -> str:
        """The inner HTML with tags stripped and surrounding whitespace trimmed."""
        return _TAG_RE.sub("", await self.inner_html()).strip()

    async def value(self) -> Any:
        return await self.evaluate(VALUE)

    async def checked(self) -> bool:
        return bool(await self.get_property("checked"))

    async def dataset(self) -> dict[str, str]:
        """The element's ``data-*`` attributes, keyed by their camelCased name."""
        return await self.evaluate(DATASET)

    async def data(self) -> dict[str, str]:
        return await self.dataset()

    async def get_property(self, name: str) -> Any:
        """Return the JSON value of the DOM property *name*."""
        if name in ("data", "dataset"):
            return await self.dataset()
        with translate_errors(self.session, f"Reading property {name!r}"):
            handle = await self.element.get_property(name)
            return await handle.json_value()

    # -- State ---------------------------------------------------------------

    async def is_visible(self) -> bool:
        """Check whether the element is displayed and has a rendered height."""
        return bool(await self.evaluate(IS_VISIBLE))

    async def blur(self) -> None:
        await self.evaluate(BLUR)

    async def focus(self) -> None:
        with translate_errors(self.session, "Focusing element"):
            await self.element.focus()

    # -- Input ---------------------------------------------------------------

    async def type(self, text: str, append: bool = False, **options: Any) -> None:
        """Type *text* into the element, replacing its content unless *append*."""
        with translate_errors(self.session, "Typing into element"):
            if not append:
                await self.element.click(click_count=3)
            await self.element.type(text, **options)

    async def set_value(self, value: Any) -> None:
        """Assign *value* to the element's ``value`` property without typing."""
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Value is not JSON-encodable: {exc}") from exc
        await self.evaluate(JsFunction(SET_VALUE_FROM_JSON, ("elem", "json")), encoded)

    async def select_files(self, paths: str | Path | list[str | Path]) -> None:
        with translate_errors(self.session, "Selecting files"):
            await self.element.set_input_files(paths)

    async def select_option(self, option: str) -> list[str]:
        with translate_errors(self.session, "Selecting option"):
            return await self.element.select_option(option)

    async def select_options(self, options: str | list[str]) -> list[str]:
        with translate_errors(self.session, "Selecting options"):
            return await self.element.select_option(options)

    async def get_options(self) -> dict[str, str]:
        """Map each ``<option>`` value to its visible label."""
        rows = await self.evaluate(OPTIONS)
        return {row["value"]: row["label"] for row in rows}

    # -- Clicking ------------------------------------------------------------

    async def click(self, **options: Any) -> None:
        """Click the element.

        Visible elements get a real mouse click so pointer listeners fire.
        Hidden or mid-transition elements, which a mouse click cannot reach,
        get ``elem.click()`` instead.
        """
        if await self.is_visible():
            with translate_errors(self.session, "Clicking element"):
                await self.element.click(**options)
        else:
            await self.evaluate(CLICK)

    async def submit(self, **options: Any) -> None:
        """Log the request, then click.

        Use this instead of :meth:`click` for clicks that change state, so the
        request log holds the page as it was right before.
        """
        await self.session.log_request()
        await self.click(**options)

    # -- Querying ------------------------------------------------------------

    async def query_selector(self, selector: str) -> ElementHandle | None:
        with translate_errors(self.session, f"Querying {selector!r}"):
            element = await self.element.query_selector(selector)
        if element is None:
            return None
        return ElementHandle(self.session, element)

    async def query_selector_all(self, selector: str) -> list[ElementHandle]:
        with translate_errors(self.session, f"Querying {selector!r}"):
            elements = await self.element.query_selector_all(selector)
        return [ElementHandle(self.session, element) for element in elements]

    async def query_selector_shadow(self, selector: str) -> ElementHandle | None:
        """Query one level into the element's shadow root."""
        with translate_errors(self.session, f"Querying shadow root for {selector!r}"):
            handle = await self.element.evaluate_handle(
                _function(SHADOW_QUERY, "selector"), selector
            )
            element = handle.as_element()
            if element is None:
                await handle.dispose()
                return None
        return ElementHandle(self.session, element)

    async def contains(self, string: str) -> bool:
        """Check if the element's inner HTML contains *string*."""
        return string in await self.inner_html()

    async def dispose(self) -> None:
        """Release the remote reference. Never raises."""
        try:
            await self.element.dispose()
        except Exception:
            logger.debug("Disposing element handle failed", exc_info=True)
