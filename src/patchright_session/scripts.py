"""In-page JavaScript used by sessions and element handles.

Values that come from callers (selectors, URLs, JSON payloads) are always
handed to ``evaluate`` as the argument, never spliced into the script text.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class JsFunction:
    """A JavaScript function built from a body and a parameter list."""

    body: str
    parameters: tuple[str, ...] = ()
    is_async: bool = False

    def source(self) -> str:
        prefix = "async " if self.is_async else ""
        return f"{prefix}({', '.join(self.parameters)}) => {{\n{self.body}\n}}"


def as_function(script: str | JsFunction, parameters: tuple[str, ...] = ()) -> str:
    """Return evaluatable source for *script*.

    A plain string is treated as a function body, so ``"return document.title;"``
    is valid input.
    """
    if isinstance(script, JsFunction):
        return script.source()
    return JsFunction(script, parameters).source()


PAGE_HEIGHT = """var body = document.body, html = document.documentElement;
return Math.max(body.scrollHeight, body.offsetHeight, html.clientHeight, html.scrollHeight, html.offsetHeight);"""

OUTER_HTML = "return document.documentElement.outerHTML;"

IS_VISIBLE = (
    "return window.getComputedStyle(elem).getPropertyValue('display') !== 'none' "
    "&& elem.offsetHeight > 0;"
)

INNER_HTML = "return elem.innerHTML;"

VALUE = "return elem.value;"

SET_VALUE_FROM_JSON = "elem.value = JSON.parse(json);"

CLICK = "elem.click();"

BLUR = "elem.blur();"

DATASET = "return Object.assign({}, elem.dataset);"

OPTIONS = """return Array.from(elem.querySelectorAll('option')).map(function(item) {
    return {value: item.value, label: item.innerText};
});"""

SHADOW_QUERY = "return elem.shadowRoot ? elem.shadowRoot.querySelector(selector) : null;"

FETCH_AS_DATA_URI = JsFunction(
    """const response = await fetch(url);
if (!response.ok) {
    throw new Error(`HTTP ${response.status} fetching ${url}`);
}
const blob = await response.blob();
return await new Promise((resolve, reject) => {
    const reader = new FileReader();
    reader.addEventListener('loadend', () => resolve(reader.result));
    reader.addEventListener('error', () => reject(reader.error));
    reader.readAsDataURL(blob);
});""",
    parameters=("url",),
    is_async=True,
)
