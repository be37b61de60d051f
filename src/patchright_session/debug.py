"""Interactive recovery loop for a live session.

Watches a Python file and runs it against the session whenever its contents
change, keeping the page alive in between.
"""

from __future__ import annotations

import ast
import asyncio
import inspect
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from patchright_session.session import Session

logger = logging.getLogger(__name__)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


async def run_snippet(session: Session, source: str, filename: str = "<debug>") -> None:
    """Execute *source* with ``session`` in scope; top-level ``await`` is allowed."""
    code = compile(source, filename, "exec", flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT)
    namespace = {"session": session, "asyncio": asyncio}
    result = eval(code, namespace)  # noqa: S307
    if inspect.isawaitable(result):
        await result


async def await_commands(
    session: Session,
    script_path: str | Path,
    *,
    poll_interval: float = 1.0,
    timeout: float | None = None,
) -> None:
    """Run *script_path* against *session* every time it changes.

    Runs until *timeout* seconds have passed, or forever when it is ``None``.
    Errors raised by the script are logged and the loop keeps going.
    """
    path = Path(script_path)
    last_contents = _read(path)
    logger.info(f"Awaiting Python commands at {path}")
    deadline = None if timeout is None else time.monotonic() + timeout

    while deadline is None or time.monotonic() < deadline:
        contents = _read(path)
        if contents != last_contents:
            last_contents = contents
            logger.info(f"Detected change to {path}, running...")
            try:
                await run_snippet(session, contents, str(path))
            except Exception as exc:
                logger.warning(f"Found a {type(exc).__name__}: {exc}")

        # Keep the browser alive.
        await session.get_html()

        await asyncio.sleep(poll_interval)
