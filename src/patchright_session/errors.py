"""Exception types raised by patchright-session.

Every failed remote command surfaces as :class:`PageError`, which keeps a
reference to the :class:`~patchright_session.session.Session` it happened on so
that the same live page can be inspected afterwards (see :meth:`PageError.debug`).
"""

from __future__ import annotations

import logging
import tempfile
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from patchright.async_api import Error as PatchrightError

if TYPE_CHECKING:
    from patchright_session.session import Session

logger = logging.getLogger(__name__)


class PatchrightSessionError(Exception):
    """Base class for all patchright-session errors."""


class PageError(PatchrightSessionError):
    """An interactive operation on a session failed."""

    def __init__(self, session: Session, message: str = "") -> None:
        super().__init__(message)
        self.session = session
        self.message = message

    async def debug(
        self,
        script_path: str | Path | None = None,
        *,
        poll_interval: float = 1.0,
        timeout: float | None = None,
    ) -> None:
        """Pause and run Python snippets against the still-open session.

        Every saved change to *script_path* (a fresh temp file by default) is
        executed with ``session`` bound to the failing session.
        """
        if script_path is None:
            with tempfile.NamedTemporaryFile(
                prefix="debug-", suffix=".py", delete=False
            ) as handle:
                script_path = handle.name
        logger.error(f"An error occurred: {self.message}")
        logger.error("".join(traceback.format_exception(self)))
        logger.error(
            "Launching debug mode. Send commands to this browser tab by editing "
            f"{script_path}; the failing session is available as `session`."
        )
        await self.session.await_commands(
            script_path, poll_interval=poll_interval, timeout=timeout
        )


class InvalidArgumentError(PatchrightSessionError, ValueError):
    """A caller-supplied value cannot be used (e.g. not JSON-encodable)."""


class DownloadError(PatchrightSessionError):
    """A download could not be completed.

    ``session`` is set when a helper session opened for the download may
    still be open and needs closing by the caller.
    """

    def __init__(self, message: str = "", session: Session | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.session = session


class DownloadAmbiguityError(DownloadError):
    """More than one new file appeared in the download directory."""

    def __init__(self, filenames: list[str]) -> None:
        super().__init__(
            f"Expected exactly one downloaded file, found {len(filenames)}: "
            f"{', '.join(sorted(filenames))}"
        )
        self.filenames = sorted(filenames)


class DownloadTimeoutError(DownloadError):
    """No downloaded file appeared before the deadline."""


@contextmanager
def translate_errors(session: Session, action: str) -> Iterator[None]:
    """Re-raise Patchright errors raised in the block as :class:`PageError`."""
    try:
        yield
    except PatchrightError as exc:
        raise PageError(session, f"{action} failed: {exc.message}") from exc
