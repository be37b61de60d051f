"""Download capture.

The browser never reports that a native download has finished, so
:meth:`Session.trigger_download` points the download sink at a private temp
directory and watches it for the file to appear. The helpers here classify
what the triggering action did and do the directory polling.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from patchright.async_api import Error as PatchrightError

from patchright_session.errors import DownloadAmbiguityError, DownloadTimeoutError

logger = logging.getLogger(__name__)

# Suffixes Chromium uses for downloads still being written.
PARTIAL_SUFFIXES = (".crdownload",)

# Messages Chromium uses when a navigation turns into a download.
_DOWNLOAD_ABORT_MARKERS = ("net::ERR_ABORTED", "Download is starting")


@dataclass(frozen=True)
class DownloadResult:
    filename: str
    content: bytes


class TriggerKind(enum.Enum):
    DOWNLOAD_STARTED = "download_started"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class TriggerOutcome:
    kind: TriggerKind
    error: BaseException | None = None


TriggerAction = Callable[[], Awaitable[Any]]


def is_download_abort(exc: BaseException) -> bool:
    """Return ``True`` if *exc* is the navigation abort caused by a download."""
    if not isinstance(exc, PatchrightError):
        return False
    message = exc.message or str(exc)
    return any(marker in message for marker in _DOWNLOAD_ABORT_MARKERS)


async def run_trigger(action: TriggerAction) -> TriggerOutcome:
    """Run *action* and report what it did.

    An action may report for itself by returning a :class:`TriggerKind` or
    :class:`TriggerOutcome`. Otherwise a navigation aborted by a starting
    download counts as ``DOWNLOAD_STARTED``, normal return as ``COMPLETED``
    and any other Patchright error as ``FAILED``.
    """
    try:
        result = await action()
    except PatchrightError as exc:
        if is_download_abort(exc):
            logger.debug(f"Navigation aborted by download: {exc.message}")
            return TriggerOutcome(TriggerKind.DOWNLOAD_STARTED, exc)
        return TriggerOutcome(TriggerKind.FAILED, exc)

    if isinstance(result, TriggerOutcome):
        return result
    if isinstance(result, TriggerKind):
        return TriggerOutcome(result)
    return TriggerOutcome(TriggerKind.COMPLETED)


def is_partial(name: str) -> bool:
    return name.endswith(PARTIAL_SUFFIXES)


def list_new_files(directory: Path, existing: Iterable[str] = ()) -> list[str]:
    """Names of files in *directory* not in *existing*, partial downloads included."""
    skip = set(existing)
    return sorted(
        entry.name
        for entry in directory.iterdir()
        if entry.is_file() and entry.name not in skip
    )


async def wait_for_new_file(
    directory: Path,
    existing: Iterable[str] = (),
    *,
    timeout: float,
    poll_interval: float = 1.0,
) -> Path:
    """Poll *directory* until exactly one new finished file is present.

    Every new entry counts towards ambiguity, so a finished file next to a
    partial one raises :class:`DownloadAmbiguityError` at once. A single
    partial is waited on until it is renamed to its final name.
    :class:`DownloadTimeoutError` is raised if no finished file has appeared
    after *timeout* seconds.
    """
    existing = set(existing)
    deadline = time.monotonic() + timeout
    while True:
        found = list_new_files(directory, existing)
        if len(found) > 1:
            raise DownloadAmbiguityError(found)
        if found and not is_partial(found[0]):
            return directory / found[0]
        if time.monotonic() >= deadline:
            state = f"only {found[0]} in progress" if found else "nothing"
            raise DownloadTimeoutError(
                f"No download finished in {directory} within {timeout}s ({state})"
            )
        await asyncio.sleep(poll_interval)
