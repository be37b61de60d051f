"""Session and element handle layer over a shared Patchright browser."""

from patchright_session.config import LaunchConfig, SessionSettings, load_settings
from patchright_session.downloads import DownloadResult, TriggerKind, TriggerOutcome
from patchright_session.element import ElementHandle
from patchright_session.errors import (
    DownloadAmbiguityError,
    DownloadError,
    DownloadTimeoutError,
    InvalidArgumentError,
    PageError,
    PatchrightSessionError,
)
from patchright_session.logs import setup_logging
from patchright_session.registry import BrowserProcess, BrowserRegistry, default_registry
from patchright_session.scripts import JsFunction
from patchright_session.session import Session

__all__ = [
    "BrowserProcess",
    "BrowserRegistry",
    "DownloadAmbiguityError",
    "DownloadError",
    "DownloadResult",
    "DownloadTimeoutError",
    "ElementHandle",
    "InvalidArgumentError",
    "JsFunction",
    "LaunchConfig",
    "PageError",
    "PatchrightSessionError",
    "Session",
    "SessionSettings",
    "TriggerKind",
    "TriggerOutcome",
    "default_registry",
    "load_settings",
    "setup_logging",
]
