from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ViewportSize(BaseModel):
    width: int
    height: int

    def as_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


def _parse_viewport_size(value: str) -> dict[str, int]:
    """Parse a 'WxH' string into a viewport size dict."""
    parts = value.lower().split("x")
    if len(parts) != 2:
        raise ValueError(
            f"PATCHRIGHT_SESSION_INITIAL_VIEWPORT must be in 'WxH' format, got '{value}'"
        )
    return {"width": int(parts[0]), "height": int(parts[1])}


class SessionSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PATCHRIGHT_SESSION_",
        env_nested_delimiter="__",
    )

    debug: bool = False
    executable_path: str | None = None
    headless: bool = True
    slow_mo: int = 10  # ms between actions in debug mode

    # env value may be a raw "WxH" string
    initial_viewport: Annotated[ViewportSize, NoDecode] = Field(
        default_factory=lambda: ViewportSize(width=1680, height=1050)
    )
    log_viewport_width: int = 1280
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = (
        "networkidle"
    )

    poll_interval: float = 1.0
    wait_till_not_exists_timeout: float = 30.0

    log_browser_console: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("initial_viewport", mode="before")
    @classmethod
    def parse_initial_viewport(
        cls, v: str | dict | ViewportSize
    ) -> dict | ViewportSize:
        if isinstance(v, str):
            return _parse_viewport_size(v)
        return v


class LaunchConfig(BaseModel):
    """Options the shared browser process is launched with."""

    headless: bool = True
    slow_mo: int | None = None
    args: list[str] = Field(default_factory=list)
    executable_path: str | None = None

    @classmethod
    def for_mode(
        cls,
        debug: bool,
        executable_path: str | None = None,
        settings: SessionSettings | None = None,
    ) -> LaunchConfig:
        """Build the launch flavour for *debug* or regular runs.

        Debug runs get a visible window, a per-action delay so interactions
        can be followed by eye, and no sandbox.
        """
        settings = settings or SessionSettings()
        executable_path = executable_path or settings.executable_path
        if debug:
            return cls(
                headless=False,
                slow_mo=settings.slow_mo,
                args=["--no-sandbox"],
                executable_path=executable_path,
            )
        return cls(headless=settings.headless, executable_path=executable_path)

    def launch_options(self) -> dict:
        """Return the kwargs for ``chromium.launch``."""
        opts: dict = {"headless": self.headless}
        if self.slow_mo:
            opts["slow_mo"] = self.slow_mo
        if self.args:
            opts["args"] = list(self.args)
        if self.executable_path:
            opts["executable_path"] = self.executable_path
        return opts


def load_settings(config_path: str | None = None) -> SessionSettings:
    """Load session settings from a JSON file and/or environment variables.

    Priority (highest to lowest):
        1. PATCHRIGHT_SESSION_* environment variables
        2. The JSON file at *config_path*, if it exists
        3. Built-in defaults
    """
    file_values: dict = {}
    if config_path is not None:
        config_file = Path(config_path)
        if config_file.is_file():
            file_values = json.loads(config_file.read_text(encoding="utf-8"))

    settings = SessionSettings()
    if not file_values:
        return settings

    # Explicitly set env vars take precedence over file values
    env_values = settings.model_dump(exclude_unset=True)
    return SessionSettings(**{**file_values, **env_values})
