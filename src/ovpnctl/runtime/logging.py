"""Process logging setup for the CLI and the server."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Literal, Optional, TypeVar

from ..core.config import Config, ConfigManager
from ..util.log import Log, LogFormat, LogLevel

LogMode = Literal["cli", "web"]

T = TypeVar("T")


@dataclass(frozen=True)
class LogSettings:
    """Resolved sink settings for one process."""
    level: LogLevel
    format: LogFormat
    console: bool
    file: bool
    access_log: bool
    dev_file: bool


def _first(*candidates: Optional[T], default: T) -> T:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return default


def resolve_log_settings(
    cfg: Config,
    *,
    mode: LogMode,
    level: Optional[str] = None,
    format: Optional[str] = None,
    access_log: Optional[bool] = None,
    console: Optional[bool] = None,
    file: Optional[bool] = None,
    dev_file: Optional[bool] = None,
) -> LogSettings:
    """Explicit arguments win over the ``logging`` section, which wins over
    the top-level ``log_level`` and the per-mode defaults.

    The server (``web``) logs to stderr and writes access lines by default;
    CLI commands keep stderr quiet. Both write a log file.
    """
    section = cfg.logging
    serving = mode == "web"

    return LogSettings(
        level=LogLevel.parse(level or (section.level if section else None) or cfg.log_level),
        format=LogFormat.parse(format or (section.format if section else None)),
        console=_first(console, section.console if section else None, default=serving),
        file=_first(file, section.file if section else None, default=True),
        access_log=_first(access_log, section.access_log if section else None, default=serving),
        dev_file=_first(dev_file, section.dev_file if section else None, default=False),
    )


def bootstrap_logging(
    *,
    mode: LogMode,
    config: Optional[ConfigManager] = None,
    level: Optional[str] = None,
    format: Optional[str] = None,
    access_log: Optional[bool] = None,
    console: Optional[bool] = None,
    file: Optional[bool] = None,
    dev_file: Optional[bool] = None,
) -> LogSettings:
    """Load configuration and point ``Log`` at the resolved sinks."""
    cfg = asyncio.run((config or ConfigManager()).get())
    settings = resolve_log_settings(
        cfg,
        mode=mode,
        level=level,
        format=format,
        access_log=access_log,
        console=console,
        file=file,
        dev_file=dev_file,
    )
    Log.configure(
        level=settings.level,
        format=settings.format,
        console=settings.console,
        file=settings.file,
        dev=settings.dev_file,
    )
    return settings
