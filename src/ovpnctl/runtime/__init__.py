"""Runtime context exports."""

from .app_context import AppContext, create_storage
from .logging import LogSettings, bootstrap_logging, resolve_log_settings

__all__ = [
    "AppContext",
    "LogSettings",
    "bootstrap_logging",
    "create_storage",
    "resolve_log_settings",
]
