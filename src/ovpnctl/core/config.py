"""Configuration management.

Loads and merges configuration from multiple sources with proper precedence.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config_loader import deep_merge, load_json_file
from .config_schema import Config, LoggingConfig, ServerConfig, StorageConfig, TunnelConfig
from .global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "config"})

CONFIG_FILENAMES = ("ovpnctl.json", "ovpnctl.jsonc")
ENV_CONTENT = "OVPNCTL_CONFIG_CONTENT"

__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "LoggingConfig",
    "ServerConfig",
    "StorageConfig",
    "TunnelConfig",
]


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Config error in {path}: {message}")


class ConfigManager:
    """Loads the effective configuration once and caches it.

    Sources, lowest precedence first:
    1. Global config (``<config dir>/ovpnctl.json``)
    2. Project configs (``ovpnctl.json`` from filesystem root down to the
       working directory)
    3. ``OVPNCTL_CONFIG_CONTENT`` environment variable (inline JSON)
    """

    def __init__(self, directory: str = ".") -> None:
        self._directory = directory
        self._cache: Optional[Config] = None
        self._sources: List[str] = []

    def reset(self) -> None:
        self._cache = None
        self._sources = []

    def sources(self) -> List[str]:
        """Files (or the env marker) that contributed to the cached config."""
        return self._sources.copy()

    async def get(self) -> Config:
        if self._cache is None:
            self._cache = self._load()
        return self._cache

    def _load(self) -> Config:
        result: Dict[str, Any] = {}
        sources: List[str] = []

        global_dir = GlobalPath.config()
        for filename in CONFIG_FILENAMES:
            filepath = os.path.join(global_dir, filename)
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info("loaded global config", {"path": filepath})

        current = Path(self._directory).resolve()
        project_configs: List[Path] = []
        while True:
            for filename in CONFIG_FILENAMES:
                candidate = current / filename
                if candidate.exists():
                    project_configs.append(candidate)
            if current == current.parent:
                break
            current = current.parent

        # root first, then more specific
        for filepath in reversed(project_configs):
            if str(filepath) in sources:
                continue
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(str(filepath))
                log.info("loaded project config", {"path": str(filepath)})

        env_config = os.environ.get(ENV_CONTENT)
        if env_config:
            try:
                data = json.loads(env_config)
            except json.JSONDecodeError:
                log.error(f"failed to parse {ENV_CONTENT}")
            else:
                if isinstance(data, dict):
                    result = deep_merge(result, data)
                    sources.append(f"env:{ENV_CONTENT}")
                    log.info(f"loaded config from {ENV_CONTENT}")

        try:
            config = Config.model_validate(result)
        except ValidationError as e:
            origin = sources[-1] if sources else "<defaults>"
            raise ConfigError(origin, str(e)) from e

        self._sources = sources
        return config
