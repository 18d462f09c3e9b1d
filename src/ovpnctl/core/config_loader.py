"""Config file loading: JSONC parsing, env substitution and deep merge."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict

import commentjson

from ..util.log import Log

log = Log.create({"service": "config.loader"})

ENV_REFERENCE = re.compile(r"\{env:([^}]+)\}")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Nested objects merge key by key; any other value in ``override``
    replaces the one in ``base``.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def substitute_env_vars(text: str) -> str:
    """Expand ``{env:VAR}`` references; unset variables become empty strings."""
    return ENV_REFERENCE.sub(lambda match: os.environ.get(match.group(1), ""), text)


def load_json_file(filepath: str | Path) -> Dict[str, Any]:
    """Read a JSON/JSONC object from ``filepath``.

    A missing file, unreadable text or a non-object document all yield
    ``{}`` so one bad file never blocks startup.
    """
    path = Path(filepath)
    if not path.is_file():
        return {}

    try:
        data = commentjson.loads(substitute_env_vars(path.read_text(encoding="utf-8")))
    except (OSError, UnicodeDecodeError, ValueError) as e:
        log.error("skipping unreadable config file", {"path": str(path), "error": str(e)})
        return {}

    if isinstance(data, dict):
        return data
    log.error("skipping config file without a top-level object", {"path": str(path)})
    return {}
