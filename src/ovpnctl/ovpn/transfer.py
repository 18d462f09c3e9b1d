"""Import and export of raw configuration text."""

from __future__ import annotations

from pathlib import Path

from ..util.log import Log
from .errors import TransferError

log = Log.create({"service": "transfer"})

IMPORT_SUFFIXES = (".ovpn", ".conf")
EXPORT_FILENAME = "vpn-config.ovpn"


def read_config_file(path: str | Path) -> str:
    """Read a ``.ovpn`` / ``.conf`` file as text."""
    target = Path(path)
    if target.suffix.lower() not in IMPORT_SUFFIXES:
        raise TransferError(
            f"Unsupported config file type '{target.suffix or target.name}'; "
            f"expected one of {', '.join(IMPORT_SUFFIXES)}",
            path=str(target),
        )
    try:
        text = target.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.error("failed to read config file", {"path": str(target), "error": str(e)})
        raise TransferError("Failed to read config file", path=str(target)) from e

    log.info("imported config file", {"path": str(target), "bytes": len(text)})
    return text


def write_config_file(raw: str | None, path: str | Path) -> Path:
    """Write config text to ``path``.

    A directory target receives ``vpn-config.ovpn``. Empty text is refused.
    """
    if raw is None or not raw.strip():
        raise TransferError("No config to export")

    target = Path(path)
    if target.is_dir():
        target = target / EXPORT_FILENAME
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(raw.encode("utf-8"))
    except OSError as e:
        log.error("failed to write config file", {"path": str(target), "error": str(e)})
        raise TransferError("Failed to write config file", path=str(target)) from e

    log.info("exported config file", {"path": str(target), "bytes": len(raw)})
    return target
