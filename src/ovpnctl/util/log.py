"""Structured logging with tagged loggers and per-run log files.

Loggers are created per service (``Log.create({"service": "store"})``) and
share one process-wide sink configuration: stderr, a log file under the
platform log directory, or both. Records are rendered as ``key=value``
pairs, JSON lines, or a human friendly "pretty" line.
"""

import json
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO

from ..core.global_paths import GlobalPath

KEEP_LOG_FILES = 10

LOG_FILE_PATTERN = "????-??-??T??????.log"


class LogLevel(str, Enum):
    """Log severity levels, in increasing order."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    @classmethod
    def parse(cls, value: str | None) -> "LogLevel":
        if value is None:
            return cls.INFO
        text = value.strip().upper()
        if text == "WARNING":
            text = "WARN"
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"invalid log level: {value}") from None


_LEVEL_ORDER = list(LogLevel)


class LogFormat(str, Enum):
    """Log output format."""

    KV = "kv"
    JSON = "json"
    PRETTY = "pretty"

    @classmethod
    def parse(cls, value: str | None) -> "LogFormat":
        if value is None:
            return cls.KV
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"invalid log format: {value}") from None


@dataclass
class LogConfig:
    """Process-wide sink configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.KV
    console: bool = False
    file: bool = False
    log_file_path: Optional[str] = None
    _file_handle: Optional[TextIO] = None


_config = LogConfig()
_last_timestamp = time.time()

_HEADER_KEYS = ("time", "delta_ms", "level", "msg")


def _describe_error(error: BaseException, depth: int = 0) -> str:
    text = str(error) or type(error).__name__
    if error.__cause__ is not None and depth < 10:
        text += " Caused by: " + _describe_error(error.__cause__, depth + 1)
    return text


def _normalize(value: Any) -> Any:
    if isinstance(value, BaseException):
        return _describe_error(value)
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (dict, list, tuple, int, float, bool)):
        return value
    return str(value)


def _kv_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    text = str(value)
    if not text or "=" in text or any(ch.isspace() for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


def _pairs(record: dict[str, Any]) -> str:
    return " ".join(
        f"{key}={_kv_value(value)}"
        for key, value in record.items()
        if key not in _HEADER_KEYS
    )


def _render_json(record: dict[str, Any]) -> str:
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def _render_pretty(record: dict[str, Any]) -> str:
    pairs = _pairs(record)
    suffix = f" ({pairs})" if pairs else ""
    return (
        f"{record['time']} {record['level'].upper()} {record['msg'] or ''}{suffix}"
        f" +{record['delta_ms']}ms"
    )


def _render_kv(record: dict[str, Any]) -> str:
    head = [
        str(record["time"]),
        f"+{record['delta_ms']}ms",
        f"level={record['level']}",
        f"msg={_kv_value(record['msg'])}",
    ]
    pairs = _pairs(record)
    if pairs:
        head.append(pairs)
    return " ".join(head)


_RENDERERS: Dict[LogFormat, Callable[[dict[str, Any]], str]] = {
    LogFormat.KV: _render_kv,
    LogFormat.JSON: _render_json,
    LogFormat.PRETTY: _render_pretty,
}


def _write(line: str) -> None:
    if _config.console:
        sys.stderr.write(line)
        sys.stderr.flush()
    if _config.file and _config._file_handle:
        _config._file_handle.write(line)
        _config._file_handle.flush()


class Logger:
    """Tagged logger. Tags are merged into every record it emits."""

    def __init__(self, tags: Optional[Dict[str, Any]] = None):
        self.tags = tags or {}

    def _record(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> dict[str, Any]:
        global _last_timestamp

        now = time.time()
        delta_ms = int((now - _last_timestamp) * 1000)
        _last_timestamp = now

        fields = {**self.tags, **(extra or {})}
        return {
            "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "delta_ms": delta_ms,
            "level": level.value.lower(),
            "msg": _normalize(message),
            **{key: _normalize(value) for key, value in fields.items() if value is not None},
        }

    def _emit(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> None:
        if level.rank < _config.level.rank:
            return
        record = self._record(level, message, extra)
        _write(_RENDERERS[_config.format](record) + "\n")

    def debug(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.DEBUG, message, extra)

    def info(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.INFO, message, extra)

    def warn(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.WARN, message, extra)

    def error(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.ERROR, message, extra)


class Log:
    """Logger factory and sink configuration."""

    _loggers: Dict[str, Logger] = {}

    @classmethod
    def create(cls, tags: Optional[Dict[str, Any]] = None) -> Logger:
        """Create or retrieve a logger.

        Loggers tagged with a string ``service`` are cached by that name so
        every module asking for the same service shares one instance.
        """
        tags = tags or {}
        service = tags.get("service")
        if not isinstance(service, str) or not service:
            return Logger(tags=tags)
        if service not in cls._loggers:
            cls._loggers[service] = Logger(tags=tags)
        return cls._loggers[service]

    @classmethod
    def configure(
        cls,
        *,
        level: LogLevel | None = None,
        format: LogFormat | None = None,
        console: bool | None = None,
        file: bool | None = None,
        dev: bool = False,
    ) -> None:
        """Configure sinks and output format.

        With ``file`` enabled a fresh timestamped log file is opened under
        ``GlobalPath.log()`` (or ``dev.log`` when ``dev`` is set) and old
        timestamped files beyond the retention limit are removed.
        """
        if level is not None:
            _config.level = level
        if format is not None:
            _config.format = format
        if console is not None:
            _config.console = console
        _config.file = True if file is None else file

        cls.close()
        _config.log_file_path = None
        if not _config.file:
            return

        log_dir = Path(GlobalPath.log())
        log_dir.mkdir(parents=True, exist_ok=True)
        cls._cleanup_logs(log_dir)
        if dev:
            log_path = log_dir / "dev.log"
        else:
            log_path = log_dir / datetime.now().strftime("%Y-%m-%dT%H%M%S.log")

        _config.log_file_path = str(log_path)
        _config._file_handle = log_path.open("w", encoding="utf-8")

    @classmethod
    def file(cls) -> str:
        """Current log file path, or an empty string."""
        return _config.log_file_path or ""

    @classmethod
    def _cleanup_logs(cls, log_dir: Path) -> None:
        existing = sorted(log_dir.glob(LOG_FILE_PATTERN), key=lambda p: p.stat().st_mtime)
        # one slot is reserved for the file about to be opened
        excess = len(existing) - (KEEP_LOG_FILES - 1)
        for stale in existing[:max(excess, 0)]:
            stale.unlink(missing_ok=True)

    @classmethod
    def close(cls) -> None:
        """Close the log file handle if open."""
        if _config._file_handle:
            _config._file_handle.close()
            _config._file_handle = None
