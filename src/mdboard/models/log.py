"""Run log collection and result summaries.

Every top-level operation collects leveled LogEntry records in a RunLog.
Entries are also forwarded to the standard logging module, so `-v` output and
the returned run log tell the same story. Success is computed from the
collected entries, never inferred from exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Severity of a run log entry."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class LogEntry:
    """A single leveled message with optional structured payload."""

    level: LogLevel
    message: str
    payload: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.payload:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.payload.items())
        return f"{self.message} ({details})"


class RunLog:
    """Collects log entries for the duration of one operation."""

    def __init__(self, name: str | None = None) -> None:
        self._logger = logging.getLogger(name) if name else logger
        self.entries: list[LogEntry] = []

    def log(self, level: LogLevel, message: str, **payload: Any) -> LogEntry:
        entry = LogEntry(level, message, payload)
        self.entries.append(entry)
        self._logger.log(_STDLIB_LEVELS[level], "%s", entry)
        return entry

    def debug(self, message: str, **payload: Any) -> LogEntry:
        return self.log(LogLevel.DEBUG, message, **payload)

    def info(self, message: str, **payload: Any) -> LogEntry:
        return self.log(LogLevel.INFO, message, **payload)

    def warn(self, message: str, **payload: Any) -> LogEntry:
        return self.log(LogLevel.WARN, message, **payload)

    def error(self, message: str, **payload: Any) -> LogEntry:
        return self.log(LogLevel.ERROR, message, **payload)

    def extend(self, entries: list[LogEntry]) -> None:
        """Adopt entries produced elsewhere (already forwarded to logging)."""
        self.entries.extend(entries)

    def by_level(self, level: LogLevel) -> list[LogEntry]:
        return [e for e in self.entries if e.level == level]

    @property
    def errors(self) -> list[LogEntry]:
        return self.by_level(LogLevel.ERROR)

    @property
    def warnings(self) -> list[LogEntry]:
        return self.by_level(LogLevel.WARN)

    @property
    def has_errors(self) -> bool:
        return any(e.level == LogLevel.ERROR for e in self.entries)


@dataclass
class SyncResult:
    """Result of a markdown -> board sync."""

    success: bool = True
    processed_files: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[LogEntry] = field(default_factory=list)
    dry_run: bool = False

    @classmethod
    def from_log(cls, log: RunLog, **counts: Any) -> SyncResult:
        """Build a result whose success is derived from the collected log."""
        errors = log.errors
        return cls(success=not errors, errors=errors, **counts)


@dataclass
class ExportResult:
    """Result of a board -> markdown export."""

    success: bool = True
    output_dir: str = ""
    files: list[str] = field(default_factory=list)  # Every file considered
    written: int = 0  # Files created or updated
    unchanged: int = 0  # Files already up to date
    errors: list[LogEntry] = field(default_factory=list)

    @classmethod
    def from_log(cls, log: RunLog, **counts: Any) -> ExportResult:
        """Build a result whose success is derived from the collected log."""
        errors = log.errors
        return cls(success=not errors, errors=errors, **counts)


@dataclass
class SyncReport:
    """A sync result together with the full run log."""

    result: SyncResult
    logs: list[LogEntry]


@dataclass
class ExportReport:
    """An export result together with the full run log."""

    result: ExportResult
    logs: list[LogEntry]
