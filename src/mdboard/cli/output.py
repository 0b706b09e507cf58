"""Colorful CLI output helpers."""

import sys

from ..models.log import LogEntry, LogLevel

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
DIM = "\033[2m"
RESET = "\033[0m"
CHECK = "✓"  # ✓
BULLET = "•"  # •
CROSS = "✗"  # ✗
WARN = "!"


def _supports_color() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _colorize(text: str, color: str) -> str:
    """Apply color to text if terminal supports it."""
    if _supports_color():
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print success message with green checkmark."""
    print(f"{_colorize(CHECK, GREEN)} {message}")


def info(message: str) -> None:
    """Print info message with yellow bullet."""
    print(f"{_colorize(BULLET, YELLOW)} {message}")


def warning(message: str) -> None:
    """Print warning message with yellow exclamation mark."""
    print(f"{_colorize(WARN, YELLOW)} {message}")


def header(message: str) -> None:
    """Print header message in blue."""
    print(_colorize(message, BLUE))


def error(message: str) -> None:
    """Print error message with red cross."""
    print(f"{_colorize(CROSS, RED)} {message}")


def log_entries(entries: list[LogEntry], show_debug: bool = False) -> None:
    """Print run log entries, one line each."""
    for entry in entries:
        if entry.level == LogLevel.ERROR:
            error(str(entry))
        elif entry.level == LogLevel.WARN:
            warning(str(entry))
        elif entry.level == LogLevel.INFO:
            info(str(entry))
        elif show_debug:
            print(_colorize(f"  {entry}", DIM))
