"""Centralized logger for the salon client-list core.

Lines go to stderr so that CSV written to stdout by scripts stays clean.
Level comes from LOG_LEVEL (debug, info, warn, error) and can be changed at
runtime with ``set_level``.
"""

import os
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.text import Text

console = Console(stderr=True)

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
STYLES = {"debug": "dim", "info": "cyan", "warn": "yellow", "error": "red bold"}
_current_level = LEVELS.get(os.getenv("LOG_LEVEL", "info").lower(), LEVELS["info"])


def set_level(level: str) -> None:
    global _current_level
    _current_level = LEVELS.get(level.lower(), _current_level)


def get_level() -> str:
    for name, value in LEVELS.items():
        if value == _current_level:
            return name
    return "info"


def _should_log(level: str) -> bool:
    return LEVELS.get(level, 0) >= _current_level


def _format_value(value: Any, max_length: int = 150) -> str:
    if value is None:
        return "None"
    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=str)
    s = str(value)
    if len(s) > max_length:
        return s[:max_length] + "..."
    return s


def _render(level: str, context: str, message: str, data: dict) -> Text:
    # Text.assemble never parses markup, so client names and notes print as-is.
    line = Text.assemble(
        (datetime.now().strftime("%H:%M:%S.%f")[:-3], "dim"),
        " ",
        (level.upper().ljust(5), STYLES.get(level, "white")),
        " ",
        (f"[{context}]", "blue"),
        " ",
        message,
    )
    if data:
        line.append(" | " + ", ".join(f"{k}={_format_value(v)}" for k, v in data.items()))
    return line


def log(level: str, context: str, message: str, **data):
    if not _should_log(level):
        return
    console.print(_render(level, context, message, data), highlight=False)


def debug(context: str, message: str, **data):
    log("debug", context, message, **data)


def info(context: str, message: str, **data):
    log("info", context, message, **data)


def warn(context: str, message: str, **data):
    log("warn", context, message, **data)


def error(context: str, message: str, **data):
    log("error", context, message, **data)


def exception(context: str, message: str, exc: BaseException, **data):
    """Logs ``exc`` at error level with its type and message."""
    log("error", context, message, error_type=type(exc).__name__, error=str(exc), **data)
