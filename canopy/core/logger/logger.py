"""
Logging Management Module

Library code only ever calls ``logging.getLogger(LOGGER_NAME)`` and never
installs output handlers, so records flow to whatever the host application
configured. Entry points (the ``canopy`` CLI, scripts) call ``Logger.setup``
to own the output:

    - Colorized console on a TTY, plain text otherwise
    - Optional rotating log file per run
    - ``Logger.reset`` removes exactly what ``setup`` installed
"""

from __future__ import annotations

import logging
import os
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ..constants import LOGGER_NAME
from .styles import LogStyle

# Separator characters used to detect decorative lines
_SEPARATOR_CHARS = {"━", "═", "─"}

# Matches subtitle tags like [Stage 2], [Head]
# but NOT data brackets like [3, 4, 6, 3]
_SUBTITLE_RE = re.compile(r"\[([A-Za-z][A-Za-z0-9 ]*)\]")


class ColorFormatter(logging.Formatter):
    """Formatter that applies ANSI colors to console output.

    Colors are applied based on log level and message content:
        - WARNING/ERROR/CRITICAL: yellow/red level prefix
        - Lines with ✓: green
        - Lines with ✗: red
        - Separator lines (━, ═, ─): dim
        - Centered UPPER CASE headers: bold magenta
        - Subtitle tags like [Stage 1], [Head]: bold magenta
    """

    _LEVEL_COLORS = {
        logging.WARNING: LogStyle.YELLOW,
        logging.ERROR: LogStyle.RED,
        logging.CRITICAL: LogStyle.RED + LogStyle.BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with ANSI color codes.

        Colors are applied **only to the message text**; the timestamp and
        level prefix on the left remain uncolored.
        """
        formatted = super().format(record)
        msg = record.getMessage()

        level_color = self._LEVEL_COLORS.get(record.levelno)
        if level_color:
            formatted = formatted.replace(
                record.levelname,
                f"{level_color}{record.levelname}{LogStyle.RESET}",
                1,
            )

        if record.levelno == logging.INFO:
            stripped = msg.strip()

            if stripped and all(c in _SEPARATOR_CHARS for c in stripped):
                return self._color_message_only(formatted, msg, LogStyle.DIM)

            # Centered headers (e.g. "NETWORK SUMMARY - RESNET50")
            if (
                stripped == stripped.upper()
                and len(stripped) > 5
                and any(c.isalpha() for c in stripped)
            ):
                return self._color_message_only(formatted, msg, LogStyle.BOLD + LogStyle.MAGENTA)

            if LogStyle.SUCCESS in msg:
                return self._color_message_only(formatted, msg, LogStyle.GREEN)

        if LogStyle.FAILURE in msg:
            return self._color_message_only(formatted, msg, LogStyle.RED)

        if record.levelno == logging.WARNING:
            return self._color_message_only(formatted, msg, LogStyle.YELLOW)

        if _SUBTITLE_RE.search(msg):
            formatted = self._color_subtitles(formatted, msg)

        return formatted

    def _color_message_only(self, formatted: str, msg: str, color: str) -> str:
        """Apply *color* only to the message portion of *formatted*, leaving the prefix plain."""
        idx = formatted.find(msg)
        if idx == -1:
            return formatted
        prefix = formatted[:idx]
        return f"{prefix}{color}{formatted[idx:]}{LogStyle.RESET}"

    def _color_subtitles(self, formatted: str, msg: str) -> str:
        """Apply bold magenta to ``[Subtitle]`` tags in the message portion only."""
        idx = formatted.find(msg)
        if idx == -1:
            return formatted
        prefix = formatted[:idx]
        colored_msg = _SUBTITLE_RE.sub(
            rf"{LogStyle.BOLD}{LogStyle.MAGENTA}\g<0>{LogStyle.RESET}",
            formatted[idx:],
        )
        return prefix + colored_msg


_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    formatter_cls = ColorFormatter if sys.stdout.isatty() else logging.Formatter
    handler.setFormatter(formatter_cls(_FORMAT, _DATEFMT))
    return handler


def _file_handler(name: str, log_dir: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    handler = RotatingFileHandler(
        log_dir / f"{name}_{timestamp}.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
    return handler


# LOGGER CLASS
class Logger:
    """
    Installs and removes the output handlers of a named logger.

    Nothing is configured at import time. ``setup`` is idempotent: it first
    undoes its own previous call for the same name, so repeated setups (one
    per CLI invocation) never stack handlers.

    Example:
        >>> log = Logger.setup(log_dir=Path("./logs"), level="DEBUG")
        >>> log.info("Building resnet50...")
        >>> Logger.reset()
    """

    _installed: dict[str, list[logging.Handler]] = {}

    @classmethod
    def setup(
        cls,
        name: str = LOGGER_NAME,
        log_dir: Path | None = None,
        level: str = "INFO",
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 5,
    ) -> logging.Logger:
        """
        Route a logger to the console, and to a rotating file when ``log_dir`` is set.

        Args:
            name: Logger identifier.
            log_dir: Directory for the run's log file (None = console only).
            level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL); unknown
                names fall back to INFO.
            max_bytes: Log file size that triggers rotation.
            backup_count: Rotated files kept next to the active one.

        Returns:
            The configured ``logging.Logger``; it no longer propagates to the
            root logger until ``reset`` is called.

        Environment Variables:
            DEBUG: If set to "1", overrides level to DEBUG regardless of level parameter
        """
        cls.reset(name)

        if os.getenv("DEBUG") == "1":
            numeric_level = logging.DEBUG
        else:
            numeric_level = getattr(logging, level.upper(), logging.INFO)

        handlers = [_console_handler()]
        if log_dir is not None:
            handlers.append(_file_handler(name, log_dir, max_bytes, backup_count))

        log = logging.getLogger(name)
        log.setLevel(numeric_level)
        log.propagate = False
        for handler in handlers:
            log.addHandler(handler)
        cls._installed[name] = handlers
        return log

    @classmethod
    def reset(cls, name: str = LOGGER_NAME) -> None:
        """Remove the handlers ``setup`` installed and restore propagation."""
        log = logging.getLogger(name)
        for handler in cls._installed.pop(name, []):
            log.removeHandler(handler)
            handler.close()
        log.setLevel(logging.NOTSET)
        log.propagate = True
