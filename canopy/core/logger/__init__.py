"""
Logging and Reporting Package.

Centralizes logger initialization and the formatted summaries printed
after a network has been assembled.

Available Components:

- Logger: Installs and removes console and rotating-file handlers.
- LogStyle: Unified logging style constants.
- Summary functions: Per-stage network tables and forward-pass checks.
"""

import logging

from ..constants import LOGGER_NAME
from .logger import ColorFormatter, Logger
from .styles import LogStyle
from .summary import count_parameters, log_forward_check, log_network_summary

# Silent unless an application (or Logger.setup) configures output
logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())

__all__ = [
    "Logger",
    "ColorFormatter",
    "LogStyle",
    "count_parameters",
    "log_network_summary",
    "log_forward_check",
]
