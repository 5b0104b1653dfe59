"""Core tablerewind utilities.

This module exports configuration, logging and exceptions for use
throughout the package.
"""

from tablerewind.core.config import Settings, get_settings
from tablerewind.core.exceptions import InstallationError, TableRewindError
from tablerewind.core.logging import (
    LoggingContext,
    bind_recording_window,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "InstallationError",
    "TableRewindError",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "bind_recording_window",
    "clear_context",
]
