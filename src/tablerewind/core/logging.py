"""Structured logging for tablerewind.

This module configures structlog for structured logging. Interception runs
inside other people's test suites, so configuration is opt-in: loggers work
with structlog defaults until configure_logging() is called.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from tablerewind.core.config import Settings, get_settings


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor adding the logger name.

    PrintLogger has no name, so those entries are attributed to tablerewind.
    """
    event_dict["logger"] = getattr(logger, "name", "tablerewind")
    return event_dict


def rename_message_field(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor renaming structlog's 'event' key to 'message' for JSON output."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structured logging.

    Console rendering for development and testing, JSON for production or
    when log_format is "json".

    Args:
        settings: Optional settings instance. If not provided, will load from environment.
    """
    if settings is None:
        settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "console" and not settings.is_production:
        renderer: Processor = structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        )
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        shared_processors.append(rename_message_field)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Configure standard logging for SQLAlchemy and other libraries
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level),
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name. If not provided, uses 'tablerewind'.

    Returns:
        BoundLogger: Structured logger instance.
    """
    return structlog.get_logger(name or "tablerewind")


class LoggingContext:
    """Context manager for adding logging context.

    Example:
        with LoggingContext(test_case="test_signup"):
            logger.info("Recording window opened")  # Will include test_case
    """

    def __init__(self, **kwargs: str) -> None:
        """Initialize logging context with key-value pairs.

        Args:
            **kwargs: Key-value pairs to add to logging context.
        """
        self.context = kwargs

    def __enter__(self) -> "LoggingContext":
        """Enter the context and add context variables."""
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context and remove the bound variables."""
        structlog.contextvars.unbind_contextvars(*self.context.keys())


def bind_recording_window(window: str) -> None:
    """Bind a recording window label to the current logging context.

    Reset collaborators typically call this when a test case starts so that
    every recorded table is logged with the test it belongs to.

    Args:
        window: Label of the recording window (usually the test node id).
    """
    structlog.contextvars.bind_contextvars(recording_window=window)


def clear_context() -> None:
    """Clear all context variables from the current logging context."""
    structlog.contextvars.clear_contextvars()
