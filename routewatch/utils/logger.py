"""Structured logging utilities for RouteWatch.

This module provides async-safe structured logging using structlog.
Outbound check logs carry the per-check ``check_id`` for tracing.
"""

import logging
import sys
import time
from contextvars import ContextVar
from typing import Optional

import structlog
from structlog.types import EventDict, Processor

# Context variable for outbound check tracking
check_id_var: ContextVar[Optional[str]] = ContextVar("check_id", default=None)


def add_check_id(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add check_id to log context if available."""
    check_id = check_id_var.get()
    if check_id:
        event_dict["check_id"] = check_id
    return event_dict


def add_timestamp(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add epoch timestamp to log entries."""
    event_dict["timestamp"] = time.time()
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON format. If False, use console format.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_check_id,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.extend([
            structlog.dev.ConsoleRenderer(colors=True),
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "routewatch") -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically module name)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def set_check_id(check_id: str) -> None:
    """Set the check ID in context for all subsequent logs."""
    check_id_var.set(check_id)


def clear_check_id() -> None:
    """Clear the check ID from context."""
    check_id_var.set(None)


# Initialize logging with sensible defaults.
# Reconfigured by main.py based on environment.
configure_logging()
