"""
Centralized logging configuration for the signal relay.

structlog runs on the stdlib logging backend. Besides the process-wide
setup, this module holds the audit loggers for authentication decisions and
broadcast summaries, which tag their events with a subsystem and
``audit_trail=True`` so they can be filtered out of the general stream.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _build_processors(
    format_json: bool,
    include_timestamp: bool,
    include_caller: bool,
    extra_processors: Optional[list]
) -> list:
    """Processor chain shared by console and JSON output."""
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.MODULE,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    processors.extend(extra_processors or [])

    # Renderer must come last
    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    return processors


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog on top of stdlib logging for the relay process.

    Safe to call more than once; the latest call replaces earlier handlers.

    Args:
        level: One of LOG_LEVELS, case-insensitive
        format_json: If True, output JSON lines; otherwise console output
        include_timestamp: Include a UTC ISO timestamp
        include_caller: Include module and line number
        extra_processors: Processors inserted before the renderer

    Raises:
        ValueError: If level is not a known level name
    """
    name = str(level).upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}, expected one of {', '.join(LOG_LEVELS)}")

    # structlog does the formatting; stdlib only routes to stdout
    logging.basicConfig(
        level=logging.getLevelName(name),
        stream=sys.stdout,
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=_build_processors(format_json, include_timestamp, include_caller,
                                     extra_processors),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_auth_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for signal authentication decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger bound to the authentication audit trail
    """
    return get_logger(name).bind(
        subsystem="authentication",
        audit_trail=True
    )


def get_broadcast_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for fan-out broadcasts.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger bound to the broadcast audit trail
    """
    return get_logger(name).bind(
        subsystem="broadcast",
        audit_trail=True
    )


def log_auth_decision(
    logger: FilteringBoundLogger,
    accepted: bool,
    symbol: Optional[str],
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a signal authentication decision with standardized format.

    Args:
        logger: Structlog logger instance
        accepted: Whether the signature matched
        symbol: Symbol of the signal being checked
        reason: Detailed reason for the decision
        context: Additional context data
    """
    bound_logger = logger.bind(
        auth_result="ACCEPT" if accepted else "REJECT",
        symbol=symbol,
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if accepted:
        bound_logger.info("auth_decision")
    else:
        bound_logger.warning("auth_decision")


def log_broadcast_summary(
    logger: FilteringBoundLogger,
    signal_id: str,
    symbol: str,
    recipients: int,
    persisted: int,
    notified: int,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of one fan-out broadcast.

    Args:
        logger: Structlog logger instance
        signal_id: Id shared by every recipient copy
        symbol: Traded symbol
        recipients: Size of the subscriber snapshot
        persisted: Inbox entries written
        notified: Push notifications delivered
        context: Additional context data
    """
    bound_logger = logger.bind(
        signal_id=signal_id,
        symbol=symbol,
        recipients=recipients,
        persisted=persisted,
        notified=notified,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if persisted < recipients:
        bound_logger.warning("broadcast_partial")
    else:
        bound_logger.info("broadcast_complete")
