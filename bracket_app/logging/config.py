"""
Centralized logging configuration for the bracket trading assistant.

All components log through structlog on top of the standard library
logging module so order flow events come out as structured key/value
records (console or JSON).
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger

_SENSITIVE_KEYS = frozenset({"signature", "api_secret", "apiSecret", "X-MBX-APIKEY"})


def redact_secrets(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor masking credentials that end up in an event."""
    for key in _SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
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


def get_order_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for order flow events.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structlog logger bound with the orders subsystem
    """
    return get_logger(name).bind(
        subsystem="orders",
        audit_trail=True
    )


def log_order_submission(
    logger: FilteringBoundLogger,
    operation: str,
    symbol: str,
    payload: dict[str, Any]
) -> None:
    """
    Log an order about to be sent to the exchange.

    Args:
        logger: Structlog logger instance
        operation: Engine operation submitting the order
        symbol: Trading pair
        payload: Wire parameters (already decimal strings)
    """
    logger.bind(
        operation=operation,
        symbol=symbol,
        payload=payload,
    ).info("Submitting order")


def log_order_rejection(
    logger: FilteringBoundLogger,
    operation: str,
    symbol: str,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an order rejected locally before submission.

    Args:
        logger: Structlog logger instance
        operation: Engine operation that rejected the order
        symbol: Trading pair
        reason: Why the order was rejected
        context: Additional context data
    """
    bound_logger = logger.bind(
        operation=operation,
        symbol=symbol,
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.warning("Order rejected before submission")
