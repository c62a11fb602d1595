"""
Shared logging configuration for the relay provider.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Context variables for correlation IDs
relay_id_var: ContextVar[Optional[str]] = ContextVar('relay_id', default=None)
chain_id_var: ContextVar[Optional[str]] = ContextVar('chain_id', default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_correlation_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Extract service name from logger name
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        service_name = logger_name.split(".")[0]
        event_dict["service"] = service_name

    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add correlation context to log events."""
    relay_id = relay_id_var.get()
    if relay_id:
        event_dict["relay_id"] = relay_id

    chain_id = chain_id_var.get()
    if chain_id:
        event_dict["chain_id"] = chain_id

    return event_dict


def set_relay_context(relay_id: Optional[str] = None, chain_id: Optional[str] = None) -> str:
    """Set relay correlation context for the current task."""
    if relay_id is None:
        relay_id = str(uuid.uuid4())
    relay_id_var.set(relay_id)
    if chain_id:
        chain_id_var.set(chain_id)
    return relay_id


def clear_context():
    """Clear all context variables."""
    relay_id_var.set(None)
    chain_id_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
