"""
YKSoft Structured Logging
=========================

Structured logging setup for the token library and the CLI.

Usage:
    from yksoft_core.logging import setup_logging, log_event

    setup_logging(level="INFO", json_output=True)
    log_event("token.enrolled", identifier="ddddcbdefghi")

Key material and passcodes never reach a handler: the ``redact_secrets``
processor runs ahead of every renderer.
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog

REDACTED = "[REDACTED]"

# Event keys that must never be rendered
SENSITIVE_KEYS = frozenset({
    "secret",
    "secret_hex",
    "encoded_secret",
    "key",
    "code",
    "otp",
    "passcode",
})


# =============================================================================
# Processors
# =============================================================================

def redact_secrets(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Replace values of sensitive keys with a fixed marker."""
    for name in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[name] = REDACTED
    return event_dict


# =============================================================================
# Setup Functions
# =============================================================================

def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream=None,
) -> logging.Logger:
    """
    Configure logging for the library.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to output JSON lines instead of console text
        stream: Output stream (defaults to stderr so CLI output stays clean)

    Returns:
        Configured root logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    structlog.get_logger("yksoft_core").debug("logging.configured", level=level.upper())

    return root_logger


# =============================================================================
# Logging Functions
# =============================================================================

def log_event(event_type: str, level: str = "INFO", **kwargs) -> None:
    """
    Log a lifecycle event on the ``yksoft_core.events`` logger.

    Sensitive keys are redacted here as well, so events stay clean even
    when structlog was configured without ``redact_secrets``.

    Args:
        event_type: Type of event (e.g., "token.enrolled")
        level: Log level
        **kwargs: Additional event data
    """
    logger = structlog.get_logger("yksoft_core.events")
    method = getattr(logger, level.lower(), logger.info)
    method(event_type, **redact_secrets(None, level.lower(), kwargs))
