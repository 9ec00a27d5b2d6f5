"""
YKSoft Logging Module

Structured logging with secret redaction.
"""

from .structured import (
    # Setup
    setup_logging,

    # Logging functions
    log_event,

    # Processors
    redact_secrets,
    REDACTED,
    SENSITIVE_KEYS,
)

__all__ = [
    "setup_logging",
    "log_event",
    "redact_secrets",
    "REDACTED",
    "SENSITIVE_KEYS",
]
