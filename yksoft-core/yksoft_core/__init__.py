"""
YKSoft Core Library
===================
Software HOTP token: enrollment, crash-safe counter storage and passcode
generation.
"""

__version__ = "1.0.0"

# Config
from yksoft_core.config import YKSoftConfig, SUPPORTED_DIGITS, SUPPORTED_ALGORITHMS

# Errors
from yksoft_core.errors import (
    YKSoftError,
    DuplicateIdentifier,
    NotFound,
    CorruptStore,
    CounterRegression,
    UnsupportedDigitCount,
    RandomSourceUnavailable,
    StorageIOFailure,
)

# Logging
from yksoft_core.logging import setup_logging, log_event

# HOTP
from yksoft_core.hotp import generate, dynamic_truncate

# Store
from yksoft_core.store import SecretStore, TokenRecord, TokenInfo

# Enrollment
from yksoft_core.enrollment import (
    EnrollmentManager,
    RegistrationPayload,
    SecretEncoding,
    generate_identifier,
)

# Session
from yksoft_core.session import TokenSession, IssuedCode

__all__ = [
    # Config
    "YKSoftConfig",
    "SUPPORTED_DIGITS",
    "SUPPORTED_ALGORITHMS",
    # Errors
    "YKSoftError",
    "DuplicateIdentifier",
    "NotFound",
    "CorruptStore",
    "CounterRegression",
    "UnsupportedDigitCount",
    "RandomSourceUnavailable",
    "StorageIOFailure",
    # Logging
    "setup_logging",
    "log_event",
    # HOTP
    "generate",
    "dynamic_truncate",
    # Store
    "SecretStore",
    "TokenRecord",
    "TokenInfo",
    # Enrollment
    "EnrollmentManager",
    "RegistrationPayload",
    "SecretEncoding",
    "generate_identifier",
    # Session
    "TokenSession",
    "IssuedCode",
]
