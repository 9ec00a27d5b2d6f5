"""
Token Errors
============
Exception taxonomy for the soft token library.

Error messages carry identifiers and counters only, never key material.
"""

from typing import Optional


class YKSoftError(Exception):
    """Base exception for all soft token errors."""

    def __init__(self, message: str, identifier: Optional[str] = None):
        self.message = message
        self.identifier = identifier
        super().__init__(message)


class DuplicateIdentifier(YKSoftError):
    """Raised when a record with the same identifier already exists."""

    def __init__(self, identifier: str):
        super().__init__(f"Token '{identifier}' already exists", identifier)


class NotFound(YKSoftError):
    """Raised when no record exists for the identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"Token '{identifier}' not found", identifier)


class CorruptStore(YKSoftError):
    """Raised when a persisted record fails to parse or fails its integrity check."""

    def __init__(self, identifier: str, reason: str):
        self.reason = reason
        super().__init__(f"Token '{identifier}' is corrupt: {reason}", identifier)


class CounterRegression(YKSoftError):
    """Raised when a counter update would not move the counter forward."""

    def __init__(self, identifier: str, current: int, requested: int):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Token '{identifier}' counter cannot move from {current} to {requested}",
            identifier,
        )


class UnsupportedDigitCount(YKSoftError, ValueError):
    """Raised when a passcode width outside the supported set is requested."""

    def __init__(self, digits: int, supported=None):
        self.digits = digits
        self.supported = tuple(sorted(supported)) if supported else ()
        super().__init__(f"Unsupported digit count {digits} (supported: {self.supported})")


class RandomSourceUnavailable(YKSoftError):
    """Raised when the operating system CSPRNG cannot supply random bytes."""
    pass


class StorageIOFailure(YKSoftError):
    """
    Raised when the filesystem fails underneath the store.

    The state of the operation is uncertain; callers must not assume it
    either happened or did not.
    """

    def __init__(self, message: str, identifier: Optional[str] = None, operation: str = "unknown"):
        self.operation = operation
        super().__init__(f"[{operation}] {message}", identifier)
