"""
HOTP Generation
===============
Stateless RFC 4226 passcode engine.
"""

from .engine import generate, dynamic_truncate, counter_bytes, MAX_COUNTER

__all__ = [
    "generate",
    "dynamic_truncate",
    "counter_bytes",
    "MAX_COUNTER",
]
