"""
Token Session
=============
Passcode issuing with persist-before-display ordering.
"""

from .token_session import TokenSession, IssuedCode

__all__ = [
    "TokenSession",
    "IssuedCode",
]
