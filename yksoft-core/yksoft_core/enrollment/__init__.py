"""
Token Enrollment
================
New token creation and registration payloads.
"""

from .models import RegistrationPayload, SecretEncoding, encode_secret
from .modhex import modhex_encode, modhex_decode, is_modhex, MODHEX_ALPHABET
from .manager import EnrollmentManager, generate_identifier, random_bytes

__all__ = [
    # Models
    "RegistrationPayload",
    "SecretEncoding",
    "encode_secret",
    # ModHex
    "modhex_encode",
    "modhex_decode",
    "is_modhex",
    "MODHEX_ALPHABET",
    # Manager
    "EnrollmentManager",
    "generate_identifier",
    "random_bytes",
]
