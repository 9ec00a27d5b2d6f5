"""
HOTP Engine
===========
Counter-based one-time passcode computation (RFC 4226).

Pure functions: no I/O, no logging, no state.
"""

import hashlib
import hmac
import struct

from yksoft_core.config import SUPPORTED_ALGORITHMS, SUPPORTED_DIGITS, is_supported_digits
from yksoft_core.errors import UnsupportedDigitCount

MAX_COUNTER = 2 ** 64 - 1

_DIGESTS = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}


def counter_bytes(counter: int) -> bytes:
    """Encode a counter as the 8-byte big-endian message."""
    if counter < 0 or counter > MAX_COUNTER:
        raise ValueError("Counter must be an unsigned 64-bit integer")
    return struct.pack(">Q", counter)


def dynamic_truncate(digest: bytes) -> int:
    """
    Apply RFC 4226 dynamic truncation to an HMAC digest.

    The low nibble of the last byte selects an offset; the four bytes at
    that offset, with the top bit cleared, form a 31-bit integer.

    Args:
        digest: HMAC output (at least 20 bytes)

    Returns:
        31-bit unsigned integer
    """
    offset = digest[-1] & 0x0F
    return (
        ((digest[offset] & 0x7F) << 24)
        | (digest[offset + 1] << 16)
        | (digest[offset + 2] << 8)
        | digest[offset + 3]
    )


def generate(secret: bytes, counter: int, digits: int = 6, algorithm: str = "SHA1") -> str:
    """
    Generate the passcode for a counter.

    Args:
        secret: Raw key bytes
        counter: Moving factor
        digits: Passcode width (6, 7 or 8)
        algorithm: HMAC hash name (SHA1, SHA256, SHA512)

    Returns:
        Zero-padded decimal passcode of exactly ``digits`` characters

    Raises:
        UnsupportedDigitCount: digits outside the supported set
        ValueError: empty secret, unknown algorithm, or counter out of range
    """
    if not is_supported_digits(digits):
        raise UnsupportedDigitCount(digits, SUPPORTED_DIGITS)
    if not secret:
        raise ValueError("Secret must not be empty")
    name = algorithm.upper()
    if name not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    digest = hmac.new(bytes(secret), counter_bytes(counter), _DIGESTS[name]).digest()
    value = dynamic_truncate(digest) % (10 ** digits)
    return str(value).zfill(digits)
