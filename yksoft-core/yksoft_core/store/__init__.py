"""
Token Store
===========
Crash-safe, lock-guarded persistence of soft token records.
"""

from .models import TokenRecord, TokenInfo
from .codec import encode_record, decode_record, compute_checksum, FORMAT_VERSION
from .locking import RecordLock
from .secret_store import SecretStore, validate_identifier

__all__ = [
    # Models
    "TokenRecord",
    "TokenInfo",
    # Codec
    "encode_record",
    "decode_record",
    "compute_checksum",
    "FORMAT_VERSION",
    # Locking
    "RecordLock",
    # Store
    "SecretStore",
    "validate_identifier",
]
