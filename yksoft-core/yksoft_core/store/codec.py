"""
Token Record Codec
==================
JSON serialization of token records with an integrity checksum.

Each file holds every record field plus a SHA-256 checksum computed over
the canonical JSON (sorted keys, compact separators) of the other fields.
"""

import binascii
import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from yksoft_core.config import SUPPORTED_ALGORITHMS, SUPPORTED_DIGITS
from yksoft_core.errors import CorruptStore
from yksoft_core.hotp.engine import MAX_COUNTER

from .models import TokenRecord

FORMAT_VERSION = 1

# Clock skew tolerated before a last-use timestamp counts as time travel
CLOCK_SKEW = timedelta(minutes=5)


def compute_checksum(fields: Dict[str, Any]) -> str:
    """
    Compute the integrity checksum for a set of record fields.

    Args:
        fields: Record fields, excluding the checksum itself

    Returns:
        SHA-256 hex digest of the canonical JSON
    """
    canonical = json.dumps(fields, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(canonical.encode()).hexdigest()


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def encode_record(record: TokenRecord) -> bytes:
    """Serialize a record to the on-disk representation."""
    fields = {
        "version": FORMAT_VERSION,
        "identifier": record.identifier,
        "label": record.label,
        "secret": record.secret.hex(),
        "moving_factor": record.moving_factor,
        "digits": record.digits,
        "algorithm": record.algorithm,
        "created_at": _format_time(record.created_at),
        "last_used_at": _format_time(record.last_used_at),
    }
    fields["checksum"] = compute_checksum(fields)
    return (json.dumps(fields, indent=2, sort_keys=True) + "\n").encode()


def decode_record(identifier: str, data: bytes, now: Optional[datetime] = None) -> TokenRecord:
    """
    Parse and verify the on-disk representation of a record.

    Args:
        identifier: Identifier the file is stored under
        data: Raw file contents
        now: Reference time for the time travel check

    Returns:
        The verified record

    Raises:
        CorruptStore: unparseable data, checksum mismatch, or invalid fields
    """
    try:
        fields = json.loads(data.decode())
    except (UnicodeDecodeError, ValueError):
        raise CorruptStore(identifier, "unreadable data") from None

    if not isinstance(fields, dict):
        raise CorruptStore(identifier, "unexpected structure")

    stored_checksum = fields.pop("checksum", None)
    if not isinstance(stored_checksum, str):
        raise CorruptStore(identifier, "missing checksum")
    if not hmac.compare_digest(compute_checksum(fields), stored_checksum):
        raise CorruptStore(identifier, "checksum mismatch")

    if fields.get("version") != FORMAT_VERSION:
        raise CorruptStore(identifier, f"unsupported format version {fields.get('version')!r}")

    try:
        record = TokenRecord(
            identifier=fields["identifier"],
            secret=bytes.fromhex(fields["secret"]),
            moving_factor=fields["moving_factor"],
            label=fields["label"],
            digits=fields["digits"],
            algorithm=fields["algorithm"],
            created_at=_parse_time(fields["created_at"]),
            last_used_at=_parse_time(fields["last_used_at"]),
        )
    except (KeyError, TypeError, ValueError, binascii.Error):
        # Parser messages may quote the secret field
        raise CorruptStore(identifier, "invalid field") from None

    if record.identifier != identifier:
        raise CorruptStore(identifier, "identifier mismatch")
    if not isinstance(record.label, str):
        raise CorruptStore(identifier, "invalid label")
    if not record.secret:
        raise CorruptStore(identifier, "empty secret")
    if (
        isinstance(record.moving_factor, bool)
        or not isinstance(record.moving_factor, int)
        or not 0 <= record.moving_factor <= MAX_COUNTER
    ):
        raise CorruptStore(identifier, "moving factor out of range")
    if record.digits not in SUPPORTED_DIGITS:
        raise CorruptStore(identifier, f"unsupported digit count {record.digits!r}")
    if record.algorithm not in SUPPORTED_ALGORITHMS:
        raise CorruptStore(identifier, f"unsupported algorithm {record.algorithm!r}")

    now = now or datetime.now(timezone.utc)
    if record.last_used_at is not None and record.last_used_at > now + CLOCK_SKEW:
        raise CorruptStore(identifier, "last use time travel detected")

    return record
