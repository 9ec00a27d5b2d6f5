"""
Secret Store
============
Durable, crash-safe persistence of token records.

One file per record, written to a temporary file, fsynced and atomically
moved into place. Every mutation runs under the record's file lock, so
concurrent processes sharing the directory cannot interleave a
read-modify-write of the same record.
"""

import os
import re
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Union

import structlog

from yksoft_core.errors import (
    CorruptStore,
    CounterRegression,
    DuplicateIdentifier,
    NotFound,
    StorageIOFailure,
)
from yksoft_core.hotp.engine import MAX_COUNTER

from .codec import decode_record, encode_record
from .locking import RecordLock
from .models import TokenInfo, TokenRecord

logger = structlog.get_logger(__name__)

RECORD_SUFFIX = ".json"
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def validate_identifier(identifier: str) -> str:
    """
    Check that an identifier is safe to use as a file name.

    Raises:
        ValueError: identifier is empty, too long, or has path characters
    """
    if not isinstance(identifier, str) or not IDENTIFIER_PATTERN.match(identifier):
        raise ValueError(f"Invalid token identifier: {identifier!r}")
    return identifier


class SecretStore:
    """File-backed token record store."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()
        self._local = threading.local()
        try:
            self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOFailure(str(e), operation="init") from e

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def record_path(self, identifier: str) -> Path:
        return self.directory / f"{validate_identifier(identifier)}{RECORD_SUFFIX}"

    def lock_path(self, identifier: str) -> Path:
        return self.directory / f".{validate_identifier(identifier)}.lock"

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------
    def _held(self) -> Dict[str, int]:
        held = getattr(self._local, "held", None)
        if held is None:
            held = self._local.held = {}
        return held

    @contextmanager
    def lock(self, identifier: str) -> Iterator[None]:
        """
        Hold the exclusive lock for one record.

        Re-entrant within a thread, so store operations called inside the
        block reuse the lock already held.
        """
        held = self._held()
        if identifier in held:
            held[identifier] += 1
            try:
                yield
            finally:
                held[identifier] -= 1
            return

        record_lock = RecordLock(self.lock_path(identifier))
        try:
            record_lock.acquire()
        except OSError as e:
            raise StorageIOFailure(str(e), identifier, operation="lock") from e
        held[identifier] = 1
        try:
            yield
        finally:
            del held[identifier]
            record_lock.release()

    # ------------------------------------------------------------------
    # Low level I/O
    # ------------------------------------------------------------------
    def _read(self, identifier: str) -> TokenRecord:
        path = self.record_path(identifier)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            raise NotFound(identifier) from None
        except OSError as e:
            raise StorageIOFailure(str(e), identifier, operation="read") from e
        return decode_record(identifier, data)

    def _write(self, record: TokenRecord, operation: str) -> None:
        path = self.record_path(record.identifier)
        data = encode_record(record)
        try:
            fd, tmp = tempfile.mkstemp(
                prefix=f".{record.identifier}.", suffix=".tmp", dir=self.directory
            )
        except OSError as e:
            raise StorageIOFailure(str(e), record.identifier, operation=operation) from e

        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, path)
            self._sync_directory()
        except OSError as e:
            self._discard(tmp)
            raise StorageIOFailure(str(e), record.identifier, operation=operation) from e
        except BaseException:
            self._discard(tmp)
            raise

    def _sync_directory(self) -> None:
        if os.name == "nt":
            return
        dir_fd = os.open(self.directory, os.O_RDONLY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)

    @staticmethod
    def _discard(tmp: str) -> None:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove temporary file", path=tmp, error=str(e))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def exists(self, identifier: str) -> bool:
        return self.record_path(identifier).is_file()

    def create(self, record: TokenRecord) -> TokenRecord:
        """
        Persist a new record.

        Raises:
            DuplicateIdentifier: a record with this identifier exists
            StorageIOFailure: the write failed; the record may or may not exist
        """
        identifier = validate_identifier(record.identifier)
        with self.lock(identifier):
            if self.record_path(identifier).exists():
                raise DuplicateIdentifier(identifier)
            self._write(record, operation="create")

        logger.info("Token created", identifier=identifier, label=record.label)
        return record

    def load(self, identifier: str) -> TokenRecord:
        """
        Load the current record.

        Raises:
            NotFound: no record for the identifier
            CorruptStore: the stored bytes fail to parse or verify
            StorageIOFailure: the read failed
        """
        return self._read(validate_identifier(identifier))

    def advance_counter(self, identifier: str, new_value: int) -> TokenRecord:
        """
        Durably move a record's counter forward.

        The value is on stable storage when this returns.

        Args:
            identifier: Token identifier
            new_value: New moving factor, strictly above the stored one

        Returns:
            The updated record

        Raises:
            CounterRegression: new_value is not above the stored value
            ValueError: new_value is outside the 64-bit counter range
        """
        if isinstance(new_value, bool) or not isinstance(new_value, int):
            raise ValueError("Counter must be an integer")
        if new_value > MAX_COUNTER:
            raise ValueError("Counter exceeds the 64-bit range; the token must be re-enrolled")

        with self.lock(identifier):
            current = self._read(identifier)
            if new_value <= current.moving_factor:
                logger.warning(
                    "Counter regression rejected",
                    identifier=identifier,
                    current=current.moving_factor,
                    requested=new_value,
                )
                raise CounterRegression(identifier, current.moving_factor, new_value)

            updated = replace(
                current,
                moving_factor=new_value,
                last_used_at=datetime.now(timezone.utc),
            )
            self._write(updated, operation="advance")

        logger.debug("Counter advanced", identifier=identifier, counter=new_value)
        return updated

    def relabel(self, identifier: str, label: str) -> TokenRecord:
        """Change the display label of a record."""
        with self.lock(identifier):
            current = self._read(identifier)
            updated = replace(current, label=label)
            self._write(updated, operation="relabel")

        logger.info("Token relabeled", identifier=identifier, label=label)
        return updated

    def delete(self, identifier: str) -> None:
        """
        Remove a record.

        Raises:
            NotFound: no record for the identifier
        """
        path = self.record_path(identifier)
        with self.lock(identifier):
            try:
                path.unlink()
            except FileNotFoundError:
                raise NotFound(identifier) from None
            except OSError as e:
                raise StorageIOFailure(str(e), identifier, operation="delete") from e
            try:
                self._sync_directory()
            except OSError as e:
                raise StorageIOFailure(str(e), identifier, operation="delete") from e

        logger.info("Token deleted", identifier=identifier)

    def list(self) -> List[TokenInfo]:
        """
        List every record in the store.

        Records that fail verification are reported with ``corrupt=True``
        rather than skipped.
        """
        try:
            entries = sorted(self.directory.iterdir())
        except OSError as e:
            raise StorageIOFailure(str(e), operation="list") from e

        tokens = []
        for entry in entries:
            if entry.name.startswith(".") or entry.suffix != RECORD_SUFFIX:
                continue
            identifier = entry.stem
            if not IDENTIFIER_PATTERN.match(identifier) or not entry.is_file():
                continue
            try:
                tokens.append(self._read(identifier).info)
            except NotFound:
                continue
            except CorruptStore as e:
                logger.warning("Corrupt token in store", identifier=identifier, reason=e.reason)
                tokens.append(TokenInfo(identifier=identifier, corrupt=True))
        return tokens
