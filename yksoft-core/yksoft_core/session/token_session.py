"""
Token Session
=============
Issues the next passcode for a token.

The counter is durably advanced before the passcode derived from it is
computed, all under the record lock. A crash at any point can skip a
counter value but can never issue the same one twice.
"""

from dataclasses import dataclass, field

import structlog

from yksoft_core.hotp import engine
from yksoft_core.store import SecretStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IssuedCode:
    """A passcode together with the counter it was derived from."""
    identifier: str
    counter: int
    code: str = field(repr=False)

    def __str__(self) -> str:
        return self.code


class TokenSession:
    """Orchestrates passcode generation against a secret store."""

    def __init__(self, store: SecretStore):
        self.store = store

    def issue(self, identifier: str) -> IssuedCode:
        """
        Advance the counter and generate the matching passcode.

        Raises:
            NotFound: unknown identifier
            CorruptStore: the record failed verification
            CounterRegression: another writer moved the counter unexpectedly
            StorageIOFailure: the counter could not be persisted
        """
        with self.store.lock(identifier):
            record = self.store.load(identifier)
            candidate = record.moving_factor + 1
            self.store.advance_counter(identifier, candidate)
            code = engine.generate(record.secret, candidate, record.digits, record.algorithm)
            digits = record.digits
            del record

        logger.info("Passcode issued", identifier=identifier, counter=candidate, digits=digits)
        return IssuedCode(identifier=identifier, counter=candidate, code=code)

    def next_code(self, identifier: str) -> str:
        """Return the next passcode for a token."""
        return self.issue(identifier).code
