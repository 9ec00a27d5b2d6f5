"""
Enrollment Manager
==================
Creates new tokens and renders their registration payload.
"""

import secrets
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from yksoft_core.config import (
    MIN_SECRET_BYTES,
    SUPPORTED_ALGORITHMS,
    SUPPORTED_DIGITS,
    YKSoftConfig,
    is_supported_digits,
)
from yksoft_core.errors import DuplicateIdentifier, RandomSourceUnavailable, UnsupportedDigitCount
from yksoft_core.logging import log_event
from yksoft_core.store import SecretStore, TokenRecord

from .models import RegistrationPayload, SecretEncoding
from .modhex import modhex_encode

logger = structlog.get_logger(__name__)

# Leading public id bytes; modhex "dddd"
IDENTIFIER_PREFIX = b"\x22\x22"
IDENTIFIER_RANDOM_BYTES = 4
DEFAULT_LABEL = "default"


def random_bytes(length: int) -> bytes:
    """
    Read bytes from the operating system CSPRNG.

    Raises:
        RandomSourceUnavailable: the OS cannot supply random bytes
    """
    try:
        return secrets.token_bytes(length)
    except (OSError, NotImplementedError) as e:
        raise RandomSourceUnavailable(f"Secure random source unavailable: {type(e).__name__}") from e


def generate_identifier() -> str:
    """Generate a public token identifier such as ``ddddhcbkvlgn``."""
    return modhex_encode(IDENTIFIER_PREFIX + random_bytes(IDENTIFIER_RANDOM_BYTES))


class EnrollmentManager:
    """Creates soft tokens with fresh secrets."""

    def __init__(
        self,
        store: SecretStore,
        config: Optional[YKSoftConfig] = None,
        identifier_factory: Callable[[], str] = generate_identifier,
    ):
        self.store = store
        self.config = config or YKSoftConfig()
        self.identifier_factory = identifier_factory

    def enroll(
        self,
        label: str = DEFAULT_LABEL,
        digits: Optional[int] = None,
        algorithm: Optional[str] = None,
        encoding: SecretEncoding = SecretEncoding.BASE32,
    ) -> RegistrationPayload:
        """
        Create a new token and return its registration payload.

        Args:
            label: Display name for the token
            digits: Passcode width (defaults to config)
            algorithm: HMAC hash (defaults to config)
            encoding: Secret encoding in the payload

        Returns:
            Registration payload; the only copy of the secret outside the store

        Raises:
            UnsupportedDigitCount: digits outside the supported set
            ValueError: unknown algorithm or configured secret shorter than 128 bits
            RandomSourceUnavailable: the OS CSPRNG failed
            DuplicateIdentifier: identifiers kept colliding after every retry
        """
        digits = self.config.digits if digits is None else digits
        algorithm = (algorithm or self.config.algorithm).upper()
        label = (label or "").strip() or DEFAULT_LABEL
        encoding = SecretEncoding(encoding)

        if not is_supported_digits(digits):
            raise UnsupportedDigitCount(digits, SUPPORTED_DIGITS)
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm: {algorithm}")
        if self.config.secret_bytes < MIN_SECRET_BYTES:
            raise ValueError(f"Secrets should be at least {MIN_SECRET_BYTES * 8} bits")

        secret = random_bytes(self.config.secret_bytes)
        now = datetime.now(timezone.utc)

        identifier = None
        for attempt in range(1, self.config.enroll_max_attempts + 1):
            identifier = self.identifier_factory()
            record = TokenRecord(
                identifier=identifier,
                secret=secret,
                moving_factor=0,
                label=label,
                digits=digits,
                algorithm=algorithm,
                created_at=now,
            )
            try:
                self.store.create(record)
            except DuplicateIdentifier:
                logger.warning(
                    "Identifier collision during enrollment",
                    identifier=identifier,
                    attempt=attempt,
                )
                continue

            log_event(
                "token.enrolled",
                identifier=identifier,
                label=label,
                digits=digits,
                algorithm=algorithm,
            )
            return RegistrationPayload(
                identifier=identifier,
                label=label,
                secret=secret,
                moving_factor=record.moving_factor,
                digits=digits,
                algorithm=algorithm,
                encoding=encoding,
            )

        logger.error(
            "Enrollment failed after identifier collisions",
            attempts=self.config.enroll_max_attempts,
        )
        raise DuplicateIdentifier(identifier)
