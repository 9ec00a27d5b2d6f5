"""
Soft Token Configuration
========================
Configuration for the token store and enrollment defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from yksoft_core.errors import UnsupportedDigitCount

DEFAULT_TOKEN_DIRNAME = ".yksoft"
SUPPORTED_DIGITS = frozenset({6, 7, 8})
SUPPORTED_ALGORITHMS = ("SHA1", "SHA256", "SHA512")
MIN_SECRET_BYTES = 16


def default_token_dir() -> Path:
    """Per-user token directory (``~/.yksoft``)."""
    return Path.home() / DEFAULT_TOKEN_DIRNAME


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def is_supported_digits(digits) -> bool:
    """True for an ``int`` passcode width in SUPPORTED_DIGITS (bools and floats excluded)."""
    return isinstance(digits, int) and not isinstance(digits, bool) and digits in SUPPORTED_DIGITS


@dataclass
class YKSoftConfig:
    """Configuration for the soft token library."""
    token_dir: Path = field(default_factory=lambda: Path(
        os.environ.get("YKSOFT_TOKEN_DIR") or default_token_dir()
    ).expanduser())
    digits: int = field(default_factory=lambda: _env_int("YKSOFT_DIGITS", 6))
    algorithm: str = field(default_factory=lambda: os.environ.get("YKSOFT_ALGORITHM", "SHA1").upper())
    secret_bytes: int = field(default_factory=lambda: _env_int("YKSOFT_SECRET_BYTES", 20))
    enroll_max_attempts: int = field(default_factory=lambda: _env_int("YKSOFT_ENROLL_ATTEMPTS", 5))
    log_level: str = field(default_factory=lambda: os.environ.get("YKSOFT_LOG_LEVEL", "WARNING"))
    json_logs: bool = field(default_factory=lambda: _env_bool("YKSOFT_LOG_JSON"))

    def __post_init__(self):
        self.token_dir = Path(self.token_dir).expanduser()
        self.algorithm = self.algorithm.upper()

    def validate(self) -> "YKSoftConfig":
        """
        Check the configuration for values the library cannot honour.

        Returns:
            The config itself, for chaining

        Raises:
            UnsupportedDigitCount: digits outside the supported set
            ValueError: any other invalid value
        """
        if not is_supported_digits(self.digits):
            raise UnsupportedDigitCount(self.digits, SUPPORTED_DIGITS)
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm: {self.algorithm}")
        if self.secret_bytes < MIN_SECRET_BYTES:
            raise ValueError(f"Secrets should be at least {MIN_SECRET_BYTES * 8} bits")
        if self.enroll_max_attempts < 1:
            raise ValueError("enroll_max_attempts must be at least 1")
        return self
