"""
Token Store Models
==================
Data models for persisted soft tokens.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class TokenRecord:
    """One emulated hardware token."""
    identifier: str
    secret: bytes = field(repr=False)
    moving_factor: int
    label: str
    digits: int = 6
    algorithm: str = "SHA1"
    created_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None

    @property
    def info(self) -> "TokenInfo":
        """Metadata view without key material."""
        return TokenInfo(
            identifier=self.identifier,
            label=self.label,
            moving_factor=self.moving_factor,
            digits=self.digits,
            algorithm=self.algorithm,
            created_at=self.created_at,
            last_used_at=self.last_used_at,
        )


@dataclass
class TokenInfo:
    """Token metadata (never includes the secret)."""
    identifier: str
    label: Optional[str] = None
    moving_factor: Optional[int] = None
    digits: Optional[int] = None
    algorithm: Optional[str] = None
    created_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    corrupt: bool = False
