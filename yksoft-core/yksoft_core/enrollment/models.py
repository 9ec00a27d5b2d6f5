"""
Enrollment Models
=================
Registration payload handed to the authentication server administrator.
"""

import base64
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict
from urllib.parse import quote, urlencode


class SecretEncoding(str, Enum):
    """Encodings the registration payload can render the secret in."""
    BASE32 = "base32"
    HEX = "hex"


def encode_secret(secret: bytes, encoding: SecretEncoding) -> str:
    """Render raw key bytes in the requested text encoding."""
    if SecretEncoding(encoding) is SecretEncoding.HEX:
        return secret.hex()
    # Unpadded, as in otpauth URIs
    return base64.b32encode(secret).decode("ascii").rstrip("=")


@dataclass(frozen=True)
class RegistrationPayload:
    """
    Everything a server needs to validate passcodes from a new token.

    This is the only object that carries the raw secret out of the store.
    It is never persisted and its repr omits the secret.
    """
    identifier: str
    label: str
    secret: bytes = field(repr=False)
    moving_factor: int
    digits: int
    algorithm: str = "SHA1"
    encoding: SecretEncoding = SecretEncoding.BASE32

    @property
    def encoded_secret(self) -> str:
        return encode_secret(self.secret, self.encoding)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "label": self.label,
            "secret": self.encoded_secret,
            "encoding": SecretEncoding(self.encoding).value,
            "moving_factor": self.moving_factor,
            "digits": self.digits,
            "algorithm": self.algorithm,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def as_text(self) -> str:
        """Single copyable line: identifier, secret, moving factor, digits."""
        return f"{self.identifier}, {self.encoded_secret}, {self.moving_factor}, {self.digits}"

    def otpauth_uri(self, issuer: str = "YKSoft") -> str:
        """
        Build an ``otpauth://hotp`` provisioning URI.

        The URI counter is the first counter the token will use, one past the
        stored moving factor. The secret is always base32 here, whatever the
        payload encoding.
        """
        account = quote(f"{issuer}:{self.label}", safe=":@")
        params = urlencode({
            "secret": encode_secret(self.secret, SecretEncoding.BASE32),
            "issuer": issuer,
            "algorithm": self.algorithm,
            "digits": self.digits,
            "counter": self.moving_factor + 1,
        })
        return f"otpauth://hotp/{account}?{params}"
