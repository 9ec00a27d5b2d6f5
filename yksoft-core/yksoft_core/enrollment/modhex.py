"""
ModHex Encoding
===============
YubiKey "modified hexadecimal" encoding used for token identifiers.

ModHex maps the 16 nibble values onto characters that sit on the same keys
across common keyboard layouts.
"""

MODHEX_ALPHABET = "cbdefghijklnrtuv"

_DECODE = {char: value for value, char in enumerate(MODHEX_ALPHABET)}


def modhex_encode(data: bytes) -> str:
    """Encode bytes as a modhex string (two characters per byte)."""
    return "".join(MODHEX_ALPHABET[b >> 4] + MODHEX_ALPHABET[b & 0x0F] for b in data)


def modhex_decode(text: str) -> bytes:
    """
    Decode a modhex string.

    Raises:
        ValueError: odd length or characters outside the alphabet
    """
    text = text.lower()
    if len(text) % 2:
        raise ValueError("modhex string must have even length")
    try:
        return bytes(
            (_DECODE[text[i]] << 4) | _DECODE[text[i + 1]]
            for i in range(0, len(text), 2)
        )
    except KeyError:
        raise ValueError("invalid modhex character") from None


def is_modhex(text: str) -> bool:
    return len(text) % 2 == 0 and all(c in _DECODE for c in text.lower())
