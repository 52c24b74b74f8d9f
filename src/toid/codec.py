"""Sortable base32hex encoding of 128-bit UUID values.

The alphabet is the RFC 4648 "extended hex" one, whose symbols are in
ascending code-point order, so encoded strings sort the same way as the
UUID bytes they encode.
"""

from __future__ import annotations

from uuid import UUID

from toid.errors import DecodeError, MissingValueError


# Base32hex: 0-9, A-V (32 characters, ascending ASCII order)
_BASE32HEX_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUV"
_BASE32HEX_DECODE_MAP = {c: i for i, c in enumerate(_BASE32HEX_ALPHABET)} | {
    c.lower(): i for i, c in enumerate(_BASE32HEX_ALPHABET) if c.isalpha()
}

_UUID_BYTES = 16
_UUID_BITS = _UUID_BYTES * 8
_BITS_PER_CHAR = 5

# ceiling(128 / 5) = 26 characters, the last one carrying 2 zero pad bits
_BASE32HEX_UUID_LENGTH = -(-_UUID_BITS // _BITS_PER_CHAR)
_PAD_BITS = _BASE32HEX_UUID_LENGTH * _BITS_PER_CHAR - _UUID_BITS
_CHAR_MASK = (1 << _BITS_PER_CHAR) - 1
_PAD_MASK = (1 << _PAD_BITS) - 1


def _int_to_base32hex(num: int) -> str:
    """Convert a 128-bit integer to 26 base32hex characters, most significant first."""
    num <<= _PAD_BITS
    result: list[str] = []
    for _ in range(_BASE32HEX_UUID_LENGTH):
        result.append(_BASE32HEX_ALPHABET[num & _CHAR_MASK])
        num >>= _BITS_PER_CHAR
    return "".join(reversed(result))


def _base32hex_to_int(s: str) -> int:
    """Convert 26 base32hex characters to a 128-bit integer.

    Raises:
        ValueError: If the input is not exactly 26 characters or has non-zero pad bits.
        KeyError: If the input contains characters outside the alphabet.
    """
    if len(s) != _BASE32HEX_UUID_LENGTH:
        raise ValueError(f"Input must be {_BASE32HEX_UUID_LENGTH} characters, got {len(s)}")
    result = 0
    for char in s:
        result = (result << _BITS_PER_CHAR) | _BASE32HEX_DECODE_MAP[char]
    if result & _PAD_MASK:
        raise ValueError("Trailing pad bits must be zero")
    return result >> _PAD_BITS


def encode(data: bytes) -> str:
    """Encode 16 bytes as a 26 character base32hex string without padding.

    Raises:
        ValueError: If ``data`` is not exactly 16 bytes long.
    """
    if len(data) != _UUID_BYTES:
        raise ValueError(f"Expected {_UUID_BYTES} bytes, got {len(data)}")
    return _int_to_base32hex(int.from_bytes(data, "big"))


def decode(text: str) -> bytes:
    """Decode a 26 character base32hex string back into 16 bytes.

    Lowercase letters are accepted; ``encode`` only ever emits uppercase.

    Raises:
        MissingValueError: If ``text`` is empty.
        DecodeError: If ``text`` has the wrong length, characters outside
            the alphabet, or non-zero trailing pad bits.
    """
    if not text:
        raise MissingValueError("Encoded value must not be empty")
    try:
        num = _base32hex_to_int(text)
    except KeyError as e:
        raise DecodeError(f"Invalid base32hex value: {text!r}") from e
    except ValueError as e:
        raise DecodeError(f"Invalid base32hex value {text!r}: {e}") from e
    return num.to_bytes(_UUID_BYTES, "big")


def encode_uuid(uid: UUID) -> str:
    """Encode a UUID as its 26 character base32hex form."""
    return _int_to_base32hex(uid.int)


def decode_uuid(text: str) -> UUID:
    """Decode a 26 character base32hex string into a UUID.

    Raises:
        DecodeError: See :func:`decode`.
    """
    return UUID(bytes=decode(text))


ENCODED_LENGTH = _BASE32HEX_UUID_LENGTH

__all__ = ["ENCODED_LENGTH", "decode", "decode_uuid", "encode", "encode_uuid"]
