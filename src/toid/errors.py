"""Errors raised when building, parsing or decoding typed object IDs."""

from __future__ import annotations


class TOIDError(ValueError):
    """Base class for every error raised by toid."""


class MissingSeparatorError(TOIDError):
    """Raised when a TOID string has no '-' between prefix and value."""


class EmptyPrefixError(TOIDError):
    """Raised when the prefix portion of a TOID is empty."""


class DecodeError(TOIDError):
    """Raised when the encoded value is not a valid base32hex UUID."""


class MissingValueError(DecodeError):
    """Raised when the encoded value portion of a TOID is empty."""


class InvalidUUIDError(TOIDError):
    """Raised when text given as a UUID cannot be parsed as one."""


class InvalidPrefixError(TOIDError):
    """Raised when a prefix is not accepted by the kind of a typed Oid.

    Attributes:
        prefix: The prefix that was rejected.
        expected: The canonical prefix of the kind.
        valid_until: The cutover marker after which ``prefix`` stopped being
            accepted, or ``None`` if it was never a prefix of this kind.
    """

    def __init__(self, prefix: str, expected: str, valid_until: int | None = None) -> None:
        self.prefix = prefix
        self.expected = expected
        self.valid_until = valid_until
        if valid_until is None:
            message = f"Expected prefix {expected!r}, got {prefix!r}"
        else:
            message = (
                f"Expected prefix {expected!r}, got {prefix!r} "
                f"(legacy prefix, valid until {valid_until})"
            )
        super().__init__(message)

    def __reduce__(self) -> tuple[type[InvalidPrefixError], tuple[str, str, int | None]]:
        """Support pickling with the structured attributes intact."""
        return (type(self), (self.prefix, self.expected, self.valid_until))


__all__ = [
    "DecodeError",
    "EmptyPrefixError",
    "InvalidPrefixError",
    "InvalidUUIDError",
    "MissingSeparatorError",
    "MissingValueError",
    "TOIDError",
]
