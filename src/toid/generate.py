"""UUID sources used when minting new identifiers."""

from __future__ import annotations

import datetime as dt
from uuid import UUID, uuid4, uuid7

from toid.errors import TOIDError


# UUIDv7 layout (RFC 9562): 48-bit Unix timestamp in milliseconds, then
# version, random and variant bits in the low 80 bits.
_UUIDV7_VERSION = 7
_UUIDV7_TIMESTAMP_SHIFT = 80
_UUIDV7_TIMESTAMP_MAX = (1 << 48) - 1
_UUIDV7_TAIL_MASK = (1 << _UUIDV7_TIMESTAMP_SHIFT) - 1
_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.UTC)
_ONE_MS = dt.timedelta(milliseconds=1)


def uuid_v4() -> UUID:
    """Return a random UUIDv4."""
    return uuid4()


def uuid_v7(at: dt.datetime | None = None) -> UUID:
    """Return a time-ordered UUIDv7.

    Args:
        at: The instant to embed, as a timezone-aware datetime. Defaults to
            now, in which case the standard library's monotonic generator is
            used as is.

    Raises:
        ValueError: If ``at`` is naive or outside the 48-bit millisecond
            range of UUIDv7.
    """
    uid = uuid7()
    if at is None:
        return uid
    if at.tzinfo is None or at.utcoffset() is None:
        raise ValueError(f"Timestamp must be timezone-aware, got {at.isoformat()}")
    ms = (at - _EPOCH) // _ONE_MS
    if not 0 <= ms <= _UUIDV7_TIMESTAMP_MAX:
        raise ValueError(f"Timestamp out of UUIDv7 range, got {at.isoformat()}")
    # uuid7() takes no timestamp: keep its version, counter and random tail
    return UUID(int=(ms << _UUIDV7_TIMESTAMP_SHIFT) | (uid.int & _UUIDV7_TAIL_MASK))


def timestamp_ms(uid: UUID) -> int:
    """Return the Unix timestamp in milliseconds embedded in a UUIDv7.

    Raises:
        TOIDError: If ``uid`` is not a UUIDv7.
    """
    if uid.version != _UUIDV7_VERSION:
        raise TOIDError(f"Only UUIDv7 carries a timestamp, got version {uid.version} ({uid})")
    return uid.int >> _UUIDV7_TIMESTAMP_SHIFT


def timestamp_datetime(uid: UUID) -> dt.datetime:
    """Return the instant embedded in a UUIDv7 as an aware UTC datetime.

    Raises:
        TOIDError: If ``uid`` is not a UUIDv7, or its timestamp is past
            what :class:`datetime.datetime` can represent.
    """
    ms = timestamp_ms(uid)
    try:
        return _EPOCH + ms * _ONE_MS
    except OverflowError as e:
        raise TOIDError(f"UUIDv7 timestamp out of datetime range, got {ms} ms ({uid})") from e


__all__ = ["timestamp_datetime", "timestamp_ms", "uuid_v4", "uuid_v7"]
