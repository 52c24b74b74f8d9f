"""Typed Object IDs - a type prefix plus a sortable base32hex UUID."""

from __future__ import annotations

from toid.errors import (
    DecodeError,
    EmptyPrefixError,
    InvalidPrefixError,
    InvalidUUIDError,
    MissingSeparatorError,
    MissingValueError,
    TOIDError,
)
from toid.oid import SEPARATOR, Oid, OidStr, OidType, _get_kind, factory, parse
from toid.prefix import OidPrefix, PrefixValidator


__all__ = [
    "SEPARATOR",
    "DecodeError",
    "EmptyPrefixError",
    "InvalidPrefixError",
    "InvalidUUIDError",
    "MissingSeparatorError",
    "MissingValueError",
    "Oid",
    "OidPrefix",
    "OidStr",
    "OidType",
    "PrefixValidator",
    "TOIDError",
    "_get_kind",
    "factory",
    "parse",
]
