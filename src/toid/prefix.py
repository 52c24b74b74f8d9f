"""Prefix validation for typed Oids.

A kind is a marker class deriving from :class:`OidPrefix`. It is never
instantiated; it only tells an ``Oid[Kind]`` which prefix it renders with
and which prefixes it accepts when parsing.

Example:
    class Usr(OidPrefix):
        PREFIX = "USR"
        # "USER" was used before the rename; accept it until the cutover
        LEGACY_PREFIXES = {"USER": 1_767_225_600}
"""

from __future__ import annotations

import re
import time
from collections.abc import Mapping
from typing import ClassVar, Protocol, runtime_checkable


# Prefix characters for kinds: 7-bit ASCII 0-9, A-Z, a-z
_PREFIX_PATTERN = re.compile(r"[0-9A-Za-z]+")


@runtime_checkable
class PrefixValidator(Protocol):
    """Capability of a kind: its canonical prefix and which prefixes it accepts."""

    @classmethod
    def canonical_prefix(cls) -> str:
        """The prefix Oids of this kind are rendered with."""
        ...

    @classmethod
    def is_valid(cls, candidate: str) -> bool:
        """Whether ``candidate`` may be parsed as a prefix of this kind."""
        ...

    @classmethod
    def expired_at(cls, candidate: str) -> int | None:
        """The marker at which ``candidate`` stopped being accepted, if it ever was."""
        ...


def _check_prefix(owner: str, prefix: object) -> None:
    if not isinstance(prefix, str) or not _PREFIX_PATTERN.fullmatch(prefix):
        raise TypeError(
            f"{owner} prefix must be a non-empty string of ASCII letters and digits, "
            f"got {prefix!r}"
        )


class OidPrefix:
    """Base class for Oid kinds.

    Class attributes:
        PREFIX: The canonical prefix. Defaults to the class name.
        LEGACY_PREFIXES: Historical prefixes mapped to the marker at which
            they stop being accepted (see :meth:`current_marker`).

    Neither attribute is inherited: a kind subclassing another kind is a
    distinct kind and renders with its own name unless it sets PREFIX.
    """

    PREFIX: ClassVar[str | None] = None
    LEGACY_PREFIXES: ClassVar[Mapping[str, int]] = {}

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        _check_prefix(cls.__name__, cls.canonical_prefix())
        for legacy in cls._legacy_prefixes():
            _check_prefix(f"{cls.__name__} legacy", legacy)

    @classmethod
    def canonical_prefix(cls) -> str:
        """The prefix Oids of this kind are rendered with."""
        prefix = vars(cls).get("PREFIX")
        return prefix if prefix is not None else cls.__name__

    @classmethod
    def _legacy_prefixes(cls) -> Mapping[str, int]:
        return vars(cls).get("LEGACY_PREFIXES", {})

    @classmethod
    def current_marker(cls) -> int:
        """The marker legacy prefixes are checked against.

        Defaults to the current Unix time in seconds. Override to key
        migrations on something else, such as a schema version.
        """
        return int(time.time())

    @classmethod
    def is_valid(cls, candidate: str) -> bool:
        """Accept the canonical prefix and any legacy prefix before its cutover."""
        if candidate == cls.canonical_prefix():
            return True
        valid_until = cls._legacy_prefixes().get(candidate)
        return valid_until is not None and cls.current_marker() < valid_until

    @classmethod
    def expired_at(cls, candidate: str) -> int | None:
        """The cutover marker of a legacy prefix that is no longer accepted.

        Returns ``None`` when ``candidate`` is accepted or was never a prefix
        of this kind.
        """
        valid_until = cls._legacy_prefixes().get(candidate)
        if valid_until is None or cls.is_valid(candidate):
            return None
        return valid_until


__all__ = ["OidPrefix", "PrefixValidator"]
