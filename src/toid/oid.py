"""Typed Object IDs - a prefix, a '-' and a sortable base32hex UUID."""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    Self,
    get_args,
    get_origin,
    runtime_checkable,
)
from uuid import UUID

from pydantic_core import CoreSchema, core_schema

from toid.codec import decode_uuid, encode_uuid
from toid.errors import (
    EmptyPrefixError,
    InvalidPrefixError,
    InvalidUUIDError,
    MissingSeparatorError,
    TOIDError,
)
from toid.generate import timestamp_datetime, timestamp_ms, uuid_v4, uuid_v7
from toid.prefix import PrefixValidator


if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Callable


SEPARATOR = "-"
_MS_PER_SECOND = 1000
_KIND_ERROR = "Oid kind must be an OidPrefix subclass or a PrefixValidator, got {kind!r}"


@runtime_checkable
class OidType(Protocol):
    """Protocol for any TOID, typed or not, useful for generic function signatures.

    Example:
        def describe(oid: OidType) -> str:
            return f"{oid.prefix} {oid.uuid}"
    """

    __slots__ = ()

    @property
    def prefix(self) -> str:
        """The prefix (e.g., 'USR')."""
        ...

    @property
    def uuid(self) -> UUID:
        """The underlying UUID."""
        ...

    @property
    def value(self) -> str:
        """The base32hex-encoded UUID (26 characters)."""
        ...

    @property
    def datetime(self) -> dt.datetime:
        """The timestamp extracted from a UUIDv7.

        Raises TOIDError for other UUID versions.
        """
        ...

    def __str__(self) -> str:
        """String representation as '<prefix>-<value>'."""
        ...


def _split(string: str) -> tuple[str, str]:
    """Split a TOID string on its last separator into prefix and value.

    Raises:
        MissingSeparatorError: If there is no separator.
        EmptyPrefixError: If nothing precedes the separator.
    """
    prefix, sep, value = string.rpartition(SEPARATOR)
    if not sep:
        raise MissingSeparatorError(
            f"TOID must be in format '<prefix>{SEPARATOR}<value>', got {string!r}"
        )
    if not prefix:
        raise EmptyPrefixError(f"TOID prefix must not be empty, got {string!r}")
    return prefix, value


def _parse_uuid(text: str) -> UUID:
    try:
        return UUID(text)
    except ValueError as e:
        raise InvalidUUIDError(f"Invalid UUID: {text!r}") from e


def _is_kind(kind: object) -> bool:
    return isinstance(kind, type) and issubclass(kind, PrefixValidator)


def _check_kind(kind: object) -> None:
    if not _is_kind(kind):
        raise TypeError(_KIND_ERROR.format(kind=kind))


class OidStr:
    """Object ID whose prefix is a runtime string.

    No check is made on the prefix beyond it being non-empty, so an OidStr
    can carry any kind of entity. Use :class:`Oid` when the kind is known
    ahead of time.

    Example:
        >>> oid = OidStr.try_with_uuid("TST", "06359a61-4a6d-77e9-8000-99fc2f42fc14")
        >>> print(oid)  # TST-0OQPKOAADLRUJ000J7U2UGNS2G
    """

    __slots__ = ("_prefix", "_uuid", "_value")

    def __init__(self, prefix: str, uid: UUID) -> None:
        """Initialize an OidStr with a prefix and UUID.

        Raises:
            EmptyPrefixError: If prefix is empty.
        """
        if not prefix:
            raise EmptyPrefixError("TOID prefix must not be empty")
        self._prefix = prefix
        self._uuid = uid
        self._value: str | None = None

    @property
    def prefix(self) -> str:
        """The prefix, as given."""
        return self._prefix

    @property
    def uuid(self) -> UUID:
        """The underlying UUID."""
        return self._uuid

    @property
    def value(self) -> str:
        """The base32hex-encoded UUID (26 characters)."""
        if self._value is None:
            self._value = encode_uuid(self._uuid)
        return self._value

    @property
    def datetime(self) -> dt.datetime:
        """The timestamp extracted from the UUIDv7.

        Raises:
            TOIDError: If the UUID is not a UUIDv7.
        """
        return timestamp_datetime(self._uuid)

    @property
    def timestamp(self) -> float:
        """The Unix timestamp (seconds) from the UUIDv7; TOIDError for other versions."""
        return timestamp_ms(self._uuid) / _MS_PER_SECOND

    def __str__(self) -> str:
        return f"{self._prefix}{SEPARATOR}{self.value}"

    def __repr__(self) -> str:
        return f"OidStr({self._prefix!r}, {self.value!r})"

    def __hash__(self) -> int:
        return hash((self._prefix, self._uuid))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OidStr):
            return self._prefix == other._prefix and self._uuid == other._uuid
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, OidStr):
            return (self._prefix, self._uuid) < (other._prefix, other._uuid)
        return NotImplemented

    def __le__(self, other: object) -> bool:
        if isinstance(other, OidStr):
            return (self._prefix, self._uuid) <= (other._prefix, other._uuid)
        return NotImplemented

    def __gt__(self, other: object) -> bool:
        if isinstance(other, OidStr):
            return (self._prefix, self._uuid) > (other._prefix, other._uuid)
        return NotImplemented

    def __ge__(self, other: object) -> bool:
        if isinstance(other, OidStr):
            return (self._prefix, self._uuid) >= (other._prefix, other._uuid)
        return NotImplemented

    def __copy__(self) -> Self:
        """Return self (OidStrs are immutable)."""
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> Self:
        """Return self (OidStrs are immutable)."""
        return self

    def __reduce__(self) -> tuple[type[Self], tuple[str, UUID]]:
        return (type(self), (self._prefix, self._uuid))

    @classmethod
    def new_v4(cls, prefix: str) -> Self:
        """Create an OidStr with a random UUIDv4."""
        return cls(prefix, uuid_v4())

    @classmethod
    def new_v7(cls, prefix: str, at: dt.datetime | None = None) -> Self:
        """Create an OidStr with a time-ordered UUIDv7, for now or for ``at``.

        Raises:
            ValueError: If ``at`` is naive or outside the UUIDv7 range.
        """
        return cls(prefix, uuid_v7(at))

    @classmethod
    def try_with_uuid(cls, prefix: str, uid: str) -> Self:
        """Create an OidStr from the text form of a UUID.

        Raises:
            InvalidUUIDError: If ``uid`` is not a UUID.
            EmptyPrefixError: If prefix is empty.
        """
        return cls(prefix, _parse_uuid(uid))

    @classmethod
    def try_with_uuid_base32(cls, prefix: str, value: str) -> Self:
        """Create an OidStr from a base32hex-encoded UUID.

        Raises:
            DecodeError: If ``value`` is not a valid encoded UUID.
            EmptyPrefixError: If prefix is empty.
        """
        return cls(prefix, decode_uuid(value))

    @classmethod
    def from_string(cls, string: str) -> Self:
        """Parse an OidStr from its string representation '<prefix>-<value>'.

        The string is split on its last separator, so prefixes containing
        '-' round-trip.

        Raises:
            MissingSeparatorError: If there is no separator.
            EmptyPrefixError: If the prefix is empty.
            DecodeError: If the value is not a valid encoded UUID.
        """
        prefix, value = _split(string)
        uid = decode_uuid(value)

        instance = cls.__new__(cls)
        instance._prefix = prefix  # noqa: SLF001
        instance._uuid = uid  # noqa: SLF001
        instance._value = value.upper()  # noqa: SLF001
        return instance

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,  # noqa: ANN401
        handler: Any,  # noqa: ANN401
    ) -> CoreSchema:
        """Pydantic integration: accept an OidStr or its string form, serialize as str."""

        def validate(v: OidStr | str) -> OidStr:
            if isinstance(v, str):
                return cls.from_string(v)
            if isinstance(v, OidStr):
                return v
            raise TOIDError(f"Expected OidStr or str, got {type(v).__name__}")

        return core_schema.json_or_python_schema(
            json_schema=core_schema.chain_schema(
                [
                    core_schema.str_schema(),
                    core_schema.no_info_plain_validator_function(validate),
                ]
            ),
            python_schema=core_schema.no_info_plain_validator_function(validate),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


class Oid[K: PrefixValidator]:
    """Object ID whose prefix comes from its kind.

    The kind is a marker class, usually deriving from :class:`OidPrefix`
    (any class implementing :class:`PrefixValidator` works). Static type
    checkers treat ``Oid[Usr]`` and ``Oid[Org]`` as unrelated types; at
    runtime the kind is kept on the instance, so Oids of different kinds are
    never equal and cannot be ordered against each other.

    Example:
        >>> class Usr(OidPrefix):
        ...     PREFIX = "USR"
        >>> UserId = Oid[Usr]
        >>> user_id = Oid.new_v7(Usr)
        >>> print(user_id)  # USR-066F28J3RDQ33EB4QM8LVP0TGK
        >>> Oid.from_string(str(user_id), Usr) == user_id
        True

    Note:
        The `datetime` and `timestamp` properties only work for UUIDv7. For
        other versions they raise TOIDError.
    """

    __slots__ = ("_kind", "_uuid", "_value")

    def __init__(self, kind: type[K], uid: UUID) -> None:
        """Initialize an Oid of the given kind with a UUID.

        Raises:
            TypeError: If kind does not implement PrefixValidator.
        """
        _check_kind(kind)
        self._kind = kind
        self._uuid = uid
        self._value: str | None = None

    @property
    def kind(self) -> type[K]:
        """The marker class of this Oid."""
        return self._kind

    @property
    def prefix(self) -> str:
        """The canonical prefix of the kind."""
        return self._kind.canonical_prefix()

    @property
    def uuid(self) -> UUID:
        """The underlying UUID."""
        return self._uuid

    @property
    def value(self) -> str:
        """The base32hex-encoded UUID (26 characters)."""
        if self._value is None:
            self._value = encode_uuid(self._uuid)
        return self._value

    @property
    def datetime(self) -> dt.datetime:
        """The timestamp extracted from the UUIDv7; TOIDError for other versions."""
        return timestamp_datetime(self._uuid)

    @property
    def timestamp(self) -> float:
        """The Unix timestamp (seconds) from the UUIDv7; TOIDError for other versions."""
        return timestamp_ms(self._uuid) / _MS_PER_SECOND

    def to_oidstr(self) -> OidStr:
        """Drop the kind, keeping the rendered prefix."""
        return OidStr(self.prefix, self._uuid)

    def __str__(self) -> str:
        return f"{self.prefix}{SEPARATOR}{self.value}"

    def __repr__(self) -> str:
        return f"Oid[{self._kind.__name__}]({self.value!r})"

    def __hash__(self) -> int:
        return hash((self._kind, self._uuid))

    def __eq__(self, other: object) -> bool:
        """Equal only to an Oid of the same kind with the same UUID."""
        if isinstance(other, Oid):
            return self._kind is other._kind and self._uuid == other._uuid
        return NotImplemented

    # Oids of different kinds are not ordered; NotImplemented on both sides
    # makes Python raise TypeError.
    def __lt__(self, other: object) -> bool:
        if isinstance(other, Oid) and other._kind is self._kind:
            return self._uuid < other._uuid
        return NotImplemented

    def __le__(self, other: object) -> bool:
        if isinstance(other, Oid) and other._kind is self._kind:
            return self._uuid <= other._uuid
        return NotImplemented

    def __gt__(self, other: object) -> bool:
        if isinstance(other, Oid) and other._kind is self._kind:
            return self._uuid > other._uuid
        return NotImplemented

    def __ge__(self, other: object) -> bool:
        if isinstance(other, Oid) and other._kind is self._kind:
            return self._uuid >= other._uuid
        return NotImplemented

    def __copy__(self) -> Self:
        """Return self (Oids are immutable)."""
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> Self:
        """Return self (Oids are immutable)."""
        return self

    def __reduce__(self) -> tuple[type[Self], tuple[type[K], UUID]]:
        """Support pickling; the kind must be importable by its qualified name."""
        return (type(self), (self._kind, self._uuid))

    @classmethod
    def new_v4(cls, kind: type[K]) -> Oid[K]:
        """Create an Oid with a random UUIDv4."""
        return cls(kind, uuid_v4())

    @classmethod
    def new_v7(cls, kind: type[K], at: dt.datetime | None = None) -> Oid[K]:
        """Create an Oid with a time-ordered UUIDv7, for now or for ``at``.

        ``at`` must be timezone-aware; naive datetimes raise ValueError.
        """
        return cls(kind, uuid_v7(at))

    @classmethod
    def try_with_uuid(cls, kind: type[K], uid: str) -> Oid[K]:
        """Create an Oid from the text form of a UUID.

        Raises:
            InvalidUUIDError: If ``uid`` is not a UUID.
        """
        return cls(kind, _parse_uuid(uid))

    @classmethod
    def try_with_uuid_base32(cls, kind: type[K], value: str) -> Oid[K]:
        """Create an Oid from a base32hex-encoded UUID.

        Raises:
            DecodeError: If ``value`` is not a valid encoded UUID.
        """
        return cls(kind, decode_uuid(value))

    @classmethod
    def from_oidstr(cls, kind: type[K], oid: OidStr) -> Oid[K]:
        """Convert an OidStr, checking its prefix against the kind.

        Raises:
            InvalidPrefixError: If the kind does not accept the prefix.
        """
        _check_kind(kind)
        _validate_prefix(kind, oid.prefix)
        return cls(kind, oid.uuid)

    @classmethod
    def from_string(cls, string: str, kind: type[K]) -> Oid[K]:
        """Parse an Oid from its string representation '<prefix>-<value>'.

        Legacy prefixes the kind still accepts are parsed too; the result
        renders with the canonical prefix.

        Raises:
            MissingSeparatorError: If there is no separator.
            EmptyPrefixError: If the prefix is empty.
            InvalidPrefixError: If the kind does not accept the prefix.
            DecodeError: If the value is not a valid encoded UUID.
        """
        _check_kind(kind)
        prefix, value = _split(string)
        _validate_prefix(kind, prefix)
        uid = decode_uuid(value)

        instance = cls.__new__(cls)
        instance._kind = kind  # noqa: SLF001
        instance._uuid = uid  # noqa: SLF001
        instance._value = value.upper()  # noqa: SLF001
        return instance

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,  # noqa: ANN401
        handler: Any,  # noqa: ANN401
    ) -> CoreSchema:
        """Pydantic integration for validation and serialization."""
        origin = get_origin(source_type)
        if origin is None:
            raise TOIDError("Oid must be parameterized with a kind, e.g. Oid[Usr]")

        kind = _get_kind(source_type)

        def validate(v: Oid[Any] | str) -> Oid[Any]:
            if isinstance(v, str):
                return cls.from_string(v, kind)
            if isinstance(v, Oid):
                if v.kind is not kind:
                    raise TOIDError(
                        f"Expected Oid[{kind.__name__}], got Oid[{v.kind.__name__}]"
                    )
                return v
            raise TOIDError(f"Expected Oid or str, got {type(v).__name__}")

        return core_schema.json_or_python_schema(
            json_schema=core_schema.chain_schema(
                [
                    core_schema.str_schema(),
                    core_schema.no_info_plain_validator_function(validate),
                ]
            ),
            python_schema=core_schema.no_info_plain_validator_function(validate),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


def _validate_prefix(kind: type[PrefixValidator], prefix: str) -> None:
    if not kind.is_valid(prefix):
        raise InvalidPrefixError(prefix, kind.canonical_prefix(), kind.expired_at(prefix))


def _get_kind[K: PrefixValidator](oid_type: type[Oid[K]]) -> type[K]:
    """Extract the kind from a parameterized Oid type."""
    args = get_args(oid_type)
    if not args:
        raise TOIDError("Oid type must be parameterized with a kind, e.g. Oid[Usr]")
    kind = args[0]
    if not _is_kind(kind):
        raise TOIDError(_KIND_ERROR.format(kind=kind))
    return kind


def factory[K: PrefixValidator](oid_type: type[Oid[K]]) -> Callable[[], Oid[K]]:
    """Create a factory function generating new time-ordered Oids of a specific type.

    This is useful with Pydantic's Field(default_factory=...).

    Example:
        UserId = Oid[Usr]

        class User(BaseModel):
            id: UserId = Field(default_factory=factory(UserId))
    """
    kind = _get_kind(oid_type)

    def _factory() -> Oid[K]:
        return Oid.new_v7(kind)

    return _factory


def parse[K: PrefixValidator](oid_type: type[Oid[K]]) -> Callable[[str], Oid[K]]:
    """Create a parse function for converting strings to Oids of a specific type.

    Raises TOIDError subclasses on invalid input.

    Example:
        parse_user_id = parse(Oid[Usr])

        try:
            user_id = parse_user_id("USR-0OQPKOAADLRUJ000J7U2UGNS2G")
        except TOIDError as e:
            print(f"Invalid ID: {e}")
    """
    kind = _get_kind(oid_type)

    def _parse(v: str) -> Oid[K]:
        return Oid.from_string(v, kind)

    return _parse
