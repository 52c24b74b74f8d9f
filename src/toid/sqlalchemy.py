"""SQLAlchemy integration for TOIDs.

Provides TypeDecorators and helpers for using Oids as typed columns that
store as TEXT in the database. The base32hex value sorts like the UUID it
encodes, so ordering a column of one kind orders by UUID (by creation time
for UUIDv7).

Example:
    from sqlalchemy.orm import DeclarativeBase, Mapped
    from toid import Oid, OidPrefix
    from toid.sqlalchemy import oid_column

    class Usr(OidPrefix):
        PREFIX = "USR"

    class Org(OidPrefix):
        PREFIX = "ORG"

    UserId = Oid[Usr]
    OrgId = Oid[Org]

    class Base(DeclarativeBase):
        pass

    class User(Base):
        __tablename__ = "users"

        id: Mapped[UserId] = oid_column(UserId, primary_key=True)
        org_id: Mapped[OrgId | None] = oid_column(OrgId)
        name: Mapped[str]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypedDict, Unpack, cast

from sqlalchemy import Text
from sqlalchemy.orm import mapped_column
from sqlalchemy.types import TypeDecorator

from toid import Oid, OidStr, PrefixValidator, TOIDError, _get_kind


if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Dialect
    from sqlalchemy.orm import MappedColumn


class OidColumnKwargs(TypedDict, total=False):
    """Keyword arguments for oid_column, matching mapped_column's common options."""

    primary_key: bool
    nullable: bool
    default: object
    default_factory: Callable[[], object]
    index: bool
    unique: bool
    insert_default: object
    onupdate: object


class OidColumn(TypeDecorator[Oid[Any]]):
    """SQLAlchemy TypeDecorator for Oid storage as TEXT.

    Serializes Oids to their canonical string on write and parses them back
    on read.

    Args:
        kind: The kind (an OidPrefix subclass) of the Oids in this column.

    Example:
        id: Mapped[UserId] = mapped_column(OidColumn(Usr), primary_key=True)
    """

    impl = Text
    cache_ok = True

    def __init__(self, kind: type[PrefixValidator]) -> None:
        """Initialize with the kind of Oid stored."""
        self.kind = kind
        super().__init__()

    def process_bind_param(
        self,
        value: Oid[Any] | str | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> str | None:
        """Convert an Oid to its string for storage.

        Strings are parsed first so prefix mismatches are caught at write
        time, and stored in canonical form.
        """
        if value is None:
            return None
        if isinstance(value, Oid):
            if value.kind is not self.kind:
                msg = f"Expected Oid[{self.kind.__name__}], got Oid[{value.kind.__name__}]"
                raise ValueError(msg)
            return str(value)
        return str(Oid.from_string(value, self.kind))

    def process_result_value(
        self,
        value: str | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> Oid[Any] | None:
        """Convert a database string to an Oid."""
        if value is None:
            return None
        return Oid.from_string(value, self.kind)


class OidStrColumn(TypeDecorator[OidStr]):
    """SQLAlchemy TypeDecorator for OidStr storage as TEXT, with any prefix."""

    impl = Text
    cache_ok = True

    def process_bind_param(
        self,
        value: OidStr | str | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> str | None:
        """Convert an OidStr (or a string, validated first) for storage."""
        if value is None:
            return None
        if isinstance(value, OidStr):
            return str(value)
        return str(OidStr.from_string(value))

    def process_result_value(
        self,
        value: str | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> OidStr | None:
        """Convert a database string to an OidStr."""
        if value is None:
            return None
        return OidStr.from_string(value)


def _extract_kind[T](oid_type: type[T]) -> type[PrefixValidator]:
    """Extract the kind from a parameterized Oid type like Oid[Usr].

    Wraps _get_kind to convert TOIDError to TypeError for SQLAlchemy context.
    """
    try:
        return _get_kind(oid_type)  # type: ignore[arg-type]
    except TOIDError as e:
        raise TypeError(str(e)) from e


def oid_column[T](
    oid_type: type[T],
    **kwargs: Unpack[OidColumnKwargs],
) -> MappedColumn[T]:
    """Create a mapped_column for an Oid type (pure SQLAlchemy).

    Infers the kind from the type parameter, so you don't need to specify
    it twice.

    Args:
        oid_type: A parameterized Oid type like Oid[Usr].
        **kwargs: Additional arguments passed to mapped_column.
            Supports: primary_key, nullable, default, default_factory,
            index, unique, insert_default, onupdate.

    Returns:
        A mapped_column configured with the appropriate OidColumn.
    """
    kind = _extract_kind(oid_type)
    return mapped_column(OidColumn(kind), **kwargs)


class OidFieldKwargs(TypedDict, total=False):
    """Keyword arguments for oid_field, matching SQLModel Field's common options."""

    default: object
    default_factory: Callable[[], object]
    primary_key: bool
    index: bool
    unique: bool


def oid_field[T](
    oid_type: type[T],
    **kwargs: Unpack[OidFieldKwargs],
) -> Any:  # noqa: ANN401 - return type matches SQLModel's Field
    """Create a SQLModel Field for an Oid type.

    Infers the kind from the type parameter and configures sa_type
    automatically.

    Example:
        from sqlmodel import SQLModel
        from toid import Oid, factory
        from toid.sqlalchemy import oid_field

        UserId = Oid[Usr]

        class User(SQLModel, table=True):
            id: UserId = oid_field(UserId, default_factory=factory(UserId), primary_key=True)
            org_id: OrgId | None = oid_field(OrgId, default=None)
    """
    # Import here to avoid hard dependency on sqlmodel
    from sqlmodel import Field

    kind = _extract_kind(oid_type)
    # SQLModel's sa_type is typed as type[Any] but accepts TypeEngine instances.
    sa_type = cast("type[Any]", OidColumn(kind))
    return Field(sa_type=sa_type, **kwargs)


__all__ = ["OidColumn", "OidStrColumn", "oid_column", "oid_field"]
