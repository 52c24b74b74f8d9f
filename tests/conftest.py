"""Shared test kinds, known encodings and Hypothesis strategies."""

from __future__ import annotations

from hypothesis import strategies as st

from toid import Oid, OidPrefix, factory


# =============================================================================
# Common Kinds, Type Aliases and Factories
# =============================================================================


class EXA(OidPrefix):
    pass


class Usr(OidPrefix):
    PREFIX = "USR"


class Org(OidPrefix):
    PREFIX = "ORG"


class ApiKey(OidPrefix):
    PREFIX = "KEY"


ExaId = Oid[EXA]
UserId = Oid[Usr]
OrgId = Oid[Org]
ApiKeyId = Oid[ApiKey]

UserIdFactory = factory(UserId)
OrgIdFactory = factory(OrgId)
ApiKeyIdFactory = factory(ApiKeyId)

# Known encodings, checked against RFC 4648 base32hex
KNOWN_UUID = "06359a61-4a6d-77e9-8000-99fc2f42fc14"
KNOWN_VALUE = "0OQPKOAADLRUJ000J7U2UGNS2G"
EXA_UUID = "2428f867-7fbb-49ae-8f2d-da4196d1e636"
EXA_VALUE = "4GKFGPRVND4QT3PDR90PDKF66O"


# =============================================================================
# Hypothesis Strategies
# =============================================================================

BASE32HEX_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUV"

# Strategy for kind-style prefixes (ASCII letters and digits)
prefix_strategy = st.text(
    st.sampled_from("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"),
    min_size=1,
    max_size=20,
)

# OidStr accepts any non-empty prefix
any_prefix_strategy = st.text(min_size=1, max_size=40)

uuid_int_strategy = st.integers(min_value=0, max_value=(1 << 128) - 1)

base32hex_strategy = st.sampled_from(BASE32HEX_ALPHABET)

# Valid 26-char values: the last character must leave the 2 pad bits at zero
base32hex_value_strategy = st.builds(
    lambda head, last: head + last,
    st.text(base32hex_strategy, min_size=25, max_size=25),
    st.sampled_from(BASE32HEX_ALPHABET[::4]),
)
