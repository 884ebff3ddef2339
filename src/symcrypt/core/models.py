"""Domain models for symcrypt.

Value objects are **frozen** dataclasses with no behaviour beyond data
access.  They carry zero I/O and zero dependencies on external packages.
:class:`OptionSet` is the one read-only mapping type; it is produced by
the CLI layer and consumed by everything below it.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Union

OptionValue = Union[bool, str, int, None]


# ---------------------------------------------------------------------------
# Option vocabulary
# ---------------------------------------------------------------------------

BASE_VOCABULARY: tuple[str, ...] = (
    "encrypt",
    "decrypt",
    "edit",
    "generate",
    "password",
    "key",
    "keyfile",
    "key_env",
    "interactive",
    "cache_enabled",
    "cache_timeout",
    "cache_provider",
    "string",
    "file",
    "output",
    "backup",
    "verbose",
    "quiet",
    "trace",
    "debug",
    "version",
    "no_color",
    "no_environment",
    "examples",
    "help",
)
"""Flag names every host supports."""

KEYCHAIN_VOCABULARY: tuple[str, ...] = ("keychain", "keychain_delete")
"""Flag names that only exist when the host provides a keychain."""


def option_vocabulary(*, keychain_available: bool) -> tuple[str, ...]:
    """Return the flag vocabulary for a host with the given capabilities."""
    if keychain_available:
        return BASE_VOCABULARY + KEYCHAIN_VOCABULARY
    return BASE_VOCABULARY


# ---------------------------------------------------------------------------
# Option set
# ---------------------------------------------------------------------------

class OptionSet(Mapping[str, OptionValue]):
    """Immutable mapping of flag name to parsed value.

    A flag is *present* when its value is anything other than ``None``,
    ``False`` or the empty string.  Absence means "not requested" and is
    never an error by itself.
    """

    __slots__ = ("_values",)

    def __init__(
        self,
        values: Mapping[str, OptionValue] | None = None,
        **flags: OptionValue,
    ) -> None:
        merged: dict[str, OptionValue] = dict(values or {})
        merged.update(flags)
        self._values: Mapping[str, OptionValue] = MappingProxyType(merged)

    def __getitem__(self, name: str) -> OptionValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"OptionSet({dict(self._values)!r})"

    def is_set(self, name: str) -> bool:
        """Return ``True`` when *name* was supplied on the command line."""
        value = self._values.get(name)
        if value is None or value is False:
            return False
        return not (isinstance(value, str) and value == "")

    def any_set(self, names: Iterable[str]) -> bool:
        return any(self.is_set(name) for name in names)

    def present(self) -> tuple[str, ...]:
        """Names of all supplied flags, in insertion order."""
        return tuple(name for name in self._values if self.is_set(name))

    def string(self, name: str) -> str | None:
        value = self._values.get(name)
        if isinstance(value, str) and value:
            return value
        return None

    def integer(self, name: str) -> int | None:
        value = self._values.get(name)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def replace(self, **changes: OptionValue) -> OptionSet:
        """Return a copy with *changes* applied."""
        return OptionSet(self._values, **changes)


# ---------------------------------------------------------------------------
# Command descriptors
# ---------------------------------------------------------------------------

class KeySource(enum.Enum):
    """Where a candidate private key was read from."""

    LITERAL = "key"
    FILE = "keyfile"
    ENVIRONMENT = "key_env"
    KEYCHAIN = "keychain"
    INTERACTIVE = "interactive"

    @property
    def option(self) -> str:
        """The flag name that selects this source."""
        return self.value


KEY_SOURCE_OPTIONS: frozenset[str] = frozenset(source.option for source in KeySource)
"""Any one of these flags is enough to supply a private key."""


@dataclass(frozen=True, slots=True)
class CommandDescriptor:
    """Static rule set describing when a command variant is eligible."""

    name: str
    """Identifier of the operation (e.g. ``encrypt``)."""

    required_option_groups: tuple[frozenset[str], ...]
    """Every group needs at least one present member."""

    precedence_rank: int
    """Tie-break between eligible descriptors.  Lower wins."""

    incompatible_options: frozenset[str] = frozenset()
    """Any present member disqualifies the descriptor outright."""

    requires_key: bool = False
    """Whether the private key must be resolved before execution."""

    excluded_key_sources: frozenset[KeySource] = frozenset()
    """Key sources that name a *target* for this command, not a key."""

    password_flag_unlocks: bool = True
    """Whether ``--password`` means "the supplied key is protected"."""

    summary: str = ""
    """One-line description used in help output."""


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class KeyCandidate:
    """Raw key material together with the source it came from."""

    source: KeySource
    material: str


@dataclass(frozen=True, slots=True)
class ResolvedKey:
    """The private key actually handed to the cipher.

    ``key`` is always base64url-decodable.  ``material`` is the text as
    supplied, which differs from ``key`` when the key was
    password-protected.
    """

    key: bytes
    source: KeySource
    material: str
    was_password_protected: bool = False


# ---------------------------------------------------------------------------
# Password cache
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cached password and the monotonic time after which it is stale."""

    fingerprint: str
    password: bytes
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


# ---------------------------------------------------------------------------
# Command results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CommandResult:
    """Opaque payload handed to the output sink unmodified.

    ``None`` means the command produced nothing to write.
    """

    payload: str | bytes | None = None
    messages: tuple[str, ...] = field(default=())
    """Status lines for the console, never written to the sink."""
