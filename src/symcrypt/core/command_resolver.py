"""Command resolution: map a set of flags to exactly one operation.

Every operation is described by a static :class:`CommandDescriptor`.
A single generic function evaluates the whole table, so the precedence
rule lives in one place:

1. Drop descriptors with a present incompatible option.
2. Keep descriptors whose every required group has a present member.
3. Of the survivors, the lowest ``precedence_rank`` wins.

Guarantees
----------
* Pure: no I/O and no mutation of inputs.
* Deterministic: rank ties are rejected when the registry is built.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from symcrypt.core.models import (
    KEY_SOURCE_OPTIONS,
    CommandDescriptor,
    KeySource,
    OptionSet,
)
from symcrypt.exceptions import AmbiguousCommandError, CommandNotFoundError


class CommandRegistry:
    """Immutable, validated collection of command descriptors.

    Raises
    ------
    AmbiguousCommandError
        If two descriptors share a name or a precedence rank.
    """

    __slots__ = ("_descriptors",)

    def __init__(self, descriptors: Iterable[CommandDescriptor]) -> None:
        items = tuple(descriptors)
        self._check_unique(items)
        self._descriptors: tuple[CommandDescriptor, ...] = tuple(
            sorted(items, key=lambda d: d.precedence_rank)
        )

    @staticmethod
    def _check_unique(items: tuple[CommandDescriptor, ...]) -> None:
        seen_names: set[str] = set()
        seen_ranks: dict[int, str] = {}
        for descriptor in items:
            if descriptor.name in seen_names:
                raise AmbiguousCommandError(
                    f"Command {descriptor.name!r} is registered twice.",
                )
            seen_names.add(descriptor.name)
            other = seen_ranks.get(descriptor.precedence_rank)
            if other is not None:
                raise AmbiguousCommandError(
                    f"Commands {other!r} and {descriptor.name!r} share "
                    f"precedence rank {descriptor.precedence_rank}.",
                )
            seen_ranks[descriptor.precedence_rank] = descriptor.name

    def __iter__(self) -> Iterator[CommandDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, name: str) -> CommandDescriptor:
        for descriptor in self._descriptors:
            if descriptor.name == name:
                return descriptor
        raise KeyError(name)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def is_eligible(descriptor: CommandDescriptor, options: OptionSet) -> bool:
    """Return whether *descriptor* accepts *options*."""
    if options.any_set(descriptor.incompatible_options):
        return False
    return all(options.any_set(group) for group in descriptor.required_option_groups)


def resolve(
    options: OptionSet,
    registry: Iterable[CommandDescriptor],
) -> CommandDescriptor | None:
    """Select the single applicable descriptor, or ``None``."""
    best: CommandDescriptor | None = None
    for descriptor in registry:
        if not is_eligible(descriptor, options):
            continue
        if best is None or descriptor.precedence_rank < best.precedence_rank:
            best = descriptor
    return best


def resolve_or_raise(
    options: OptionSet,
    registry: Iterable[CommandDescriptor],
) -> CommandDescriptor:
    """Like :func:`resolve`, but raise when nothing matches.

    Raises
    ------
    CommandNotFoundError
        Carries the names of the options that *were* supplied.
    """
    descriptor = resolve(options, registry)
    if descriptor is None:
        raise CommandNotFoundError(
            "Unable to determine what command to run.",
            supplied_options=options.present(),
        )
    return descriptor


# ---------------------------------------------------------------------------
# Default registry
# ---------------------------------------------------------------------------

_MODES = frozenset({"encrypt", "decrypt", "edit"})
_CONTENT = frozenset({"string", "file"})
_HELP_FLAGS = frozenset({"examples", "help", "version"})

DEFAULT_REGISTRY = CommandRegistry(
    (
        CommandDescriptor(
            name="show_examples",
            required_option_groups=(frozenset({"examples"}),),
            precedence_rank=10,
            summary="show usage examples",
        ),
        CommandDescriptor(
            name="show_version",
            required_option_groups=(frozenset({"version"}),),
            precedence_rank=20,
            summary="print the version",
        ),
        CommandDescriptor(
            name="generate_key",
            required_option_groups=(frozenset({"generate"}),),
            precedence_rank=30,
            summary="generate a new private key",
        ),
        CommandDescriptor(
            name="keychain_delete_key",
            required_option_groups=(frozenset({"keychain_delete"}),),
            precedence_rank=35,
            summary="delete a key from the keychain",
        ),
        CommandDescriptor(
            name="encrypt",
            required_option_groups=(
                KEY_SOURCE_OPTIONS,
                frozenset({"encrypt"}),
                _CONTENT,
            ),
            incompatible_options=frozenset({"decrypt", "edit"}),
            precedence_rank=40,
            requires_key=True,
            summary="encrypt a string or file",
        ),
        CommandDescriptor(
            name="decrypt",
            required_option_groups=(
                KEY_SOURCE_OPTIONS,
                frozenset({"decrypt"}),
                _CONTENT,
            ),
            incompatible_options=frozenset({"encrypt", "edit"}),
            precedence_rank=50,
            requires_key=True,
            summary="decrypt a string or file",
        ),
        CommandDescriptor(
            name="edit",
            required_option_groups=(
                KEY_SOURCE_OPTIONS,
                frozenset({"edit"}),
                frozenset({"file"}),
            ),
            incompatible_options=frozenset({"encrypt", "decrypt"}),
            precedence_rank=60,
            requires_key=True,
            summary="edit an encrypted file in $EDITOR",
        ),
        CommandDescriptor(
            name="password_protect_key",
            required_option_groups=(KEY_SOURCE_OPTIONS, frozenset({"password"})),
            incompatible_options=_MODES | {"generate"},
            precedence_rank=70,
            requires_key=True,
            password_flag_unlocks=False,
            summary="protect an existing key with a password",
        ),
        CommandDescriptor(
            name="keychain_add_key",
            required_option_groups=(
                KEY_SOURCE_OPTIONS - {KeySource.KEYCHAIN.option},
                frozenset({"keychain"}),
            ),
            incompatible_options=_MODES | {"generate", "password"},
            precedence_rank=80,
            requires_key=True,
            excluded_key_sources=frozenset({KeySource.KEYCHAIN}),
            summary="store a key in the keychain",
        ),
        CommandDescriptor(
            name="print_key",
            required_option_groups=(KEY_SOURCE_OPTIONS,),
            incompatible_options=_HELP_FLAGS | _MODES | _CONTENT | {"generate"},
            precedence_rank=90,
            requires_key=True,
            summary="print the resolved private key",
        ),
        CommandDescriptor(
            name="show_help",
            required_option_groups=(frozenset({"help"}),),
            precedence_rank=100,
            summary="show help",
        ),
    )
)
