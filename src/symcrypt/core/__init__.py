"""Core layer: command resolution, key resolution and password caching.

Rules
-----
* No ``print()`` calls.
* No terminal, network or data-file I/O except through the protocols
  in :mod:`symcrypt.core.protocols`.
* No imports from ``cli`` or ``infra``.
"""

from symcrypt.core.command_resolver import (
    DEFAULT_REGISTRY,
    CommandRegistry,
    resolve,
    resolve_or_raise,
)
from symcrypt.core.commands import execute
from symcrypt.core.context import AppContext
from symcrypt.core.key_resolver import KeyResolver
from symcrypt.core.models import (
    CommandDescriptor,
    CommandResult,
    KeySource,
    OptionSet,
    ResolvedKey,
)
from symcrypt.core.password_cache import PasswordCache, fingerprint

__all__: list[str] = [
    "DEFAULT_REGISTRY",
    "AppContext",
    "CommandDescriptor",
    "CommandRegistry",
    "CommandResult",
    "KeyResolver",
    "KeySource",
    "OptionSet",
    "PasswordCache",
    "ResolvedKey",
    "execute",
    "fingerprint",
    "resolve",
    "resolve_or_raise",
]
