"""Explicit application context threaded through command execution.

One :class:`AppContext` is built per process by the CLI layer and passed
down.  It replaces process-wide singletons: the password cache, the
keychain capability and every other collaborator live here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from symcrypt.core.key_resolver import KeyResolver
from symcrypt.core.password_cache import PasswordCache
from symcrypt.core.protocols import (
    Cipher,
    Editor,
    FileStore,
    InteractiveInputPort,
    KeychainPort,
)


@dataclass
class AppContext:
    """Collaborators available to every command."""

    cipher: Cipher
    input_port: InteractiveInputPort
    files: FileStore
    cache: PasswordCache = field(default_factory=PasswordCache.disabled)
    keychain: KeychainPort | None = None
    editor: Editor | None = None
    environ: Mapping[str, str] = field(default_factory=dict)
    help_text: str = ""
    examples_text: str = ""

    @property
    def keychain_available(self) -> bool:
        return self.keychain is not None

    def key_resolver(self) -> KeyResolver:
        return KeyResolver(
            self.input_port,
            self.cache,
            self.cipher,
            keychain=self.keychain,
            environ=self.environ,
        )
