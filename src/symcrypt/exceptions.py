"""Custom exception hierarchy for symcrypt.

All exceptions that cross layer boundaries must inherit from
:class:`SymcryptError`.  Raw third-party exceptions (e.g. from
``cryptography``, ``keyring`` or ``redis``) must NEVER propagate beyond
the infrastructure layer; they must be caught and re-raised as a typed
subclass defined here.

Hierarchy
---------
SymcryptError
├── CommandNotFoundError
├── AmbiguousCommandError
├── PrivateKeyError
│   ├── KeyNotFoundError
│   ├── KeyFileNotFoundError
│   ├── InvalidKeyEncodingError
│   └── InvalidPasswordError
├── PasswordMismatchError
├── CipherError
├── KeychainError
├── ContentError
├── EditorError
├── ConfigurationError
└── EnvironmentError
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from symcrypt.core.models import KeySource


class SymcryptError(Exception):
    """Base exception for all symcrypt errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Command resolution ----------------------------------------------------

class CommandNotFoundError(SymcryptError):
    """Raised when no command descriptor matches the supplied options."""

    def __init__(
        self,
        message: str,
        *,
        supplied_options: Sequence[str] = (),
        hint: str | None = None,
    ) -> None:
        if hint is None and supplied_options:
            hint = "You provided the following options: " + ", ".join(supplied_options)
        super().__init__(message, hint=hint)
        self.supplied_options: tuple[str, ...] = tuple(supplied_options)


class AmbiguousCommandError(SymcryptError):
    """Raised when a command registry cannot break a tie deterministically.

    This is a construction-time error of the static registry and never
    depends on user input.
    """


# --- Private key -----------------------------------------------------------

class PrivateKeyError(SymcryptError):
    """Base class for failures while resolving the private key."""

    def __init__(
        self,
        message: str,
        *,
        source: KeySource | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.source: KeySource | None = source
        """The key source that was being attempted, when known."""


class KeyNotFoundError(PrivateKeyError):
    """Raised when no key source yields any key material."""


class KeyFileNotFoundError(PrivateKeyError):
    """Raised when the key file option points at a missing file."""


class InvalidKeyEncodingError(PrivateKeyError):
    """Raised when key material is not valid base64url."""


class InvalidPasswordError(PrivateKeyError):
    """Raised when a password-protected key cannot be unlocked."""


class PasswordMismatchError(SymcryptError):
    """Raised when a new password and its confirmation differ."""


# --- Cipher ----------------------------------------------------------------

class CipherError(SymcryptError):
    """Raised by the cipher on an invalid key or corrupt ciphertext."""


# --- External collaborators ------------------------------------------------

class KeychainError(SymcryptError):
    """Raised when the OS keychain is unavailable or rejects an operation."""


class ContentError(SymcryptError):
    """Raised when the data to encrypt or decrypt cannot be read."""


class EditorError(SymcryptError):
    """Raised when the external editor fails during an edit session."""


class ConfigurationError(SymcryptError):
    """Raised when environment configuration or flag values are invalid."""


class EnvironmentError(SymcryptError):
    """Raised when a required runtime dependency is not available."""
