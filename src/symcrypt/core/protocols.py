"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols, never on concrete
implementations.
"""

from __future__ import annotations

from typing import Protocol


class Cipher(Protocol):
    """Contract for the symmetric cipher.

    Every method raises :class:`~symcrypt.exceptions.CipherError` on an
    invalid key, a wrong password or corrupt input.  No other exception
    may escape an implementation.
    """

    def generate_key(self) -> bytes:
        """Return a fresh base64url-encoded private key."""
        ...  # pragma: no cover

    def encrypt(self, plaintext: bytes, key: bytes) -> bytes:
        """Encrypt *plaintext* with the base64url-encoded *key*."""
        ...  # pragma: no cover

    def decrypt(self, ciphertext: bytes, key: bytes) -> bytes:
        """Decrypt *ciphertext* with the base64url-encoded *key*."""
        ...  # pragma: no cover

    def encrypt_with_password(self, plaintext: bytes, password: str) -> bytes:
        """Encrypt *plaintext* with a key derived from *password*."""
        ...  # pragma: no cover

    def decrypt_with_password(self, ciphertext: bytes, password: str) -> bytes:
        """Reverse :meth:`encrypt_with_password`."""
        ...  # pragma: no cover


class InteractiveInputPort(Protocol):
    """Contract for asking the human at the terminal for input.

    Calls block until the user answers.  Cancelling the prompt raises
    ``KeyboardInterrupt``.
    """

    def prompt(self, message: str, *, secret: bool = False) -> str:
        """Show *message* and return the entered text.

        When *secret* is true the terminal should not echo the input.
        """
        ...  # pragma: no cover

    def notify(self, message: str) -> None:
        """Show a status line (e.g. "Invalid password") to the user."""
        ...  # pragma: no cover


class CacheProvider(Protocol):
    """Contract for password cache backends.

    Implementations may raise anything; :class:`PasswordCache` absorbs
    all provider failures.
    """

    def read(self, key: str) -> bytes | None:
        ...  # pragma: no cover

    def write(self, key: str, value: bytes, ttl: int) -> None:
        ...  # pragma: no cover


class KeychainPort(Protocol):
    """Contract for the OS keychain.

    Implementations map backend failures to
    :class:`~symcrypt.exceptions.KeychainError`.
    """

    def read(self, name: str) -> bytes | None:
        ...  # pragma: no cover

    def write(self, name: str, value: bytes) -> None:
        ...  # pragma: no cover

    def delete(self, name: str) -> None:
        ...  # pragma: no cover


class Editor(Protocol):
    """Contract for editing text in an external program."""

    def edit(self, content: bytes, *, suffix: str = "") -> bytes:
        """Let the user edit *content* and return the result.

        *suffix* is a file extension hint for syntax highlighting.

        Raises
        ------
        EditorError
            When the editor cannot be started or exits with an error.
        """
        ...  # pragma: no cover


class OutputSink(Protocol):
    """Contract for delivering a command payload."""

    def write(self, payload: str | bytes) -> None:
        ...  # pragma: no cover


class FileStore(Protocol):
    """Contract for reading and writing the data files a command touches.

    The name ``-`` refers to standard input.  Implementations map OS
    failures to :class:`~symcrypt.exceptions.ContentError`.
    """

    def read(self, name: str) -> bytes:
        ...  # pragma: no cover

    def write(self, name: str, data: bytes) -> None:
        ...  # pragma: no cover

    def backup(self, name: str) -> str:
        """Copy *name* aside and return the backup's name."""
        ...  # pragma: no cover
