"""``cryptography``-backed implementation of :class:`~symcrypt.core.protocols.Cipher`.

This module is the **only** place in the codebase that imports
``cryptography``.  Every cryptography exception is caught here and
re-raised as :class:`~symcrypt.exceptions.CipherError`, so nothing raw
escapes the infrastructure boundary.

Formats
-------
* Private key: a Fernet key, 32 random bytes as base64url (44 chars).
* Ciphertext: a Fernet token (base64url text).
* Password-protected data: ``base64url(salt || token)`` where the token
  is made with a key derived from the password by Scrypt.
"""

from __future__ import annotations

import base64
import os
from typing import Any

from symcrypt.exceptions import CipherError, EnvironmentError

SALT_SIZE: int = 16
SCRYPT_N: int = 2**14
SCRYPT_R: int = 8
SCRYPT_P: int = 1


def _import_fernet() -> tuple[type[Any], type[Exception]]:
    """Import ``Fernet`` and ``InvalidToken`` lazily."""
    try:
        from cryptography.fernet import Fernet, InvalidToken
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "cryptography is not installed. Install with: pip install cryptography",
        ) from exc
    return Fernet, InvalidToken


class FernetCipher:
    """Concrete :class:`Cipher` backed by ``cryptography.fernet``.

    This class satisfies the :class:`~symcrypt.core.protocols.Cipher`
    protocol structurally; no explicit inheritance required.
    """

    def __init__(self, *, scrypt_n: int = SCRYPT_N) -> None:
        self._scrypt_n = scrypt_n

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def generate_key(self) -> bytes:
        fernet_class, _ = _import_fernet()
        return fernet_class.generate_key()

    def encrypt(self, plaintext: bytes, key: bytes) -> bytes:
        return self._fernet(key).encrypt(plaintext)

    def decrypt(self, ciphertext: bytes, key: bytes) -> bytes:
        _, invalid_token = _import_fernet()
        fernet = self._fernet(key)
        try:
            return fernet.decrypt(ciphertext)
        except invalid_token as exc:
            raise CipherError(
                "Unable to decrypt the data.",
                hint="Perhaps either the key is invalid, or the encrypted data is corrupt.",
            ) from exc

    def encrypt_with_password(self, plaintext: bytes, password: str) -> bytes:
        salt = os.urandom(SALT_SIZE)
        token = self._fernet(self._derive_key(password, salt)).encrypt(plaintext)
        return base64.urlsafe_b64encode(salt + token)

    def decrypt_with_password(self, ciphertext: bytes, password: str) -> bytes:
        _, invalid_token = _import_fernet()
        try:
            raw = base64.urlsafe_b64decode(ciphertext)
        except ValueError as exc:
            raise CipherError("Password-protected data is not valid base64.") from exc
        if len(raw) <= SALT_SIZE:
            raise CipherError("Password-protected data is too short.")

        salt, token = raw[:SALT_SIZE], raw[SALT_SIZE:]
        try:
            return self._fernet(self._derive_key(password, salt)).decrypt(token)
        except invalid_token as exc:
            raise CipherError("Invalid password.") from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _fernet(key: bytes) -> Any:
        fernet_class, _ = _import_fernet()
        try:
            return fernet_class(key)
        except (TypeError, ValueError) as exc:
            raise CipherError(
                "The private key is not a valid 32-byte base64url key.",
            ) from exc

    def _derive_key(self, password: str, salt: bytes) -> bytes:
        from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

        kdf = Scrypt(salt=salt, length=32, n=self._scrypt_n, r=SCRYPT_R, p=SCRYPT_P)
        return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))
