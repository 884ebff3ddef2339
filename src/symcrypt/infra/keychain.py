"""``keyring``-backed implementation of :class:`~symcrypt.core.protocols.KeychainPort`.

The keychain is a host capability: :func:`keychain_available` decides
whether the ``--keychain`` flags exist at all.  All ``keyring`` errors
are re-raised as :class:`~symcrypt.exceptions.KeychainError`.
"""

from __future__ import annotations

import logging
from typing import Any

from symcrypt.exceptions import EnvironmentError, KeychainError

logger = logging.getLogger(__name__)

SERVICE_NAME: str = "symcrypt"


def _import_keyring() -> Any:
    try:
        import keyring
        import keyring.errors
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "keyring is not installed. Install with: pip install keyring",
        ) from exc
    return keyring


def keychain_available() -> bool:
    """Return whether a usable keyring backend is installed.

    The ``fail`` backend that keyring selects when nothing else is
    viable counts as unavailable.
    """
    try:
        keyring = _import_keyring()
        from keyring.backends import fail
    except (EnvironmentError, ImportError):
        return False
    try:
        backend = keyring.get_keyring()
    except Exception as exc:  # noqa: BLE001
        logger.debug("Keyring backend lookup failed: %s", exc)
        return False
    return not isinstance(backend, fail.Keyring)


class KeyringKeychain:
    """Concrete :class:`KeychainPort` storing keys under one service name.

    This class satisfies the :class:`~symcrypt.core.protocols.KeychainPort`
    protocol structurally; no explicit inheritance required.
    """

    def __init__(self, service: str = SERVICE_NAME) -> None:
        self._service = service

    def read(self, name: str) -> bytes | None:
        keyring = _import_keyring()
        try:
            value = keyring.get_password(self._service, name)
        except keyring.errors.KeyringError as exc:
            raise KeychainError(f"Unable to read {name!r} from the keychain: {exc}") from exc
        return value.encode("utf-8") if value is not None else None

    def write(self, name: str, value: bytes) -> None:
        keyring = _import_keyring()
        try:
            keyring.set_password(self._service, name, value.decode("utf-8"))
        except keyring.errors.KeyringError as exc:
            raise KeychainError(f"Unable to save {name!r} to the keychain: {exc}") from exc

    def delete(self, name: str) -> None:
        keyring = _import_keyring()
        try:
            keyring.delete_password(self._service, name)
        except keyring.errors.PasswordDeleteError as exc:
            raise KeychainError(f"No key named {name!r} in the keychain.") from exc
        except keyring.errors.KeyringError as exc:
            raise KeychainError(f"Unable to delete {name!r} from the keychain: {exc}") from exc
