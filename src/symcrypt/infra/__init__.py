"""Infrastructure layer: external system integration.

This layer wraps all interaction with ``cryptography``, ``keyring``,
``redis``, the filesystem and the external editor.  Every raw
third-party exception must be caught here and re-raised as a
:class:`~symcrypt.exceptions.SymcryptError` subclass; cache providers
are the one exception, because the password cache absorbs their errors.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from symcrypt.infra.cache_providers import (
    MemoryCacheProvider,
    RedisCacheProvider,
    create_provider,
    provider_names,
)
from symcrypt.infra.editor import ExternalEditor
from symcrypt.infra.fernet_cipher import FernetCipher
from symcrypt.infra.files import FileSink, LocalFileStore
from symcrypt.infra.keychain import KeyringKeychain, keychain_available

__all__: list[str] = [
    "ExternalEditor",
    "FernetCipher",
    "FileSink",
    "KeyringKeychain",
    "LocalFileStore",
    "MemoryCacheProvider",
    "RedisCacheProvider",
    "create_provider",
    "keychain_available",
    "provider_names",
]
