"""Key resolution: turn flags into a usable private key.

Resolution is a small state machine::

    Start -> SourceFound -> EncodingChecked -> Unlocked
                                            -> PasswordRetry(n) -> Unlocked
                                                                -> Failed

Sources are tried in a fixed order and the first present one wins:
literal key, key file, environment variable, keychain, interactive
prompt.  The material is then checked for base64url encoding and, when
it looks password-protected, unlocked with a cached or prompted
password.

Only :class:`~symcrypt.exceptions.SymcryptError` subclasses escape.
"""

from __future__ import annotations

import base64
import logging
import re
from collections.abc import Collection, Mapping
from pathlib import Path

from symcrypt.core.models import KeyCandidate, KeySource, OptionSet, ResolvedKey
from symcrypt.core.password_cache import PasswordCache, fingerprint
from symcrypt.core.protocols import Cipher, InteractiveInputPort, KeychainPort
from symcrypt.exceptions import (
    CipherError,
    InvalidKeyEncodingError,
    InvalidPasswordError,
    KeychainError,
    KeyFileNotFoundError,
    KeyNotFoundError,
    PrivateKeyError,
)

logger = logging.getLogger(__name__)

SOURCE_ORDER: tuple[KeySource, ...] = (
    KeySource.LITERAL,
    KeySource.FILE,
    KeySource.ENVIRONMENT,
    KeySource.KEYCHAIN,
    KeySource.INTERACTIVE,
)

PROTECTED_KEY_MIN_LENGTH: int = 45
"""Policy: material longer than this is treated as password-protected.

A plain key is 44 characters of base64url, so anything longer must be a
wrapped blob.  This is a heuristic and may be revisited.
"""

MAX_PASSWORD_ATTEMPTS: int = 3

KEY_PROMPT = "Private key: "
PASSWORD_PROMPT = "Password: "
INVALID_PASSWORD_NOTICE = "Invalid password, please try again."

_BASE64URL = re.compile(r"[A-Za-z0-9_-]+={0,2}")


def is_base64url(material: str) -> bool:
    """Return whether *material* strictly decodes as base64url."""
    text = material.strip()
    if not _BASE64URL.fullmatch(text):
        return False
    if "=" not in text:
        text += "=" * (-len(text) % 4)
    try:
        base64.b64decode(text.encode("ascii"), altchars=b"-_", validate=True)
    except ValueError:
        return False
    return True


def looks_password_protected(material: str) -> bool:
    return len(material) > PROTECTED_KEY_MIN_LENGTH


class KeyResolver:
    """Produce a :class:`ResolvedKey` from an :class:`OptionSet`.

    Parameters
    ----------
    input_port:
        Used for the interactive key source and for password prompts.
    cache:
        Consulted before prompting for a password.
    cipher:
        Unlocks password-protected keys.
    keychain:
        ``None`` when the host has no keychain.
    environ:
        Environment used by the ``key_env`` source.
    """

    def __init__(
        self,
        input_port: InteractiveInputPort,
        cache: PasswordCache,
        cipher: Cipher,
        *,
        keychain: KeychainPort | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._input = input_port
        self._cache = cache
        self._cipher = cipher
        self._keychain = keychain
        self._environ: Mapping[str, str] = environ if environ is not None else {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(
        self,
        options: OptionSet,
        *,
        excluded_sources: Collection[KeySource] = (),
        password_flag_unlocks: bool = True,
    ) -> ResolvedKey:
        """Resolve, verify and (if needed) unlock the private key.

        Raises
        ------
        KeyNotFoundError
            When no source supplies key material.
        KeyFileNotFoundError
            When the key file does not exist.
        InvalidKeyEncodingError
            When the material is not base64url.
        InvalidPasswordError
            After :data:`MAX_PASSWORD_ATTEMPTS` wrong passwords.
        """
        candidate = self.find_candidate(options, excluded_sources=excluded_sources)
        self._verify_encoding(candidate.material, candidate.source, options)

        unlock = looks_password_protected(candidate.material) or (
            password_flag_unlocks and options.is_set("password")
        )
        if not unlock:
            return ResolvedKey(
                key=candidate.material.encode("ascii"),
                source=candidate.source,
                material=candidate.material,
            )

        key = self._unlock(candidate)
        self._verify_encoding(key, candidate.source, options)
        return ResolvedKey(
            key=key.encode("ascii"),
            source=candidate.source,
            material=candidate.material,
            was_password_protected=True,
        )

    def find_candidate(
        self,
        options: OptionSet,
        *,
        excluded_sources: Collection[KeySource] = (),
    ) -> KeyCandidate:
        """Return the material of the first present source."""
        for source in SOURCE_ORDER:
            if source in excluded_sources or not options.is_set(source.option):
                continue
            material = self._read_source(source, options).strip()
            if not material:
                raise KeyNotFoundError(
                    f"The {source.option} source produced an empty key.",
                    source=source,
                )
            logger.debug("Private key read from %s", source.option)
            return KeyCandidate(source=source, material=material)
        raise KeyNotFoundError(
            "Private key is required.",
            hint="Provide one with -k/--key, -K/--keyfile, --key-env, "
            "-x/--keychain or -i/--interactive.",
        )

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def _read_source(self, source: KeySource, options: OptionSet) -> str:
        if source is KeySource.LITERAL:
            return options.string("key") or ""
        if source is KeySource.FILE:
            return self._read_key_file(options.string("keyfile") or "")
        if source is KeySource.ENVIRONMENT:
            return self._read_environment(options.string("key_env") or "")
        if source is KeySource.KEYCHAIN:
            return self._read_keychain(options.string("keychain") or "")
        return self._input.prompt(KEY_PROMPT, secret=True)

    @staticmethod
    def _read_key_file(name: str) -> str:
        path = Path(name).expanduser()
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise KeyFileNotFoundError(
                f"Encryption key file {path} was not found.",
                source=KeySource.FILE,
            ) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise PrivateKeyError(
                f"Unable to read key file {path}: {exc}",
                source=KeySource.FILE,
            ) from exc

    def _read_environment(self, name: str) -> str:
        value = self._environ.get(name)
        if not value:
            raise KeyNotFoundError(
                f"Environment variable {name} is not set.",
                source=KeySource.ENVIRONMENT,
            )
        return value

    def _read_keychain(self, name: str) -> str:
        if self._keychain is None:
            raise KeychainError("The keychain is not available on this system.")
        value = self._keychain.read(name)
        if value is None:
            raise KeyNotFoundError(
                f"No key named {name!r} in the keychain.",
                source=KeySource.KEYCHAIN,
            )
        return value.decode("utf-8")

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @staticmethod
    def _verify_encoding(material: str, source: KeySource, options: OptionSet) -> None:
        if is_base64url(material):
            return
        raise InvalidKeyEncodingError(
            "Private key does not appear to be properly encoded.",
            source=source,
            hint=None if options.is_set("password") else "Perhaps the key is password-protected?",
        )

    def _unlock(self, candidate: KeyCandidate) -> str:
        blob = candidate.material.encode("ascii")
        key_fingerprint = fingerprint(candidate.material)

        cached = self._cache.get(key_fingerprint)
        if cached is not None:
            try:
                return self._decrypt_key(blob, cached.decode("utf-8", errors="replace"))
            except CipherError:
                logger.debug("Cached password no longer unlocks the key")

        last_error: CipherError | None = None
        for attempt in range(1, MAX_PASSWORD_ATTEMPTS + 1):
            password = self._input.prompt(PASSWORD_PROMPT, secret=True)
            try:
                key = self._decrypt_key(blob, password)
            except CipherError as exc:
                last_error = exc
                logger.debug("Password attempt %d/%d failed", attempt, MAX_PASSWORD_ATTEMPTS)
                self._input.notify(INVALID_PASSWORD_NOTICE)
                continue
            self._cache.put(key_fingerprint, password.encode("utf-8"))
            return key

        raise InvalidPasswordError(
            "Invalid password, the private key can not be decrypted.",
            source=candidate.source,
        ) from last_error

    def _decrypt_key(self, blob: bytes, password: str) -> str:
        plain = self._cipher.decrypt_with_password(blob, password)
        try:
            return plain.decode("ascii")
        except UnicodeDecodeError as exc:
            raise CipherError("Decrypted key is not valid text.") from exc
