"""Fail-open password cache keyed by a fingerprint of key material.

Every provider call runs under a short timeout that wraps a bounded
retry.  Any timeout or provider exception is absorbed: the cache logs it
and disables itself for the rest of the process, so a flaky backend can
slow the first call down but never block encryption or decryption.

Guarantees
----------
* :meth:`PasswordCache.get` and :meth:`PasswordCache.put` never raise.
* Fingerprints are one-way digests of the key material, never of the
  password.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from symcrypt.core.protocols import CacheProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_CALL_TIMEOUT: float = 1.0
"""Seconds allowed for one cache operation, retries included."""

CACHE_RETRY_ATTEMPTS: int = 3
"""Provider calls per cache operation before giving up."""

DEFAULT_TTL: int = 300
"""Seconds a cached password stays valid unless configured otherwise."""


def fingerprint(material: str | bytes) -> str:
    """Return the base64 SHA-256 digest of *material*."""
    if isinstance(material, str):
        material = material.encode("utf-8")
    return base64.b64encode(hashlib.sha256(material).digest()).decode("ascii")


class CacheTimeoutError(Exception):
    """Internal signal that a provider call exceeded its time budget."""


def _call_with_timeout(func: Callable[[], T], timeout: float) -> T:
    """Run *func* on a daemon thread and wait at most *timeout* seconds.

    The worker is a daemon so a hung backend cannot keep the process
    alive after the CLI finishes.
    """
    outcome: dict[str, object] = {}

    def runner() -> None:
        try:
            outcome["value"] = func()
        except BaseException as exc:  # noqa: BLE001
            outcome["error"] = exc

    worker = threading.Thread(target=runner, name="symcrypt-cache", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise CacheTimeoutError(f"cache call exceeded {timeout:.1f}s")
    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    return outcome.get("value")  # type: ignore[return-value]


class PasswordCache:
    """TTL-bounded mapping from key fingerprint to password.

    Parameters
    ----------
    provider:
        Any object satisfying the :class:`CacheProvider` protocol, or
        ``None`` for a permanently disabled cache.
    enabled:
        Whether caching was requested at all.
    ttl:
        Default expiry, in seconds, for :meth:`put`.
    verbose:
        Log provider failures as warnings instead of debug messages.
    """

    def __init__(
        self,
        provider: CacheProvider | None,
        *,
        enabled: bool = True,
        ttl: int = DEFAULT_TTL,
        verbose: bool = False,
        timeout: float = CACHE_CALL_TIMEOUT,
        attempts: int = CACHE_RETRY_ATTEMPTS,
    ) -> None:
        self._provider = provider
        self._enabled = enabled and provider is not None
        self._ttl = ttl
        self._verbose = verbose
        self._timeout = timeout
        self._attempts = max(1, attempts)

    @classmethod
    def disabled(cls) -> PasswordCache:
        return cls(None, enabled=False)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def ttl(self) -> int:
        return self._ttl

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key_fingerprint: str) -> bytes | None:
        """Return the cached password for *key_fingerprint*, if any."""
        provider = self._provider
        if not self._enabled or provider is None:
            return None
        value = self._operation(lambda: provider.read(key_fingerprint))
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def put(
        self,
        key_fingerprint: str,
        password: bytes,
        ttl: int | None = None,
    ) -> None:
        """Remember *password* for *key_fingerprint* for *ttl* seconds."""
        provider = self._provider
        if not self._enabled or provider is None:
            return
        expiry = self._ttl if ttl is None else ttl
        self._operation(lambda: provider.write(key_fingerprint, password, expiry))

    # ------------------------------------------------------------------
    # Timeout + retry boundary
    # ------------------------------------------------------------------

    def _operation(self, call: Callable[[], T]) -> T | None:
        try:
            return _call_with_timeout(lambda: self._with_retry(call), self._timeout)
        except CacheTimeoutError:
            self._disable("Password cache server timed out.", None)
        except Exception as exc:  # noqa: BLE001
            self._disable("Error connecting to password cache server.", exc)
        return None

    def _with_retry(self, call: Callable[[], T]) -> T:
        last_error: Exception | None = None
        for attempt in range(1, self._attempts + 1):
            try:
                return call()
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.debug("Cache attempt %d/%d failed: %s", attempt, self._attempts, exc)
        assert last_error is not None
        raise last_error

    def _disable(self, message: str, exc: Exception | None) -> None:
        detail = f"{message} {exc}" if exc is not None else message
        if self._verbose:
            logger.warning("%s Password caching is disabled.", detail)
        else:
            logger.debug("%s Password caching is disabled.", detail)
        self._enabled = False
