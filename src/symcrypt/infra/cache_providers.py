"""Password cache backends satisfying :class:`~symcrypt.core.protocols.CacheProvider`.

Providers are chosen by name (``--cache-provider``) or auto-detected:
Redis when a server answers ``PING``, otherwise the in-process memory
store.  Providers are allowed to raise; :class:`PasswordCache` absorbs
their failures.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from symcrypt.config import Settings
from symcrypt.core.models import CacheEntry
from symcrypt.core.password_cache import CACHE_CALL_TIMEOUT
from symcrypt.core.protocols import CacheProvider
from symcrypt.exceptions import ConfigurationError, EnvironmentError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# In-process memory
# ---------------------------------------------------------------------------

class MemoryCacheProvider:
    """Dictionary of :class:`CacheEntry` objects that expire lazily."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def read(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.password

    def write(self, key: str, value: bytes, ttl: int) -> None:
        self._entries[key] = CacheEntry(
            fingerprint=key,
            password=value,
            expires_at=self._clock() + ttl,
        )

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

def _import_redis() -> Any:
    try:
        import redis
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "redis is not installed. Install with: pip install redis",
        ) from exc
    return redis


class RedisCacheProvider:
    """Cache passwords in Redis with server-side expiry (``SET ... EX``).

    Parameters
    ----------
    url:
        Redis connection URL.
    namespace:
        Prefix prepended to every fingerprint.
    client:
        Pre-built client, mainly for tests.
    """

    def __init__(
        self,
        url: str,
        *,
        namespace: str = "symcrypt:",
        client: Any | None = None,
    ) -> None:
        self._url = url
        self._namespace = namespace
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            redis = _import_redis()
            self._client = redis.Redis.from_url(
                self._url,
                socket_timeout=CACHE_CALL_TIMEOUT,
                socket_connect_timeout=CACHE_CALL_TIMEOUT,
            )
        return self._client

    def ping(self) -> bool:
        return bool(self.client.ping())

    def read(self, key: str) -> bytes | None:
        value = self.client.get(self._namespace + key)
        if value is None:
            return None
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def write(self, key: str, value: bytes, ttl: int) -> None:
        self.client.set(self._namespace + key, value, ex=max(1, int(ttl)))


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

PROVIDERS: dict[str, Callable[[Settings], CacheProvider]] = {
    "memory": lambda settings: MemoryCacheProvider(),
    "redis": lambda settings: RedisCacheProvider(settings.redis_url),
}


def provider_names() -> tuple[str, ...]:
    return tuple(sorted(PROVIDERS))


def detect_provider(settings: Settings) -> CacheProvider:
    """Prefer a reachable Redis server, fall back to memory."""
    candidate = RedisCacheProvider(settings.redis_url)
    try:
        if candidate.ping():
            logger.debug("Using Redis password cache at %s", settings.redis_url)
            return candidate
    except Exception as exc:  # noqa: BLE001
        logger.debug("Redis password cache unavailable: %s", exc)
    logger.info(
        "Redis is not reachable at %s; passwords are cached in memory for this process only.",
        settings.redis_url,
    )
    return MemoryCacheProvider()


def create_provider(name: str | None, settings: Settings) -> CacheProvider:
    """Build the provider called *name*, or auto-detect one.

    Raises
    ------
    ConfigurationError
        If *name* is not a known provider.
    """
    if not name:
        return detect_provider(settings)
    try:
        factory = PROVIDERS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown cache provider: {name}",
            hint="Choose one of: " + ", ".join(provider_names()),
        ) from None
    return factory(settings)
