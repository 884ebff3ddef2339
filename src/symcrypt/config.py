"""Environment-driven settings for symcrypt.

Settings are read once, in the CLI layer, and passed down explicitly.
Command-line flags always win over these values.

Variables
---------
``SYMCRYPT_ARGS``            extra flags prepended to every invocation
``SYMCRYPT_CACHE_TIMEOUT``   password cache TTL in seconds
``SYMCRYPT_CACHE_PROVIDER``  cache backend name (auto-detected when unset)
``SYMCRYPT_REDIS_URL``       Redis URL for the ``redis`` cache backend
``SYMCRYPT_KEY_FILE``        key file used when no key source is given
``EDITOR``                   program used by ``--edit``
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from symcrypt.exceptions import ConfigurationError

ENV_ARGS_VARIABLE: str = "SYMCRYPT_ARGS"
DEFAULT_CACHE_TIMEOUT: int = 300
DEFAULT_REDIS_URL: str = "redis://127.0.0.1:6379/0"
DEFAULT_KEY_FILE: str = "~/.symcrypt.key"
DEFAULT_EDITOR: str = "vi"


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration values."""

    default_args: tuple[str, ...] = ()
    cache_timeout: int = DEFAULT_CACHE_TIMEOUT
    cache_provider: str | None = None
    redis_url: str = DEFAULT_REDIS_URL
    default_key_file: Path = Path(DEFAULT_KEY_FILE).expanduser()
    editor: str = DEFAULT_EDITOR

    def editor_command(self) -> tuple[str, ...]:
        """Split :attr:`editor` into an argument vector.

        Raises
        ------
        ConfigurationError
            If EDITOR is blank or can not be parsed.
        """
        try:
            argv = tuple(shlex.split(self.editor))
        except ValueError as exc:
            raise ConfigurationError(f"EDITOR could not be parsed: {exc}") from exc
        if not argv:
            raise ConfigurationError("EDITOR is empty.", hint="Set EDITOR to an installed editor.")
        return argv


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}.",
        ) from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}.")
    return value


def load_settings(env: Mapping[str, str]) -> Settings:
    """Build :class:`Settings` from an environment mapping.

    Raises
    ------
    ConfigurationError
        If a variable holds an invalid value.
    """
    try:
        default_args = tuple(shlex.split(env.get(ENV_ARGS_VARIABLE, "")))
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_ARGS_VARIABLE} could not be parsed: {exc}") from exc

    return Settings(
        default_args=default_args,
        cache_timeout=_positive_int(env, "SYMCRYPT_CACHE_TIMEOUT", DEFAULT_CACHE_TIMEOUT),
        cache_provider=env.get("SYMCRYPT_CACHE_PROVIDER") or None,
        redis_url=env.get("SYMCRYPT_REDIS_URL") or DEFAULT_REDIS_URL,
        default_key_file=Path(env.get("SYMCRYPT_KEY_FILE") or DEFAULT_KEY_FILE).expanduser(),
        editor=env.get("EDITOR") or DEFAULT_EDITOR,
    )
