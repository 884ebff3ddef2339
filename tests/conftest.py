"""Shared pytest fixtures and configuration for the symcrypt test suite.

Guidelines
----------
* No network access in any test; cache backends are faked.
* The real OS keychain is never touched; keyring is mocked at the
  infra boundary.
* Interactive prompts are scripted, no terminal interaction.
* Core tests must be pure, no side effects.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

import pytest

from symcrypt.cli.console import console
from symcrypt.infra.fernet_cipher import FernetCipher
from symcrypt.utils.log import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_cli_state() -> Iterator[None]:
    """Undo logging handlers and colour settings installed by ``main``."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    console.no_color = False


class ScriptedInput:
    """InteractiveInputPort that replays canned answers in order."""

    def __init__(self, answers: Iterable[str] = ()) -> None:
        self.answers: list[str] = list(answers)
        self.prompts: list[str] = []
        self.notices: list[str] = []

    def prompt(self, message: str, *, secret: bool = False) -> str:
        self.prompts.append(message)
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {message!r}")
        return self.answers.pop(0)

    def notify(self, message: str) -> None:
        self.notices.append(message)


@pytest.fixture
def scripted_input() -> Callable[..., ScriptedInput]:
    """Factory: ``scripted_input("pw1", "pw2")``."""
    return lambda *answers: ScriptedInput(answers)


@pytest.fixture
def cipher() -> FernetCipher:
    """Real cipher with a cheap Scrypt cost so password tests stay fast."""
    return FernetCipher(scrypt_n=2**4)


@pytest.fixture
def private_key(cipher: FernetCipher) -> bytes:
    return cipher.generate_key()


@pytest.fixture
def protected_key(cipher: FernetCipher, private_key: bytes) -> str:
    """*private_key* wrapped with the password ``"secret"``."""
    return cipher.encrypt_with_password(private_key, "secret").decode("ascii")


class DictKeychain:
    """In-memory KeychainPort."""

    def __init__(self, **entries: str) -> None:
        self.entries = {name: value.encode() for name, value in entries.items()}

    def read(self, name: str) -> bytes | None:
        return self.entries.get(name)

    def write(self, name: str, value: bytes) -> None:
        self.entries[name] = value

    def delete(self, name: str) -> None:
        del self.entries[name]


class FakeFileStore:
    """In-memory FileStore; ``-`` reads the configured stdin bytes."""

    def __init__(self, stdin: bytes = b"", **files: bytes) -> None:
        self.stdin = stdin
        self.files: dict[str, bytes] = dict(files)

    def read(self, name: str) -> bytes:
        if name == "-":
            return self.stdin
        return self.files[name]

    def write(self, name: str, data: bytes) -> None:
        self.files[name] = data

    def backup(self, name: str) -> str:
        target = name + ".bak"
        self.files[target] = self.files[name]
        return target
