"""Local filesystem access for command data and file output.

Implements :class:`~symcrypt.core.protocols.FileStore` and the file
variant of :class:`~symcrypt.core.protocols.OutputSink`.  OS errors are
re-raised as :class:`~symcrypt.exceptions.ContentError`.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import BinaryIO

from symcrypt.exceptions import ContentError

STDIN_NAME: str = "-"
BACKUP_SUFFIX: str = ".bak"


class LocalFileStore:
    """Read and write files on the local disk; ``-`` is standard input."""

    def __init__(self, stdin: BinaryIO | None = None) -> None:
        self._stdin = stdin

    def read(self, name: str) -> bytes:
        if name == STDIN_NAME:
            stream = self._stdin if self._stdin is not None else sys.stdin.buffer
            return stream.read()
        path = Path(name).expanduser()
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise ContentError(f"File {path} was not found.") from exc
        except OSError as exc:
            raise ContentError(f"Unable to read {path}: {exc}") from exc

    def write(self, name: str, data: bytes) -> None:
        path = Path(name).expanduser()
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise ContentError(f"Unable to write {path}: {exc}") from exc

    def backup(self, name: str) -> str:
        source = Path(name).expanduser()
        target = source.with_name(source.name + BACKUP_SUFFIX)
        try:
            shutil.copy2(source, target)
        except OSError as exc:
            raise ContentError(f"Unable to back up {source}: {exc}") from exc
        return str(target)


class FileSink:
    """Write a command payload to a file.

    Text payloads get a trailing newline, bytes are written untouched.
    """

    def __init__(self, name: str, store: LocalFileStore | None = None) -> None:
        self._name = name
        self._store = store or LocalFileStore()

    def write(self, payload: str | bytes) -> None:
        data = payload if isinstance(payload, bytes) else (payload + "\n").encode("utf-8")
        self._store.write(self._name, data)
