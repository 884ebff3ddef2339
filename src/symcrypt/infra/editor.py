"""Edit decrypted content in an external program such as ``$EDITOR``.

The plaintext only ever touches disk inside a private temporary file
(mode ``0600``) that is removed as soon as the editor exits.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path

from symcrypt.exceptions import EditorError


class ExternalEditor:
    """Concrete :class:`~symcrypt.core.protocols.Editor` running a command.

    Parameters
    ----------
    argv:
        Editor argument vector, e.g. ``("code", "--wait")``.  The
        temporary file path is appended as the last argument.
    """

    def __init__(self, argv: Sequence[str]) -> None:
        self._argv = list(argv)
        if not self._argv:
            raise EditorError("The editor command is empty.", hint="Set the EDITOR variable.")

    def edit(self, content: bytes, *, suffix: str = "") -> bytes:
        fd, name = tempfile.mkstemp(prefix="symcrypt-", suffix=suffix)
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            self._run(path)
            return path.read_bytes()
        finally:
            path.unlink(missing_ok=True)

    def _run(self, path: Path) -> None:
        try:
            completed = subprocess.run([*self._argv, str(path)], check=False)
        except FileNotFoundError as exc:
            raise EditorError(
                f"Editor {self._argv[0]!r} was not found.",
                hint="Set the EDITOR variable to an installed editor.",
            ) from exc
        if completed.returncode != 0:
            raise EditorError(
                f"Editor {self._argv[0]!r} exited with status {completed.returncode}; "
                "no changes were saved.",
            )
