"""Standard-output sink for command payloads.

Payloads are written verbatim: bytes go to the binary buffer untouched,
text is printed with a trailing newline.  This is the only place that
writes to stdout.
"""

from __future__ import annotations

import sys
from typing import TextIO


class StdoutSink:
    """Concrete :class:`~symcrypt.core.protocols.OutputSink` for stdout."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def write(self, payload: str | bytes) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        if isinstance(payload, bytes):
            stream.flush()
            stream.buffer.write(payload)
            stream.buffer.flush()
            return
        print(payload, file=stream)
