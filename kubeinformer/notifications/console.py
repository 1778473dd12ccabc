"""Console notification sink: prints alerts to stdout."""

from __future__ import annotations

import sys
from typing import TextIO

from kubeinformer.notifications.manager import NotificationSink


class ConsoleSink(NotificationSink):
    """Writes ``[CONSOLE] <message>`` lines to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def sink_name(self) -> str:
        return "console"

    async def send(self, message: str) -> bool:
        stream = self._stream or sys.stdout
        print("[CONSOLE]", message, file=stream, flush=True)
        return True
