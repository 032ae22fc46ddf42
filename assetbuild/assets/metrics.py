# assetbuild/assets/metrics.py
from __future__ import annotations
import logging

from assetbuild.core.time import nowMonotonicMs
from .events import BuildEvents

logger = logging.getLogger(__name__)

__all__ = ["MetricsEmitter", "formatBytesLine"]



def formatBytesLine(byteCount: int, deltaMs: int) -> str:
    return f"{byteCount} bytes written ({deltaMs / 1000:.2f} seconds)"



class MetricsEmitter:
    """Bytes and elapsed time of the main build output, from record-complete to output-complete."""
    def __init__(self, events: BuildEvents) -> None:
        self._events = events
        self.startedMs: int | None = None
        self.bytes = 0
        self.deltaMs: int | None = None

    def markRecordComplete(self) -> None:
        self.startedMs = nowMonotonicMs()

    def count(self, chunk: bytes | str) -> None:
        self.bytes += len(chunk.encode("utf-8") if isinstance(chunk, str) else chunk)

    def finish(self) -> int:
        if self.startedMs is None:
            # Record stage never signalled; measure nothing rather than since epoch
            self.startedMs = nowMonotonicMs()
        self.deltaMs = nowMonotonicMs() - self.startedMs
        line = formatBytesLine(self.bytes, self.deltaMs)
        self._events.emit("time", self.deltaMs)
        self._events.emit("bytes", self.bytes)
        self._events.emit("log", line)
        logger.info(line)
        return self.deltaMs
