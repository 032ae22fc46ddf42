# assetbuild/assets/stream.py
from __future__ import annotations
import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from assetbuild.core.errors import InvariantViolation

logger = logging.getLogger(__name__)

__all__ = ["AggregateAssetStream"]

ErrorListener = Callable[[BaseException, str], None]
EndListener = Callable[[], None]



class AggregateAssetStream:
    """
    Append-only sink for transformed asset content of one build.

    - write(chunk): one chunk per asset file
    - end(): closes exactly once, later calls are no-ops
    - onError/emitError: package-scoped failures, never closes the stream
    - abort(err): fatal build failure, readers raise `err`
    
    Readers `async for chunk in stream` and see every chunk, including those
    written before they started reading.
    """
    def __init__(self, kind: str = "style") -> None:
        self.kind = kind
        self.chunks: list[str] = []
        self.errors: list[tuple[BaseException, str]] = []
        self._ended = False
        self._fatal: BaseException | None = None
        self._waiters: list[asyncio.Future[None]] = []
        self._errorListeners: list[ErrorListener] = []
        self._endListeners: list[EndListener] = []

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def aborted(self) -> BaseException | None:
        return self._fatal

    # ----- Writing -----

    def write(self, chunk: str) -> None:
        if self._ended:
            raise InvariantViolation(f"write after end on '{self.kind}' asset stream")
        self.chunks.append(chunk)
        self._notify()

    def end(self) -> bool:
        """Ends the stream. Returns True only for the call that actually ended it."""
        if self._ended:
            return False
        self._ended = True
        logger.debug("Asset stream '%s' ended after %d chunk(s)", self.kind, len(self.chunks))
        self._notify()
        for fn in list(self._endListeners):
            try:
                fn()
            except Exception:
                logger.exception("Asset stream end listener raised")
        return True

    def abort(self, err: BaseException) -> None:
        if self._fatal is None and not self._ended:
            self._fatal = err
            self._notify()

    # ----- Events -----

    def onError(self, fn: ErrorListener) -> Callable[[], None]:
        self._errorListeners.append(fn)
        return lambda: self._errorListeners.remove(fn) if fn in self._errorListeners else None

    def onEnd(self, fn: EndListener) -> Callable[[], None]:
        self._endListeners.append(fn)
        return lambda: self._endListeners.remove(fn) if fn in self._endListeners else None

    def emitError(self, err: BaseException, packagePath: str) -> None:
        self.errors.append((err, packagePath))
        # Logged unconditionally so unsubscribed callers still see failures.
        logger.warning("Asset error in package '%s': %s", packagePath, err)
        for fn in list(self._errorListeners):
            try:
                fn(err, packagePath)
            except Exception:
                logger.exception("Asset stream error listener raised")

    # ----- Reading -----

    def _notify(self) -> None:
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(None)

    async def __aiter__(self) -> AsyncIterator[str]:
        idx = 0
        while True:
            while idx < len(self.chunks):
                yield self.chunks[idx]
                idx += 1
            if self._ended:
                return
            if self._fatal is not None:
                raise self._fatal
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            await waiter

    async def collect(self) -> list[str]:
        return [chunk async for chunk in self]

    async def read(self) -> str:
        """Whole aggregate output once the stream has ended."""
        return "".join(await self.collect())
