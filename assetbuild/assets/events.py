# assetbuild/assets/events.py
from __future__ import annotations
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

__all__ = ["BUILD_EVENTS", "BuildEvents"]



# assetStream(stream, kind), time(ms), bytes(n), log(message), allBundlesComplete(), error(err)
BUILD_EVENTS = frozenset({"assetStream", "time", "bytes", "log", "allBundlesComplete", "error"})

Handler = Callable[..., Any]



class BuildEvents:
    """
    Named build notifications for API consumers.

    Handlers run synchronously in registration order. A failing handler is
    logged and skipped; the remaining handlers still run.
    """
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        if event not in BUILD_EVENTS:
            raise ValueError(f"Unknown build event '{event}'. Known: {sorted(BUILD_EVENTS)}")
        if not callable(handler):
            raise TypeError(f"Handler for '{event}' must be callable")
        self._handlers.setdefault(event, []).append(handler)
        def _unsub() -> None:
            try:
                self._handlers.get(event, []).remove(handler)
            except ValueError:
                pass
        return _unsub

    def emit(self, event: str, *args: Any) -> int:
        """Calls every handler of `event`; returns how many ran."""
        handlers = list(self._handlers.get(event, ()))
        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception("Handler for build event '%s' raised.", event)
        return len(handlers)
