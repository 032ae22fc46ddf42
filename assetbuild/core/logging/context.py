# assetbuild/core/logging/context.py
from __future__ import annotations
import contextvars

# Log context is copied into every asyncio task at creation, so per-package values stay per-task.
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("assetbuild.logctx", default=None)

def setLogContext(**kvs):
    """Set or update per-log context values (buildId, packagePath, etc.)."""
    current = dict(_logContextVar.get() or {}) # use copy
    for key, value in kvs.items():
        if value is not None:
            current[key] = value
    _logContextVar.set(current)

def clearLogContext():
    """Drops every value from the current context."""
    _logContextVar.set(None)

def getLogContext():
    """Return current context dict or None."""
    return _logContextVar.get()
