# assetbuild/core/logging/formatters.py
from __future__ import annotations

import json
import logging
from typing import Any

from .context import getLogContext

__all__ = ["CONTEXT_KEYS", "JsonFormatter", "DevFormatter"]



# Context keys shown on console lines, in this order
CONTEXT_KEYS = ("buildId", "packagePath")



def _describeException(formatter: logging.Formatter, record: logging.LogRecord) -> dict[str, Any]:
    excType, excValue, _tb = record.exc_info  # type: ignore[misc]
    try:
        return {
            "type": getattr(excType, "__name__", "Error"),
            "message": str(excValue),
            "cause": repr(excValue.__cause__) if excValue is not None and excValue.__cause__ else None,
            "stack": formatter.formatException(record.exc_info),  # type: ignore[arg-type]
        }
    except Exception:
        return {"type": "Error", "message": "format failed", "cause": None, "stack": None}



class JsonFormatter(logging.Formatter):
    """One-line JSON records for log files and machine consumers."""
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": dict(getLogContext() or {}),
            "task": getattr(record, "taskName", None),
        }
        if record.exc_info:
            payload["exc"] = _describeException(self, record)
        return json.dumps(payload, ensure_ascii=False, default=str)



class DevFormatter(logging.Formatter):
    """Console lines: `LEVEL: [logger] message [buildId packagePath]`."""
    def format(self, record: logging.LogRecord) -> str:
        ctx = getLogContext() or {}
        tags = [str(ctx[key]) for key in CONTEXT_KEYS if ctx.get(key)]
        line = f"{record.levelname}: [{record.name}] {record.getMessage()}"
        if tags:
            line += " [" + " ".join(tags) + "]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        if record.stack_info:
            line += "\n" + self.formatStack(record.stack_info)
        return line
