# assetbuild/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path

from .formatters import DevFormatter, JsonFormatter

__all__ = ["NO_PROPAGATE", "configureLogging"]



# Disable propagation from common libraries
NO_PROPAGATE = ["asyncio", "concurrent.futures"]



def configureLogging(level: str | int = "INFO", *, json: bool = False, logFile: str | Path | None = None) -> None:
    """
    Initiate the process logging configuration.

    Console:
      - DevFormatter by default, JsonFormatter when `json` is set
    File (optional):
      - JSON lines with rotation
    
    Safe to call more than once; previous root handlers are replaced.
    """
    rootLevel = logging.getLevelName(level.upper()) if isinstance(level, str) else int(level)
    if not isinstance(rootLevel, int):
        rootLevel = logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)
    
    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(JsonFormatter() if json else DevFormatter())
    root.addHandler(consoleHandler)

    if logFile:
        fileHandler = logging.handlers.RotatingFileHandler(
            str(logFile),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        root.addHandler(fileHandler)
