# assetbuild/config/providers.py
from __future__ import annotations
import copy
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, cast

import json5

from assetbuild.core.dictpath import getByPath, setByPath, deleteByPath
from assetbuild.core.errors import ConfigError

logger = logging.getLogger(__name__)

__all__ = ["ConfigProvider", "OverrideProvider", "DefaultsProvider", "FileProvider"]



class ConfigProvider(Protocol):
    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any) -> None: ...
    def to_dict(self) -> dict[str, Any]: ...



def _readJson5Object(path: Path, owner: str) -> dict[str, Any]:
    try:
        parsed = json5.loads(path.read_text(encoding="utf-8"))
    except Exception as err:
        raise ConfigError(f"{owner}: failed to parse '{path}': {err}") from err

    if not isinstance(parsed, Mapping):
        raise ConfigError(f"{owner}: file content must be a JSON object, not '{type(parsed).__name__}'")
    return dict(cast(Mapping[str, Any], parsed))

# ----------------------------------------------
#          OverrideProvider (in-memory)
# ----------------------------------------------

class OverrideProvider:
    """
    Volatile, writable, topmost override layer (CLI flags, tests). Never saved to disk.
    """
    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = {}
        for key, value in (data or {}).items():
            self.set(key, value)
    
    def get(self, key: str) -> Any | None:
        return getByPath(self._data, key, None)
    
    def set(self, key: str, value: Any) -> None:
        if value is None:
            deleteByPath(self._data, key, pruneEmptyParents=True)
            return
        setByPath(self._data, key, copy.deepcopy(value), createIfMissing=True)
    
    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)



# ----------------------------------------------
#       Read-only defaults (mapping or file)
# ----------------------------------------------

class DefaultsProvider:
    """
    Read-only provider for shipped default configuration.

    Initialized either from an in-memory mapping (via `data`)
    or from a JSON/JSON5 file (via `path`).

    Example:
        DefaultsProvider(data={"assets": {"encoding": "utf-8"}})
        DefaultsProvider(path="./defaults.json5")
    
    Raises:
        ValueError: if neither or both of `data` and `path` are provided
        ConfigError: if the file is missing, unparsable or not a JSON object
    """
    def __init__(self, data: Mapping[str, Any] | None = None, *, path: Path | str | None = None) -> None:
        if (data is None) == (path is None):
            raise ValueError(f"{type(self).__name__}: provide exactly one of 'data' or 'path'")

        if path is not None:
            path = Path(path)
            if not path.is_file():
                raise ConfigError(f"{type(self).__name__}: defaults file '{path}' not found")
            self.data: Mapping[str, Any] = _readJson5Object(path, type(self).__name__)
        else:
            if not isinstance(data, Mapping):
                raise ConfigError(f"{type(self).__name__}: 'data' must be a Mapping, not '{type(data).__name__}'")
            self.data = data

    def get(self, key: str) -> Any | None:
        return getByPath(self.data, key, None)
    
    def set(self, key: str, value: Any) -> None:
        raise RuntimeError(f"{type(self).__name__}: is read-only")
    
    def to_dict(self) -> dict[str, Any]:
        # Always a deep copy to prevent accidental mutation
        return copy.deepcopy(dict(self.data))



# ----------------------------------------------
#        Project file provider JSON/JSON5
# ----------------------------------------------

class FileProvider:
    """
    Read-only project configuration file (e.g. `assetbuild.json5` next to the build).

    Behavior:
        • Missing file → empty layer
        • Path is a directory → ConfigError
        • Parse error or non-object JSON → ConfigError
    """
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._data: dict[str, Any] = {}

        if not self.path.exists():
            logger.debug("%s: '%s' is missing → starting as empty dict", type(self).__name__, self.path)
            return
        if not self.path.is_file():
            raise ConfigError(f"{type(self).__name__}: '{self.path}' exists but is not a file")
        self._data = _readJson5Object(self.path, type(self).__name__)
        logger.debug("%s: loaded '%s'", type(self).__name__, self.path)

    def get(self, key: str) -> Any | None:
        return getByPath(self._data, key, None)

    def set(self, key: str, value: Any) -> None:
        raise RuntimeError(f"{type(self).__name__}: is read-only")

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)
