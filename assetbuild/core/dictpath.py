# assetbuild/core/dictpath.py
from __future__ import annotations
from typing import Any
from collections.abc import Mapping, MutableMapping

__all__ = ["getByPath", "setByPath", "deleteByPath", "mergeTrees"]



# ----------------------------------------------
#                  path parsing
# ----------------------------------------------

def _splitPath(path: str) -> list[str]:
    """
    Splits a dotted config path, backslash escapes the next character.

    Examples:
      - assets.encoding     -> ["assets", "encoding"]
      - manifest\\.json.key -> ["manifest.json", "key"]
    """
    if not isinstance(path, str) or not path:
        raise ValueError("Path must be a non-empty string")
    parts: list[str] = []
    curr: list[str] = []
    esc = False
    for ch in path:
        if esc:
            curr.append(ch)
            esc = False
            continue
        if ch == "\\":
            esc = True
            continue
        if ch == ".":
            parts.append("".join(curr))
            curr = []
            continue
        curr.append(ch)
    if esc:
        raise ValueError("Path ends with a dangling escape (trailing backslash)")
    parts.append("".join(curr))
    if any(part == "" for part in parts):
        raise ValueError(f"Path '{path}' contains empty segment(s)")
    return parts



# ----------------------------------------------
#                   Public API
# ----------------------------------------------

def getByPath(obj: Any, path: str, default: Any | None = None) -> Any:
    """
    Returns the value at `path` from nested mappings, or `default` when the chain
    cannot be resolved. Invalid paths count as "not found".
    """
    try:
        parts = _splitPath(path)
    except ValueError:
        return default
    
    current: Any = obj
    for part in parts:
        if isinstance(current, Mapping) and part in current:
            current = current[part]
            continue
        return default
    return current



def setByPath(obj: MutableMapping[str, Any], path: str, value: Any, *, createIfMissing: bool = False) -> None:
    """
    Sets the value at `path`. Missing intermediate mappings are created only
    when `createIfMissing` is set, otherwise KeyError is raised.
    """
    parts = _splitPath(path)
    
    current: Any = obj
    for part in parts[:-1]:
        if not isinstance(current, MutableMapping):
            raise TypeError(f"Cannot descend into '{part}': {type(current).__name__} is not a mutable mapping")
        if part in current:
            current = current[part]
            continue
        if not createIfMissing:
            raise KeyError(f"path segment '{part}' not found in mapping")
        newChild: dict[str, Any] = {}
        current[part] = newChild
        current = newChild
    
    if not isinstance(current, MutableMapping):
        raise TypeError(f"Cannot write to '{parts[-1]}' as parent is {type(current).__name__}")
    current[parts[-1]] = value



def deleteByPath(obj: MutableMapping[str, Any], path: str, *, pruneEmptyParents: bool = True) -> bool:
    """
    Deletes the value at `path`. Returns True if something was removed.
    Empty parent mappings are pruned (never the root) when `pruneEmptyParents` is set.
    """
    parts = _splitPath(path)
    
    stack: list[tuple[MutableMapping[str, Any], str]] = []
    current: Any = obj
    for part in parts[:-1]:
        if isinstance(current, MutableMapping) and part in current:
            stack.append((current, part))
            current = current[part]
            continue
        return False
    
    last = parts[-1]
    if not isinstance(current, MutableMapping) or last not in current:
        return False
    del current[last]
    
    if pruneEmptyParents:
        for parent, key in reversed(stack):
            child = parent.get(key)
            if isinstance(child, MutableMapping) and len(child) == 0:
                del parent[key]
            else:
                break
    
    return True



def mergeTrees(base: Mapping[str, Any], top: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merges `top` over `base`. Nested mappings merge, everything else is replaced."""
    out: dict[str, Any] = dict(base)
    for key, value in top.items():
        existing = out.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            out[key] = mergeTrees(existing, value)
        else:
            out[key] = value
    return out
