# assetbuild/config/store.py
from __future__ import annotations
from typing import Any, Callable

from assetbuild.core.dictpath import mergeTrees
from .providers import ConfigProvider, OverrideProvider

__all__ = ["ConfigStore"]

Validator = Callable[[dict[str, Any]], Any]



class ConfigStore:
    """
    Minimal layered config store:
      - read: first-hit from the topmost provider down
      - write: goes to the topmost OverrideProvider
      - validate: on set(), validate the *effective* merged document, rollback on failure
    """

    def __init__(self, *, namespace: str, providers: list[ConfigProvider], validator: Validator | None = None):
        self.namespace = namespace
        self._providers = providers
        self._validator = validator

    def _merged(self) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        # We merge from bottom to top
        for provider in self._providers:
            merged = mergeTrees(merged, provider.to_dict())
        return merged

    def _overrideLayer(self) -> OverrideProvider:
        for provider in reversed(self._providers):
            if isinstance(provider, OverrideProvider):
                return provider
        raise KeyError(f"No writable override layer in {self.namespace}")
    
    def get(self, key: str, default: Any = None) -> Any:
        for provider in reversed(self._providers): # Topmost first precedence
            value = provider.get(key)
            if value is not None:
                return value
        return default
    
    def set(self, key: str, value: Any) -> None:
        layer = self._overrideLayer()
        oldValue = layer.get(key)
        layer.set(key, value)

        if self._validator is None:
            return
        try:
            self._validator(self._merged())
        except Exception:
            # rollback; setting None deletes the key
            layer.set(key, oldValue)
            raise

    def validate(self) -> Any:
        """Runs the validator over the effective document and returns its result."""
        merged = self._merged()
        if self._validator is None:
            return merged
        return self._validator(merged)
    
    def snapshot(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "values": self._merged(),
            "layers": [provider.__class__.__name__ for provider in self._providers],
        }
