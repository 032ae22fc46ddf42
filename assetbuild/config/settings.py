# assetbuild/config/settings.py
from __future__ import annotations
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from assetbuild.core.errors import ConfigError
from .providers import DefaultsProvider, FileProvider, OverrideProvider
from .store import ConfigStore

logger = logging.getLogger(__name__)

__all__ = ["PROJECT_CONFIG_NAME", "DEFAULTS", "AssetSettings", "buildConfigStore", "loadSettings"]



PROJECT_CONFIG_NAME = "assetbuild.json5"

ASSET_KEYS = frozenset({"manifestNames", "dependencyDirName", "encoding", "separator", "maxConcurrency"})
LOGGING_KEYS = frozenset({"level", "json", "file"})

DEFAULTS: dict[str, Any] = {
    "assets": {
        # Checked in order in every directory while walking up from a module
        "manifestNames": ["manifest.json5", "manifest.json", "package.json"],
        # Per-package directory searched for named transforms
        "dependencyDirName": "vendor",
        "encoding": "utf-8",
        "separator": "\n",
        # None = unbounded fan-out
        "maxConcurrency": None,
    },
    "logging": {
        "level": "INFO",
        "json": False,
        "file": None,
    },
}



class AssetSettings(BaseModel):
    """Validated, typed view over the merged configuration document."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    manifestNames: list[str] = Field(default_factory=lambda: list(DEFAULTS["assets"]["manifestNames"]), min_length=1)
    dependencyDirName: str = Field(default="vendor", min_length=1)
    encoding: str = "utf-8"
    separator: str = "\n"
    maxConcurrency: int | None = Field(default=None, ge=1)
    logLevel: str = "INFO"
    logJson: bool = False
    logFile: str | None = None

    @classmethod
    def fromDocument(cls, doc: Mapping[str, Any]) -> "AssetSettings":
        assets = doc.get("assets") or {}
        logs = doc.get("logging") or {}
        if not isinstance(assets, Mapping) or not isinstance(logs, Mapping):
            raise ConfigError("Config sections 'assets' and 'logging' must be objects")
        for section, keys, known in (("assets", assets, ASSET_KEYS), ("logging", logs, LOGGING_KEYS)):
            unknown = set(keys) - known
            if unknown:
                raise ConfigError(f"Unknown {section} config keys: {sorted(unknown)}")
        values = {key: value for key, value in assets.items() if value is not None}
        if logs.get("level") is not None:
            values["logLevel"] = str(logs["level"]).upper()
        if logs.get("json") is not None:
            values["logJson"] = logs["json"]
        if logs.get("file") is not None:
            values["logFile"] = str(logs["file"])
        try:
            return cls.model_validate(values)
        except ValidationError as err:
            raise ConfigError(f"Invalid asset build configuration: {err}") from err



def buildConfigStore(
    projectDir: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ConfigStore:
    """
    Layers, bottom to top:
      1) shipped DEFAULTS
      2) <projectDir>/assetbuild.json5 (when projectDir is given)
      3) dotted-path overrides (CLI --set, tests)
    """
    providers: list[Any] = [DefaultsProvider(data=DEFAULTS)]
    if projectDir is not None:
        providers.append(FileProvider(Path(projectDir) / PROJECT_CONFIG_NAME))
    providers.append(OverrideProvider(overrides))
    return ConfigStore(namespace="config:assetbuild", providers=providers, validator=AssetSettings.fromDocument)



def loadSettings(
    projectDir: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> AssetSettings:
    store = buildConfigStore(projectDir, overrides)
    settings = store.validate()
    logger.debug("Asset settings loaded from layers %s", store.snapshot()["layers"])
    return settings
