# assetbuild/packages/manifest.py
from __future__ import annotations
from pathlib import Path
from typing import Any

import json5
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from assetbuild.core.errors import InvariantViolation, ManifestError

__all__ = ["PackageManifest", "loadManifest", "ensureRootDir", "rootDirFor"]



class PackageManifest(BaseModel):
    """
    The parts of a package manifest the asset build cares about.

    Other keys are kept (manifests are shared with other tooling) but ignored.
    `style` may be a single glob or a list; `transforms` holds module names,
    paths or callables, applied in order.
    """
    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    name: str | None = None
    version: str | None = None
    style: list[str] = Field(default_factory=list)
    transforms: list[Any] = Field(default_factory=list)

    _rootDir: Path | None = PrivateAttr(default=None)

    @field_validator("style", mode="before")
    @classmethod
    def _normalizeStyle(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("transforms", mode="before")
    @classmethod
    def _normalizeTransforms(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str) or callable(value):
            return [value]
        return value

    @property
    def rootDir(self) -> Path | None:
        return self._rootDir

    def bindRootDir(self, rootDir: str | Path) -> Path:
        """Sets the root directory once; later calls keep the first value."""
        if self._rootDir is None:
            self._rootDir = Path(rootDir)
        return self._rootDir



def rootDirFor(packagePath: str | Path) -> Path:
    """A package path is either its manifest file or its directory."""
    path = Path(packagePath)
    return path if path.is_dir() else path.parent



def ensureRootDir(pkg: PackageManifest, packagePath: str | Path) -> Path | None:
    if pkg is None:
        raise InvariantViolation("missing pkg")
    if pkg.rootDir is None and packagePath:
        pkg.bindRootDir(rootDirFor(packagePath))
    return pkg.rootDir



def loadManifest(manifestPath: str | Path) -> PackageManifest:
    """Reads and validates a JSON/JSON5 manifest. The root dir is bound to the manifest's directory."""
    manifestPath = Path(manifestPath)
    try:
        raw = json5.loads(manifestPath.read_text(encoding="utf-8"))
    except Exception as err:
        raise ManifestError(manifestPath, str(err)) from err
    if not isinstance(raw, dict):
        raise ManifestError(manifestPath, f"expected an object, got '{type(raw).__name__}'")
    try:
        pkg = PackageManifest.model_validate(raw)
    except ValidationError as err:
        raise ManifestError(manifestPath, str(err)) from err
    pkg.bindRootDir(manifestPath.parent)
    return pkg
