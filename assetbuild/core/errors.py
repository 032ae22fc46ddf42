# assetbuild/core/errors.py
from __future__ import annotations
from pathlib import Path
from typing import Any

__all__ = [
    "AssetBuildError", "InvariantViolation", "ConfigError", "ManifestError",
    "PackageDiscoveryError", "TransformResolutionError", "AssetGlobError",
    "AssetFileError", "AssetReadError", "AssetTransformError", "AssetWriteError",
    "assertExists",
]



class AssetBuildError(Exception):
    """Base class for everything the asset build raises on purpose."""
    pass



class InvariantViolation(AssetBuildError):
    """Raised when a required argument is missing or a status moves backwards. Programming error."""
    pass



class ConfigError(AssetBuildError):
    pass



class ManifestError(AssetBuildError):
    """Raised when a package manifest can't be read or doesn't validate."""
    def __init__(self, manifestPath: str | Path, reason: str):
        super().__init__(f"Invalid package manifest '{manifestPath}': {reason}")
        self.manifestPath = str(manifestPath)
        self.reason = reason



class PackageDiscoveryError(AssetBuildError):
    """
    The owning package of a module could not be determined.

    Fatal for the whole build: the module's package membership is unknown,
    so the asset stream can never be proven complete.
    """
    def __init__(self, filePath: str | Path, reason: str = "no owning package found"):
        super().__init__(f"Failed to discover package for '{filePath}': {reason}")
        self.filePath = str(filePath)
        self.reason = reason



class TransformResolutionError(AssetBuildError):
    def __init__(self, transformSpec: Any, packagePath: str | Path | None, attempts: list[Any] | None = None):
        super().__init__(f"couldn't resolve transform {transformSpec!r} while processing package {packagePath}")
        self.transformSpec = transformSpec
        self.packagePath = str(packagePath) if packagePath is not None else None
        self.attempts = list(attempts or [])



class AssetGlobError(AssetBuildError):
    def __init__(self, pattern: str, packagePath: str | Path, reason: str):
        super().__init__(f"Failed to expand asset glob '{pattern}' in package {packagePath}: {reason}")
        self.pattern = pattern
        self.packagePath = str(packagePath)



class AssetFileError(AssetBuildError):
    """Base for failures scoped to a single asset file."""
    stage = "process"

    def __init__(self, filePath: str | Path, packagePath: str | Path, reason: str):
        super().__init__(f"Failed to {self.stage} asset '{filePath}' in package {packagePath}: {reason}")
        self.filePath = str(filePath)
        self.packagePath = str(packagePath)



class AssetReadError(AssetFileError):
    stage = "read"



class AssetTransformError(AssetFileError):
    stage = "transform"



class AssetWriteError(AssetFileError):
    stage = "write"



def assertExists(value: Any, name: str) -> None:
    if not value:
        raise InvariantViolation(f"missing {name}")
