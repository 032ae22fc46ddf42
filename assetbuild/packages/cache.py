# assetbuild/packages/cache.py
from __future__ import annotations
from pathlib import Path

from .manifest import PackageManifest

__all__ = ["PackageCache"]



class PackageCache:
    """
    Which package owns which file, and the loaded manifests.

    Outlives single builds so rebuilds don't repeat package lookups. Per-build
    progress is never stored here.
    """
    def __init__(self) -> None:
        self.filesPackagePaths: dict[str, str] = {}
        self.packages: dict[str, PackageManifest] = {}

    def packagePathFor(self, filePath: str | Path) -> str | None:
        return self.filesPackagePaths.get(str(filePath))

    def get(self, packagePath: str | Path) -> PackageManifest | None:
        return self.packages.get(str(packagePath))

    def remember(self, filePath: str | Path, packagePath: str | Path, pkg: PackageManifest | None = None) -> None:
        self.filesPackagePaths[str(filePath)] = str(packagePath)
        if pkg is not None:
            self.packages.setdefault(str(packagePath), pkg)
