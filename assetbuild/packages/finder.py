# assetbuild/packages/finder.py
from __future__ import annotations
import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from assetbuild.core.errors import ManifestError, PackageDiscoveryError
from .manifest import PackageManifest, loadManifest

logger = logging.getLogger(__name__)

__all__ = ["FoundPackage", "PackageFinder", "ManifestFinder"]



@dataclass(frozen=True, slots=True)
class FoundPackage:
    path: Path                  # manifest file of the nearest owning package
    pack: PackageManifest       # loaded manifest, root dir already bound



class PackageFinder(Protocol):
    async def find(self, filePath: str | Path) -> FoundPackage:
        ...



class ManifestFinder:
    """
    Locates the nearest package that owns a file by walking up the directory tree.

    In each directory the manifest names are tried in order; the first manifest
    accepted by `accept` wins. Directory results are memoised for the finder's lifetime.
    """
    def __init__(
        self,
        manifestNames: Iterable[str] = ("manifest.json5", "manifest.json", "package.json"),
        *,
        accept: Callable[[PackageManifest], bool] | None = None,
    ) -> None:
        self.manifestNames = tuple(manifestNames)
        self.accept = accept or (lambda pkg: True)
        self._byDir: dict[Path, FoundPackage | None] = {}

    async def find(self, filePath: str | Path) -> FoundPackage:
        found = await asyncio.to_thread(self._walk, Path(filePath))
        if found is None:
            raise PackageDiscoveryError(filePath)
        return found

    def _walk(self, filePath: Path) -> FoundPackage | None:
        start = filePath if filePath.is_dir() else filePath.parent
        start = start.resolve(strict=False)
        visited: list[Path] = []
        found: FoundPackage | None = None
        for directory in (start, *start.parents):
            if directory in self._byDir:
                found = self._byDir[directory]
                break
            visited.append(directory)
            found = self._checkDir(directory, filePath)
            if found is not None:
                break
        for directory in visited:
            self._byDir[directory] = found
        return found

    def _checkDir(self, directory: Path, filePath: Path) -> FoundPackage | None:
        for name in self.manifestNames:
            candidate = directory / name
            if not candidate.is_file():
                continue
            try:
                pkg = loadManifest(candidate)
            except ManifestError as err:
                raise PackageDiscoveryError(filePath, str(err)) from err
            if self.accept(pkg):
                logger.debug("Package for '%s' is '%s'", filePath, candidate)
                return FoundPackage(path=candidate, pack=pkg)
        return None
