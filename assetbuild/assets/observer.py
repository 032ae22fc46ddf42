# assetbuild/assets/observer.py
from __future__ import annotations
import asyncio
import logging
import os
from collections.abc import Mapping
from typing import Any

from assetbuild.core.errors import PackageDiscoveryError, assertExists
from assetbuild.packages.cache import PackageCache
from assetbuild.packages.finder import FoundPackage, PackageFinder
from .coordinator import AssetBuildCoordinator
from .status import BuildState

logger = logging.getLogger(__name__)

__all__ = ["DependencyObserver", "dependencyFile"]



def dependencyFile(dep: Any) -> str | None:
    """Module id of a dependency descriptor: a path, or a mapping/object with `file` (preferred) or `id`."""
    if dep is None:
        return None
    if isinstance(dep, (str, os.PathLike)):
        return os.fspath(dep) or None
    if isinstance(dep, Mapping):
        value = dep.get("file") or dep.get("id")
    else:
        value = getattr(dep, "file", None) or getattr(dep, "id", None)
    return os.fspath(value) if value else None



class DependencyObserver:
    """Feeds modules seen by the bundler into the coordinator, looking up unknown packages."""
    def __init__(self, coordinator: AssetBuildCoordinator, *, cache: PackageCache, finder: PackageFinder) -> None:
        assertExists(coordinator, "coordinator")
        assertExists(finder, "finder")
        self.coordinator = coordinator
        self.cache = cache
        self.finder = finder

    def observe(self, dep: Any) -> asyncio.Task[Any] | None:
        filePath = dependencyFile(dep)
        if filePath is None:
            return None

        packagePath = self.cache.packagePathFor(filePath)
        if packagePath:
            self.coordinator.buildAssetsForPackage(packagePath)
            return None

        discovery = self.coordinator.context.discovery
        if filePath in discovery:
            # Lookup already running or done for this module
            return None
        discovery.transition(filePath, BuildState.STARTED)
        return self.coordinator.spawn(self._discover(filePath), name=f"discover:{filePath}")

    async def _lookup(self, filePath: str) -> FoundPackage:
        try:
            return await self.finder.find(filePath)
        except PackageDiscoveryError:
            raise
        except Exception as err:
            raise PackageDiscoveryError(filePath, f"{type(err).__name__}: {err}") from err

    async def _discover(self, filePath: str) -> None:
        try:
            found = await self._lookup(filePath)
        except PackageDiscoveryError as err:
            self.coordinator.fail(err)
            return

        packagePath = str(found.path)
        self.cache.remember(filePath, packagePath, found.pack)
        # Package goes STARTED before discovery goes COMPLETE so the barrier can't see a gap
        self.coordinator.buildAssetsForPackage(packagePath, found.pack)
        self.coordinator.context.discovery.transition(filePath, BuildState.COMPLETE)
