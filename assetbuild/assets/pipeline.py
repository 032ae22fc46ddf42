# assetbuild/assets/pipeline.py
from __future__ import annotations
import asyncio
import contextlib
import glob
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from assetbuild.core.errors import (
    AssetGlobError,
    AssetReadError,
    AssetTransformError,
    AssetWriteError,
    TransformResolutionError,
    assertExists,
)
from assetbuild.core.logging import setLogContext
from assetbuild.packages.manifest import PackageManifest
from .stream import AggregateAssetStream
from .transforms import TransformChain, TransformResolver

logger = logging.getLogger(__name__)

__all__ = ["PipelineResult", "PackagePipeline", "expandGlob"]



@dataclass(slots=True)
class PipelineResult:
    packagePath: str
    written: list[str] = field(default_factory=list)
    errors: list[BaseException] = field(default_factory=list)

    @property
    def error(self) -> BaseException | None:
        """First failure to happen, or None."""
        return self.errors[0] if self.errors else None



def expandGlob(pattern: str, rootDir: Path) -> list[str]:
    """Files (not directories) matching `pattern` under `rootDir`, as absolute paths."""
    matches = glob.glob(pattern, root_dir=str(rootDir), recursive=True)
    out: list[str] = []
    for match in sorted(matches):
        fullPath = os.path.join(str(rootDir), match)
        if os.path.isfile(fullPath):
            out.append(fullPath)
    return out



class PackagePipeline:
    """
    Builds one package's assets into the aggregate stream.

    Every glob pattern and every matched file is its own task. A failure only
    drops its own contribution; the run still settles once every task has.
    """
    def __init__(
        self,
        stream: AggregateAssetStream,
        resolver: TransformResolver,
        *,
        encoding: str = "utf-8",
        separator: str = "\n",
        maxConcurrency: int | None = None,
    ) -> None:
        assertExists(stream, "stream")
        assertExists(resolver, "resolver")
        self.stream = stream
        self.resolver = resolver
        self.encoding = encoding
        self.separator = separator
        self._limit = asyncio.Semaphore(maxConcurrency) if maxConcurrency else None

    async def run(self, pkg: PackageManifest, packagePath: str | None = None) -> PipelineResult:
        assertExists(pkg, "pkg")
        rootDir = pkg.rootDir
        result = PipelineResult(packagePath=str(packagePath or rootDir or ""))
        if rootDir is None:
            logger.debug("Package '%s' has no root directory; nothing to build", result.packagePath)
            return result

        setLogContext(packagePath=result.packagePath)
        try:
            chainForFile = self.resolver.chainFactoryFor(pkg, packagePath)
        except TransformResolutionError as err:
            result.errors.append(err)
            return result

        await asyncio.gather(
            *(self._runGlob(pattern, rootDir, chainForFile, result) for pattern in pkg.style),
            return_exceptions=True,
        )
        logger.debug(
            "Package '%s': %d asset(s) written, %d error(s)",
            result.packagePath, len(result.written), len(result.errors),
        )
        return result

    async def _runGlob(
        self,
        pattern: str,
        rootDir: Path,
        chainForFile: Callable[[str], TransformChain],
        result: PipelineResult,
    ) -> None:
        try:
            filePaths = await self._expand(pattern, rootDir, result.packagePath)
        except AssetGlobError as err:
            self._record(result, err)
            return

        await asyncio.gather(
            *(self._runFile(filePath, chainForFile, result) for filePath in filePaths),
            return_exceptions=True,
        )

    async def _expand(self, pattern: str, rootDir: Path, packagePath: str) -> list[str]:
        try:
            return await asyncio.to_thread(expandGlob, pattern, rootDir)
        except Exception as err:
            raise AssetGlobError(pattern, packagePath, str(err)) from err

    async def _runFile(
        self,
        filePath: str,
        chainForFile: Callable[[str], TransformChain],
        result: PipelineResult,
    ) -> None:
        limit = self._limit if self._limit is not None else contextlib.nullcontext()
        async with limit:
            try:
                await self._processFile(filePath, chainForFile, result.packagePath)
            except (AssetReadError, AssetTransformError, AssetWriteError) as err:
                self._record(result, err)
                return
        result.written.append(filePath)

    async def _processFile(self, filePath: str, chainForFile: Callable[[str], TransformChain], packagePath: str) -> None:
        try:
            text = await asyncio.to_thread(Path(filePath).read_text, encoding=self.encoding)
        except Exception as err:
            raise AssetReadError(filePath, packagePath, str(err)) from err

        try:
            chain = chainForFile(filePath)
            transformed = await chain.run(text)
        except Exception as err:
            raise AssetTransformError(filePath, packagePath, f"{type(err).__name__}: {err}") from err

        # Whole file in one chunk; nothing is written for a file that failed earlier
        try:
            self.stream.write(transformed + self.separator)
        except Exception as err:
            raise AssetWriteError(filePath, packagePath, str(err)) from err

    def _record(self, result: PipelineResult, err: BaseException) -> None:
        result.errors.append(err)
        logger.debug("Asset failure in '%s': %s", result.packagePath, err)
