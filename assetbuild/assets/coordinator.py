# assetbuild/assets/coordinator.py
from __future__ import annotations
import asyncio
import contextvars
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import Any

from assetbuild.core.errors import assertExists
from assetbuild.core.logging import setLogContext
from assetbuild.packages.cache import PackageCache
from assetbuild.packages.manifest import PackageManifest, ensureRootDir
from .events import BuildEvents
from .pipeline import PackagePipeline, PipelineResult
from .status import BuildState, StatusTable
from .stream import AggregateAssetStream

logger = logging.getLogger(__name__)

__all__ = ["BuildContext", "AssetBuildCoordinator"]



@dataclass(slots=True)
class BuildContext:
    """Everything one build tracks. Nothing here is reused by the next build."""
    buildId: str
    stream: AggregateAssetStream
    discovery: StatusTable = field(default_factory=lambda: StatusTable("discovery"))
    builds: StatusTable = field(default_factory=lambda: StatusTable("packageBuild"))
    mainTraversalComplete: bool = False
    closed: bool = False
    fatalError: BaseException | None = None
    results: dict[str, PipelineResult] = field(default_factory=dict)
    tasks: set[asyncio.Task[Any]] = field(default_factory=set)
    done: asyncio.Event = field(default_factory=asyncio.Event)



class AssetBuildCoordinator:
    """
    Starts each package's asset pipeline once and decides when the build is over.

    Barrier detection is edge-triggered: it runs after every status transition
    and after the main traversal completes, and closes the stream the first time
    main traversal, discovery and package builds are all complete.
    """
    def __init__(
        self,
        context: BuildContext,
        *,
        cache: PackageCache,
        pipeline: PackagePipeline,
        events: BuildEvents | None = None,
    ) -> None:
        assertExists(context, "context")
        assertExists(pipeline, "pipeline")
        self.context = context
        self.cache = cache
        self.pipeline = pipeline
        self.events = events or BuildEvents()
        context.discovery.onTransition(lambda *_args: self.checkBarrier())
        context.builds.onTransition(lambda *_args: self.checkBarrier())

    # ----- Tasks -----

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        """Schedules `coro` with the build id in its log context and keeps it referenced until done."""
        taskContext = contextvars.copy_context()
        taskContext.run(setLogContext, buildId=self.context.buildId)
        task = asyncio.get_running_loop().create_task(coro, name=name, context=taskContext)
        self.context.tasks.add(task)
        task.add_done_callback(self.context.tasks.discard)
        return task

    # ----- Package builds -----

    def buildAssetsForPackage(self, packagePath: str, pkg: PackageManifest | None = None) -> asyncio.Task[Any] | None:
        assertExists(packagePath, "packagePath")
        packagePath = str(packagePath)
        builds = self.context.builds
        if builds.get(packagePath) is not BuildState.PENDING:
            return None

        pkg = pkg or self.cache.get(packagePath)
        assertExists(pkg, "pkg")
        builds.transition(packagePath, BuildState.STARTED)
        ensureRootDir(pkg, packagePath)
        logger.debug("Building assets for package '%s'", packagePath)
        return self.spawn(self._runPackage(packagePath, pkg), name=f"assets:{packagePath}")

    async def _runPackage(self, packagePath: str, pkg: PackageManifest) -> None:
        setLogContext(packagePath=packagePath)
        err: BaseException | None = None
        try:
            result = await self.pipeline.run(pkg, packagePath)
            self.context.results[packagePath] = result
            err = result.error
            if len(result.errors) > 1:
                logger.warning(
                    "Package '%s' had %d asset errors; reporting the first",
                    packagePath, len(result.errors),
                )
        except Exception as unexpected:
            logger.exception("Asset pipeline for '%s' crashed", packagePath)
            err = unexpected
        self.assetComplete(err, packagePath)

    def assetComplete(self, err: BaseException | None, packagePath: str) -> None:
        if err is not None:
            self.context.stream.emitError(err, packagePath)
        self.context.builds.transition(packagePath, BuildState.COMPLETE)

    # ----- Barrier -----

    def markMainTraversalComplete(self) -> None:
        self.context.mainTraversalComplete = True
        self.checkBarrier()

    def isQuiescent(self) -> bool:
        ctx = self.context
        return ctx.mainTraversalComplete and ctx.discovery.allComplete() and ctx.builds.allComplete()

    def checkBarrier(self) -> bool:
        """Closes the stream if the build just became quiescent. True only for the closing call."""
        ctx = self.context
        if ctx.closed or ctx.fatalError is not None or not self.isQuiescent():
            return False
        ctx.closed = True
        ctx.stream.end()
        logger.info(
            "All asset work complete: %d package(s), %d chunk(s), %d error(s)",
            len(ctx.builds), len(ctx.stream.chunks), len(ctx.stream.errors),
        )
        self.events.emit("allBundlesComplete")
        ctx.done.set()
        return True

    # ----- Fatal path -----

    def fail(self, err: BaseException) -> None:
        ctx = self.context
        if ctx.fatalError is not None or ctx.closed:
            return
        ctx.fatalError = err
        logger.error("Asset build %s failed: %s", ctx.buildId, err)
        ctx.stream.abort(err)
        self.events.emit("error", err)
        ctx.done.set()

    async def wait(self) -> None:
        """Returns once the stream has closed; raises the fatal error if the build failed."""
        await self.context.done.wait()
        if self.context.fatalError is not None:
            raise self.context.fatalError
