# assetbuild/assets/bundler.py
from __future__ import annotations
import logging
import uuid
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable
from typing import Any, TypeVar

from assetbuild.config.settings import AssetSettings
from assetbuild.core.errors import InvariantViolation
from assetbuild.packages.cache import PackageCache
from assetbuild.packages.finder import ManifestFinder, PackageFinder
from .coordinator import AssetBuildCoordinator, BuildContext
from .events import BuildEvents
from .metrics import MetricsEmitter
from .observer import DependencyObserver
from .pipeline import PackagePipeline
from .stream import AggregateAssetStream
from .transforms import TransformResolver

logger = logging.getLogger(__name__)

__all__ = ["AssetBuild", "AssetBundler"]

T = TypeVar("T")



async def _iterate(source: Iterable[T] | AsyncIterable[T] | None) -> AsyncIterator[T]:
    if source is None:
        return
    if hasattr(source, "__aiter__"):
        async for item in source:  # type: ignore[union-attr]
            yield item
    else:
        for item in source:  # type: ignore[union-attr]
            yield item



class AssetBuild:
    """
    One build's asset side. Hooks map onto the bundler's stages:
      - recordComplete(): input recording finished, metrics clock starts
      - observe(dep): one dependency descriptor from the dependency stage
      - writeOutput(chunk) / outputComplete(): the final output stage
    """
    def __init__(self, bundler: "AssetBundler") -> None:
        settings = bundler.settings
        self.id = uuid.uuid4().hex[:12]
        self.stream = AggregateAssetStream("style")
        self.context = BuildContext(buildId=self.id, stream=self.stream)
        self.pipeline = PackagePipeline(
            self.stream,
            bundler.resolver,
            encoding=settings.encoding,
            separator=settings.separator,
            maxConcurrency=settings.maxConcurrency,
        )
        self.coordinator = AssetBuildCoordinator(
            self.context,
            cache=bundler.cache,
            pipeline=self.pipeline,
            events=bundler.events,
        )
        self.observer = DependencyObserver(self.coordinator, cache=bundler.cache, finder=bundler.finder)
        self.metrics = MetricsEmitter(bundler.events)

    def recordComplete(self) -> None:
        self.metrics.markRecordComplete()

    def observe(self, dep: Any) -> None:
        self.observer.observe(dep)

    def writeOutput(self, chunk: bytes | str) -> None:
        self.metrics.count(chunk)

    def outputComplete(self) -> None:
        # No more modules can be discovered after the output stage ends
        self.metrics.finish()
        self.coordinator.markMainTraversalComplete()

    async def wait(self) -> None:
        await self.coordinator.wait()

    @property
    def errors(self) -> list[tuple[BaseException, str]]:
        return list(self.stream.errors)



class AssetBundler:
    """
    Attaches asset aggregation to a module bundling run.

    Emits (see BuildEvents): assetStream, time, bytes, log, allBundlesComplete, error.
    The package cache is shared by every build of this bundler; build progress is not.
    """
    def __init__(
        self,
        *,
        settings: AssetSettings | None = None,
        finder: PackageFinder | None = None,
        cache: PackageCache | None = None,
        resolver: TransformResolver | None = None,
    ) -> None:
        self.settings = settings or AssetSettings()
        self.finder = finder or ManifestFinder(self.settings.manifestNames)
        self.cache = cache or PackageCache()
        self.resolver = resolver or TransformResolver(dependencyDirName=self.settings.dependencyDirName)
        self.events = BuildEvents()
        self._pending: AssetBuild | None = None

    def on(self, event: str, handler: Callable[..., Any]) -> Callable[[], None]:
        return self.events.on(event, handler)

    def startBuild(self) -> AssetBuild:
        build = AssetBuild(self)
        logger.debug("Asset build %s started", build.id)
        self.events.emit("assetStream", build.stream, build.stream.kind)
        return build

    async def bundle(
        self,
        dependencies: Iterable[Any] | AsyncIterable[Any],
        output: Iterable[bytes] | AsyncIterable[bytes] | None = None,
    ) -> bytes:
        """
        Runs one build: every dependency is observed, every output chunk is measured
        and passed through. Returns the bundled output once the asset stream closed.
        """
        if self._pending is not None:
            raise InvariantViolation(f"bundle already in progress (build {self._pending.id})")
        build = self.startBuild()
        self._pending = build
        chunks: list[bytes] = []
        try:
            build.recordComplete()
            async for dep in _iterate(dependencies):
                build.observe(dep)
            async for chunk in _iterate(output):
                data = chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
                build.writeOutput(data)
                chunks.append(data)
            build.outputComplete()
            await build.wait()
        finally:
            self._pending = None
        return b"".join(chunks)
