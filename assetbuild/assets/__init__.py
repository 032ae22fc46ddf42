# assetbuild/assets/__init__.py
from .bundler import AssetBuild, AssetBundler
from .coordinator import AssetBuildCoordinator, BuildContext
from .events import BuildEvents
from .metrics import MetricsEmitter
from .observer import DependencyObserver
from .pipeline import PackagePipeline, PipelineResult
from .status import BuildState, StatusTable
from .stream import AggregateAssetStream
from .transforms import TransformResolver, TransformStrategy

__all__ = [
    "AssetBuild",
    "AssetBundler",
    "AssetBuildCoordinator",
    "BuildContext",
    "BuildEvents",
    "MetricsEmitter",
    "DependencyObserver",
    "PackagePipeline",
    "PipelineResult",
    "BuildState",
    "StatusTable",
    "AggregateAssetStream",
    "TransformResolver",
    "TransformStrategy",
]
