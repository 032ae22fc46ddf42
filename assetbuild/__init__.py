# assetbuild/__init__.py
from .assets import AggregateAssetStream, AssetBuild, AssetBundler, BuildState, TransformResolver
from .config.settings import AssetSettings, loadSettings
from .core.errors import (
    AssetBuildError,
    PackageDiscoveryError,
    TransformResolutionError,
)
from .packages.cache import PackageCache
from .packages.finder import FoundPackage, ManifestFinder
from .packages.manifest import PackageManifest

__all__ = [
    "AggregateAssetStream",
    "AssetBuild",
    "AssetBundler",
    "AssetSettings",
    "BuildState",
    "TransformResolver",
    "loadSettings",
    "AssetBuildError",
    "PackageDiscoveryError",
    "TransformResolutionError",
    "PackageCache",
    "FoundPackage",
    "ManifestFinder",
    "PackageManifest",
]

__version__ = "0.1.0"
