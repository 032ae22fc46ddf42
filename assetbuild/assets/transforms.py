# assetbuild/assets/transforms.py
from __future__ import annotations
import hashlib
import importlib.util
import inspect
import logging
import os
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from importlib import import_module
from pathlib import Path
from types import ModuleType
from typing import Any, TypeAlias

from assetbuild.core.errors import TransformResolutionError, assertExists
from assetbuild.packages.manifest import PackageManifest

logger = logging.getLogger(__name__)

__all__ = [
    "TransformStrategy", "ResolveContext", "ResolutionMiss", "TransformChain",
    "TransformResolver", "isLocalPath", "STRATEGY_ORDER",
]

# factory(filePath) -> step; step(text) -> str | Awaitable[str], or an object with .transform(text)
TransformFactory: TypeAlias = Callable[[str], Any]

# Attribute looked up on a resolved module when the entry doesn't name one
FACTORY_ATTR = "makeTransform"



class TransformStrategy(Enum):
    CALLABLE = "callable"
    IMPORTABLE = "importable"
    LOCAL_PATH = "localPath"
    DEPENDENCY_DIR = "dependencyDir"



@dataclass(frozen=True, slots=True)
class ResolveContext:
    packagePath: str | None
    rootDir: Path | None
    dependencyDirName: str



@dataclass(frozen=True, slots=True)
class ResolutionMiss:
    strategy: TransformStrategy
    reason: str



def isLocalPath(entry: str) -> bool:
    return entry.startswith(".") or entry.startswith("/") or entry.startswith(os.sep)



# ----------------------------------------------
#            Module / factory helpers
# ----------------------------------------------

def _factoryFromModule(module: ModuleType, attrName: str | None) -> TransformFactory | None:
    if attrName:
        candidate = getattr(module, attrName, None)
    else:
        candidate = getattr(module, FACTORY_ATTR, None)
        if candidate is None and callable(module):
            candidate = module
    return candidate if callable(candidate) else None



def _splitAttr(entry: str) -> tuple[str, str | None]:
    """'pkg.mod:attr' → ('pkg.mod', 'attr'). Windows drive letters are left alone."""
    head, sep, tail = entry.rpartition(":")
    if sep and head and tail.isidentifier() and not (len(head) == 1 and head.isalpha()):
        return head, tail
    return entry, None



def _moduleFileFor(target: Path) -> Path | None:
    if target.is_dir():
        init = target / "__init__.py"
        return init if init.is_file() else None
    if target.is_file():
        return target
    withSuffix = target.with_name(target.name + ".py")
    if withSuffix.is_file():
        return withSuffix
    return None



_PATH_MODULES: dict[Path, ModuleType] = {}

def _loadModuleFromPath(target: Path) -> ModuleType | None:
    moduleFile = _moduleFileFor(target)
    if moduleFile is None:
        return None
    moduleFile = moduleFile.resolve()
    if moduleFile in _PATH_MODULES:
        return _PATH_MODULES[moduleFile]

    digest = hashlib.sha1(str(moduleFile).encode("utf-8")).hexdigest()[:12]
    name = f"assetbuild_transform_{moduleFile.stem}_{digest}"
    searchLocations = [str(moduleFile.parent)] if moduleFile.name == "__init__.py" else None
    spec = importlib.util.spec_from_file_location(name, moduleFile, submodule_search_locations=searchLocations)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load module from {moduleFile}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    _PATH_MODULES[moduleFile] = module
    return module



def _fromFile(strategy: TransformStrategy, target: Path, attrName: str | None) -> TransformFactory | ResolutionMiss:
    try:
        module = _loadModuleFromPath(target)
    except Exception as err:
        return ResolutionMiss(strategy, f"failed to load '{target}': {type(err).__name__}: {err}")
    if module is None:
        return ResolutionMiss(strategy, f"no module at '{target}'")
    factory = _factoryFromModule(module, attrName)
    if factory is None:
        return ResolutionMiss(strategy, f"'{target}' has no callable {attrName or FACTORY_ATTR}")
    return factory



# ----------------------------------------------
#                  Strategies
# ----------------------------------------------

def _resolveCallable(entry: Any, ctx: ResolveContext) -> TransformFactory | ResolutionMiss:
    if callable(entry):
        return entry
    return ResolutionMiss(TransformStrategy.CALLABLE, "not callable")



def _resolveImportable(entry: Any, ctx: ResolveContext) -> TransformFactory | ResolutionMiss:
    strategy = TransformStrategy.IMPORTABLE
    if not isinstance(entry, str) or not entry:
        return ResolutionMiss(strategy, "not a module name")
    moduleName, attrName = _splitAttr(entry)
    try:
        module = import_module(moduleName)
    except Exception as err:
        return ResolutionMiss(strategy, f"{type(err).__name__}: {err}")
    factory = _factoryFromModule(module, attrName)
    if factory is None:
        return ResolutionMiss(strategy, f"module '{moduleName}' has no callable {attrName or FACTORY_ATTR}")
    return factory



def _resolveLocalPath(entry: Any, ctx: ResolveContext) -> TransformFactory | ResolutionMiss:
    strategy = TransformStrategy.LOCAL_PATH
    if not isinstance(entry, str) or not isLocalPath(entry):
        return ResolutionMiss(strategy, "not a local path")
    if ctx.rootDir is None:
        return ResolutionMiss(strategy, "package has no root directory")
    pathPart, attrName = _splitAttr(entry)
    return _fromFile(strategy, (ctx.rootDir / pathPart).resolve(strict=False), attrName)



def _resolveDependencyDir(entry: Any, ctx: ResolveContext) -> TransformFactory | ResolutionMiss:
    strategy = TransformStrategy.DEPENDENCY_DIR
    if not isinstance(entry, str) or not entry or isLocalPath(entry):
        return ResolutionMiss(strategy, "not a dependency name")
    if ctx.rootDir is None:
        return ResolutionMiss(strategy, "package has no root directory")
    namePart, attrName = _splitAttr(entry)
    target = ctx.rootDir / ctx.dependencyDirName / Path(*namePart.split("."))
    return _fromFile(strategy, target, attrName)



STRATEGY_ORDER: tuple[tuple[TransformStrategy, Callable[[Any, ResolveContext], TransformFactory | ResolutionMiss]], ...] = (
    (TransformStrategy.CALLABLE, _resolveCallable),
    (TransformStrategy.IMPORTABLE, _resolveImportable),
    (TransformStrategy.LOCAL_PATH, _resolveLocalPath),
    (TransformStrategy.DEPENDENCY_DIR, _resolveDependencyDir),
)



# ----------------------------------------------
#                 Per-file chain
# ----------------------------------------------

class TransformChain:
    """Fresh steps for one asset file, applied strictly in declared order."""
    def __init__(self, filePath: str, steps: Sequence[Any]) -> None:
        self.filePath = filePath
        self.steps = list(steps)

    async def run(self, text: str) -> str:
        for step in self.steps:
            fn = getattr(step, "transform", None)
            if not callable(fn):
                fn = step
            if not callable(fn):
                raise TypeError(f"Transform step {step!r} for '{self.filePath}' is not callable")
            result = fn(text)
            if inspect.isawaitable(result):
                result = await result
            if isinstance(result, bytes):
                result = result.decode("utf-8")
            if not isinstance(result, str):
                raise TypeError(
                    f"Transform step {step!r} for '{self.filePath}' returned {type(result).__name__}, expected str"
                )
            text = result
        return text



# ----------------------------------------------
#                   Resolver
# ----------------------------------------------

class TransformResolver:
    """
    Resolves a package's transform entries to factories.

    Strategies are tried in STRATEGY_ORDER; the first that yields a factory
    wins. When all miss, TransformResolutionError names the entry and package.
    """
    def __init__(self, *, dependencyDirName: str = "vendor") -> None:
        self.dependencyDirName = dependencyDirName

    def contextFor(self, pkg: PackageManifest, packagePath: str | None = None) -> ResolveContext:
        return ResolveContext(
            packagePath=packagePath or (str(pkg.rootDir) if pkg.rootDir else None),
            rootDir=pkg.rootDir,
            dependencyDirName=self.dependencyDirName,
        )

    def resolveOne(self, entry: Any, ctx: ResolveContext) -> TransformFactory:
        misses: list[ResolutionMiss] = []
        for strategy, fn in STRATEGY_ORDER:
            result = fn(entry, ctx)
            if isinstance(result, ResolutionMiss):
                misses.append(result)
                continue
            logger.debug("Transform %r resolved via %s", entry, strategy.value)
            return result
        raise TransformResolutionError(entry, ctx.rootDir if ctx.rootDir is not None else ctx.packagePath, misses)

    def resolve(self, entries: Sequence[Any], pkg: PackageManifest, packagePath: str | None = None) -> list[TransformFactory]:
        assertExists(pkg, "pkg")
        ctx = self.contextFor(pkg, packagePath)
        return [self.resolveOne(entry, ctx) for entry in entries]

    def chainFactoryFor(self, pkg: PackageManifest, packagePath: str | None = None) -> Callable[[str], TransformChain]:
        """Resolves every transform up front; the returned function builds a fresh chain per file."""
        factories = self.resolve(pkg.transforms, pkg, packagePath)

        def chainForFile(filePath: str) -> TransformChain:
            assertExists(filePath, "filePath")
            return TransformChain(filePath, [factory(filePath) for factory in factories])

        return chainForFile
