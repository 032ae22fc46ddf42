# tests/assetbuild/packages/test_manifest_finder.py
from __future__ import annotations

import pytest

from assetbuild.core.errors import ManifestError, PackageDiscoveryError
from assetbuild.packages.cache import PackageCache
from assetbuild.packages.finder import ManifestFinder
from assetbuild.packages.manifest import PackageManifest, ensureRootDir, loadManifest


def test_style_accepts_single_glob_or_list():
    assert PackageManifest(style="*.css").style == ["*.css"]
    assert PackageManifest(style=["a/*.css", "b/*.css"]).style == ["a/*.css", "b/*.css"]
    assert PackageManifest().style == []
    assert PackageManifest(transforms=None).transforms == []


def test_extra_manifest_keys_are_kept():
    pkg = PackageManifest.model_validate({"name": "a", "main": "index.js", "style": "x.css"})
    assert pkg.name == "a"
    assert pkg.model_extra == {"main": "index.js"}


def test_root_dir_is_bound_once(tmp_path):
    pkg = PackageManifest()
    assert pkg.rootDir is None
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    assert ensureRootDir(pkg, tmp_path / "a" / "manifest.json5") == tmp_path / "a"
    assert ensureRootDir(pkg, tmp_path / "b") == tmp_path / "a"


def test_load_manifest_binds_manifest_dir(tmp_path, make_package):
    manifest_path = make_package(tmp_path / "pkg", {"style": ["*.css"], "transforms": ["./t.py"]})
    pkg = loadManifest(manifest_path)
    assert pkg.rootDir == tmp_path / "pkg"
    assert pkg.transforms == ["./t.py"]


def test_load_manifest_rejects_garbage(tmp_path):
    bad = tmp_path / "manifest.json5"
    bad.write_text("{ style: ", encoding="utf-8")
    with pytest.raises(ManifestError):
        loadManifest(bad)
    bad.write_text('{"style": 5}', encoding="utf-8")
    with pytest.raises(ManifestError):
        loadManifest(bad)


@pytest.mark.asyncio
async def test_finder_returns_nearest_owning_package(tmp_path, make_package):
    outer = make_package(tmp_path / "app", {"name": "app"})
    inner = make_package(tmp_path / "app" / "lib" / "widget", {"name": "widget", "style": "*.css"})
    module = tmp_path / "app" / "lib" / "widget" / "src" / "index.js"
    module.parent.mkdir(parents=True)
    module.write_text("", encoding="utf-8")

    finder = ManifestFinder()
    found = await finder.find(module)
    assert found.path == inner.resolve()
    assert found.pack.name == "widget"
    assert found.pack.rootDir == inner.parent.resolve()

    other = tmp_path / "app" / "main.js"
    other.write_text("", encoding="utf-8")
    assert (await finder.find(other)).path == outer.resolve()


@pytest.mark.asyncio
async def test_finder_respects_manifest_name_order_and_accept(tmp_path, make_package):
    pkg_dir = tmp_path / "pkg"
    make_package(pkg_dir, {"name": "from-package-json"}, {"index.js": ""})
    (pkg_dir / "package.json").write_text('{"name": "npm"}', encoding="utf-8")

    finder = ManifestFinder(["package.json", "manifest.json5"])
    assert (await finder.find(pkg_dir / "index.js")).pack.name == "npm"

    picky = ManifestFinder(["package.json", "manifest.json5"], accept=lambda pkg: pkg.name != "npm")
    assert (await picky.find(pkg_dir / "index.js")).pack.name == "from-package-json"


@pytest.mark.asyncio
async def test_finder_without_manifest_is_discovery_error(tmp_path):
    module = tmp_path / "orphan.js"
    module.write_text("", encoding="utf-8")
    finder = ManifestFinder(["no-such-manifest-name.json5"])
    with pytest.raises(PackageDiscoveryError) as info:
        await finder.find(module)
    assert info.value.filePath == str(module)


@pytest.mark.asyncio
async def test_finder_wraps_broken_manifest(tmp_path):
    (tmp_path / "manifest.json5").write_text("nope{", encoding="utf-8")
    with pytest.raises(PackageDiscoveryError):
        await ManifestFinder().find(tmp_path / "x.js")


def test_package_cache_remembers_first_manifest():
    cache = PackageCache()
    first = PackageManifest(name="first")
    cache.remember("/a/x.js", "/a/manifest.json5", first)
    cache.remember("/a/y.js", "/a/manifest.json5", PackageManifest(name="second"))
    assert cache.packagePathFor("/a/y.js") == "/a/manifest.json5"
    assert cache.get("/a/manifest.json5") is first
    assert cache.packagePathFor("/b/z.js") is None
