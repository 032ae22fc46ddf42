# tests/assetbuild/assets/test_package_pipeline.py
from __future__ import annotations

import pytest

import assetbuild.assets.pipeline as pipeline_module
from assetbuild.assets.pipeline import PackagePipeline, expandGlob
from assetbuild.assets.stream import AggregateAssetStream
from assetbuild.assets.transforms import TransformResolver
from assetbuild.core.errors import AssetGlobError, AssetReadError, AssetTransformError, TransformResolutionError
from assetbuild.packages.manifest import PackageManifest, loadManifest


def wrap_comment(file_path):
    return lambda text: "/*" + text + "*/"


def _pipeline(stream=None, **kwargs):
    return PackagePipeline(stream or AggregateAssetStream(), TransformResolver(), **kwargs)


def test_expand_glob_returns_sorted_files_only(tmp_path):
    (tmp_path / "styles" / "nested.css").mkdir(parents=True)
    (tmp_path / "styles" / "b.css").write_text("b", encoding="utf-8")
    (tmp_path / "styles" / "a.css").write_text("a", encoding="utf-8")
    assert expandGlob("styles/*.css", tmp_path) == [
        str(tmp_path / "styles" / "a.css"),
        str(tmp_path / "styles" / "b.css"),
    ]
    assert expandGlob("missing/*.css", tmp_path) == []


@pytest.mark.asyncio
async def test_each_file_is_transformed_into_one_chunk(tmp_path, make_package):
    manifest_path = make_package(tmp_path / "pkg", {"style": ["*.css"]}, {
        "a.css": "body{color:red}",
        "b.css": "div{color:blue}",
        "index.js": "module.exports = 1",
    })
    pkg = loadManifest(manifest_path)
    pkg.transforms = [wrap_comment]
    stream = AggregateAssetStream()

    result = await _pipeline(stream).run(pkg, str(manifest_path))

    assert result.error is None
    assert sorted(stream.chunks) == ["/*body{color:red}*/\n", "/*div{color:blue}*/\n"]
    assert sorted(result.written) == [str(tmp_path / "pkg" / "a.css"), str(tmp_path / "pkg" / "b.css")]


@pytest.mark.asyncio
async def test_custom_separator_and_no_transforms(tmp_path, make_package):
    manifest_path = make_package(tmp_path / "pkg", {"style": "*.css"}, {"a.css": "x"})
    stream = AggregateAssetStream()
    await _pipeline(stream, separator="").run(loadManifest(manifest_path), str(manifest_path))
    assert stream.chunks == ["x"]


@pytest.mark.asyncio
async def test_package_without_root_dir_writes_nothing():
    stream = AggregateAssetStream()
    result = await _pipeline(stream).run(PackageManifest(style=["*.css"]))
    assert result.errors == []
    assert stream.chunks == []


@pytest.mark.asyncio
async def test_unresolvable_transform_stops_the_package(tmp_path, make_package):
    manifest_path = make_package(tmp_path / "pkg", {
        "style": ["*.css"],
        "transforms": ["assetbuild_no_such_transform"],
    }, {"a.css": "x"})
    stream = AggregateAssetStream()
    result = await _pipeline(stream).run(loadManifest(manifest_path), str(manifest_path))
    assert isinstance(result.error, TransformResolutionError)
    assert len(result.errors) == 1
    assert stream.chunks == []


@pytest.mark.asyncio
async def test_failing_file_does_not_drop_its_siblings(tmp_path, make_package):
    manifest_path = make_package(tmp_path / "pkg", {"style": ["*.css"]}, {
        "bad.css": "BAD",
        "good.css": "good",
    })
    pkg = loadManifest(manifest_path)

    def picky(file_path):
        def _step(text):
            if text == "BAD":
                raise ValueError("cannot parse")
            return text
        return _step

    pkg.transforms = [picky]
    stream = AggregateAssetStream()
    result = await _pipeline(stream, maxConcurrency=1).run(pkg, str(manifest_path))

    assert stream.chunks == ["good\n"]
    assert isinstance(result.error, AssetTransformError)
    assert result.error.filePath == str(tmp_path / "pkg" / "bad.css")
    assert "cannot parse" in str(result.error)


@pytest.mark.asyncio
async def test_unreadable_file_does_not_drop_its_siblings(tmp_path, make_package):
    manifest_path = make_package(tmp_path / "pkg", {"style": ["*.css"]}, {"good.css": "g"})
    (tmp_path / "pkg" / "bad.css").write_bytes(b"\xff\xfe")
    stream = AggregateAssetStream()

    result = await _pipeline(stream).run(loadManifest(manifest_path), str(manifest_path))

    assert stream.chunks == ["g\n"]
    assert [type(err) for err in result.errors] == [AssetReadError]
    assert result.error.filePath == str(tmp_path / "pkg" / "bad.css")
    assert isinstance(result.error.__cause__, UnicodeDecodeError)


@pytest.mark.asyncio
async def test_failing_glob_does_not_drop_other_patterns(tmp_path, make_package, monkeypatch):
    manifest_path = make_package(tmp_path / "pkg", {"style": ["broken/*.css", "*.css"]}, {"good.css": "g"})
    real_expand = pipeline_module.expandGlob

    def flaky_expand(pattern, root_dir):
        if pattern.startswith("broken/"):
            raise OSError("permission denied")
        return real_expand(pattern, root_dir)

    monkeypatch.setattr(pipeline_module, "expandGlob", flaky_expand)
    stream = AggregateAssetStream()

    result = await _pipeline(stream).run(loadManifest(manifest_path), str(manifest_path))

    assert stream.chunks == ["g\n"]
    assert [type(err) for err in result.errors] == [AssetGlobError]
    assert result.error.pattern == "broken/*.css"
    assert isinstance(result.error.__cause__, OSError)
