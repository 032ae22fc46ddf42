# tests/assetbuild/assets/test_asset_stream.py
from __future__ import annotations
import asyncio

import pytest

from assetbuild.assets.stream import AggregateAssetStream
from assetbuild.core.errors import InvariantViolation, PackageDiscoveryError


def test_end_happens_once():
    stream = AggregateAssetStream()
    ends = []
    stream.onEnd(lambda: ends.append(1))
    stream.write("a\n")
    assert stream.end() is True
    assert stream.end() is False
    assert stream.ended is True
    assert ends == [1]
    with pytest.raises(InvariantViolation):
        stream.write("late\n")


def test_errors_are_kept_and_broadcast_without_closing():
    stream = AggregateAssetStream()
    seen = []
    stream.onError(lambda err, path: seen.append((str(err), path)))
    failure = RuntimeError("boom")
    stream.emitError(failure, "/pkg/a")
    assert seen == [("boom", "/pkg/a")]
    assert stream.errors == [(failure, "/pkg/a")]
    assert stream.ended is False


def test_broken_error_listener_does_not_stop_others():
    stream = AggregateAssetStream()
    seen = []
    def _broken(err, path):
        raise ValueError("listener bug")
    stream.onError(_broken)
    stream.onError(lambda err, path: seen.append(path))
    stream.emitError(RuntimeError("x"), "/pkg/b")
    assert seen == ["/pkg/b"]


@pytest.mark.asyncio
async def test_reader_sees_early_and_late_chunks():
    stream = AggregateAssetStream()
    stream.write("early\n")
    reader = asyncio.create_task(stream.collect())
    await asyncio.sleep(0)
    stream.write("late\n")
    await asyncio.sleep(0)
    assert not reader.done()
    stream.end()
    assert await asyncio.wait_for(reader, 1) == ["early\n", "late\n"]
    assert await stream.read() == "early\nlate\n"


@pytest.mark.asyncio
async def test_abort_raises_in_readers():
    stream = AggregateAssetStream()
    reader = asyncio.create_task(stream.collect())
    await asyncio.sleep(0)
    fatal = PackageDiscoveryError("/x.js")
    stream.abort(fatal)
    with pytest.raises(PackageDiscoveryError):
        await asyncio.wait_for(reader, 1)
    assert stream.ended is False
    assert stream.aborted is fatal
