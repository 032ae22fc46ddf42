# assetbuild/__main__.py
from __future__ import annotations
import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, TextIO

import json5

from assetbuild.assets import AggregateAssetStream, AssetBundler
from assetbuild.config.settings import AssetSettings, loadSettings
from assetbuild.core.errors import AssetBuildError, ConfigError
from assetbuild.core.logging import configureLogging, getLogger

logger = getLogger("cli", side="assetbuild")



def _parseOverride(text: str) -> tuple[str, Any]:
    key, sep, raw = text.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected key=value, got '{text}'")
    try:
        value = json5.loads(raw)
    except ValueError:
        # Bare words stay strings: --set assets.dependencyDirName=deps
        value = raw
    return key.strip(), value



def buildParser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetbuild",
        description="Aggregate the declared style assets of every package owning the given modules.",
    )
    parser.add_argument("files", nargs="+", help="Module files, as a bundler would discover them")
    parser.add_argument("-o", "--output", help="Write the aggregate asset stream here instead of stdout")
    parser.add_argument("-C", "--config", dest="projectDir", help="Directory holding assetbuild.json5")
    parser.add_argument(
        "--set", dest="overrides", action="append", type=_parseOverride, default=[],
        metavar="KEY=VALUE", help="Override a config value, e.g. assets.maxConcurrency=8",
    )
    parser.add_argument("--log-level", dest="logLevel", help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--log-json", dest="logJson", action="store_true", help="One JSON object per log line")
    return parser



async def runBuild(files: list[str], settings: AssetSettings, err: TextIO) -> tuple[int, str | None]:
    """Exit code and aggregate asset text; the text is None when the build failed fatally."""
    bundler = AssetBundler(settings=settings)
    streams: list[AggregateAssetStream] = []
    failures: list[str] = []

    def _onAssetStream(stream: AggregateAssetStream, kind: str) -> None:
        streams.append(stream)
        stream.onError(lambda error, packagePath: failures.append(f"{packagePath}: {error}"))

    bundler.on("assetStream", _onAssetStream)
    logger.debug("Building assets for %d module file(s)", len(files))
    try:
        await bundler.bundle([str(Path(file).resolve()) for file in files])
    except AssetBuildError as error:
        print(f"assetbuild: {error}", file=err)
        return 1, None

    logger.debug("Asset stream closed with %d package error(s)", len(failures))
    for failure in failures:
        print(f"assetbuild: {failure}", file=err)
    text = "".join(chunk for stream in streams for chunk in stream.chunks)
    return (1 if failures else 0), text



def main(argv: list[str] | None = None) -> int:
    args = buildParser().parse_args(argv)
    overrides = dict(args.overrides)
    if args.logLevel:
        overrides["logging.level"] = args.logLevel
    if args.logJson:
        overrides["logging.json"] = True

    try:
        settings = loadSettings(args.projectDir, overrides)
    except ConfigError as error:
        print(f"assetbuild: {error}", file=sys.stderr)
        return 2

    configureLogging(settings.logLevel, json=settings.logJson, logFile=settings.logFile)

    code, text = asyncio.run(runBuild(args.files, settings, sys.stderr))
    if text is None:
        return code
    # Output file is only touched once the build has produced its stream
    if args.output:
        with open(args.output, "w", encoding=settings.encoding) as out:
            out.write(text)
    else:
        sys.stdout.write(text)
    return code



if __name__ == "__main__":
    sys.exit(main())
