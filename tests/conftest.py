import sys
from pathlib import Path
from typing import Any

import json5
import pytest



def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addini(
        "asyncio_mode",
        "Execution mode for @pytest.mark.asyncio tests (pytest-asyncio).",
        default="strict",
    )
    parser.addini(
        "asyncio_default_fixture_loop_scope",
        "Scope for the event loop fixture (pytest-asyncio).",
        default="function",
    )



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")

    if config.getini("asyncio_mode") != "strict":
        raise pytest.UsageError("Async tests are marked explicitly; tests/conftest.py expects asyncio_mode='strict'")

    config.addinivalue_line("markers", "asyncio: mark a test to run inside an event loop")



def write_manifest(dir_path: Path, payload: dict[str, Any], name: str = "manifest.json5") -> Path:
    dir_path.mkdir(parents=True, exist_ok=True)
    manifest_path = dir_path / name
    manifest_path.write_text(json5.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return manifest_path



def write_files(dir_path: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        target = dir_path / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")



@pytest.fixture()
def make_package():
    """Creates a package directory with a manifest and files; returns the manifest path."""
    def _make(dir_path: Path, manifest: dict[str, Any], files: dict[str, str] | None = None) -> Path:
        manifest_path = write_manifest(dir_path, manifest)
        write_files(dir_path, files or {})
        return manifest_path
    return _make
