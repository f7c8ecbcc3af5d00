"""Shared test fixtures for the FFmpeg Engine."""

import gzip
import shutil
import tempfile
import uuid
from pathlib import Path

import pytest

from ffmpeg_engine.domain.models import DeploymentLocation

# A stand-in for FFmpeg: echoes each argument on its own line, writes a line
# to stderr, optionally records start/end markers and sleeps, then exits with
# FAKE_TOOL_EXIT (default 0).
FAKE_TOOL_SCRIPT = """#!/bin/sh
if [ -n "$FAKE_TOOL_LOG" ]; then echo "start $$" >> "$FAKE_TOOL_LOG"; fi
for arg in "$@"; do printf '%s\\n' "$arg"; done
echo "fake ffmpeg stderr" 1>&2
if [ -n "$FAKE_TOOL_SLEEP" ]; then sleep "$FAKE_TOOL_SLEEP"; fi
if [ -n "$FAKE_TOOL_LOG" ]; then echo "end $$" >> "$FAKE_TOOL_LOG"; fi
exit "${FAKE_TOOL_EXIT:-0}"
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def payload_path(temp_dir: Path) -> Path:
    """A gzip payload whose decompressed content is the fake tool script."""
    path = temp_dir / "payload" / "ffmpeg.gz"
    path.parent.mkdir()
    with gzip.open(path, "wb") as f:
        f.write(FAKE_TOOL_SCRIPT.encode("utf-8"))
    return path


@pytest.fixture
def deploy_root(temp_dir: Path) -> Path:
    return temp_dir / "tmp"


@pytest.fixture
def location(deploy_root: Path) -> DeploymentLocation:
    return DeploymentLocation.under(deploy_root)


@pytest.fixture
def lock_dir(temp_dir: Path) -> Path:
    return temp_dir / "locks"


@pytest.fixture
def lock_name() -> str:
    """A lock name unique to the test, so tests never contend with each other."""
    return f"ffmpeg_engine_test_{uuid.uuid4().hex}"


@pytest.fixture
def input_file(temp_dir: Path) -> Path:
    path = temp_dir / "sample.avi"
    path.write_bytes(b"not really a video")
    return path


@pytest.fixture
def engine_kwargs(deploy_root: Path, lock_name: str, lock_dir: Path, payload_path: Path) -> dict:
    return {
        "deploy_root": deploy_root,
        "lock_name": lock_name,
        "lock_dir": lock_dir,
        "payload_path": payload_path,
        "conversion_log_dir": None,
    }
