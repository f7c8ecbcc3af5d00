"""
FFmpeg Engine: a managed wrapper around a single embedded FFmpeg executable.

The engine deploys the executable to a fixed location under the system
temporary directory, serializes every invocation across all processes on the
host, and cleans up FFmpeg processes left behind by an unclean shutdown.

    from ffmpeg_engine import FFmpegEngine

    with FFmpegEngine() as engine:
        result = engine.convert("sample.avi", "sample.mp4", "-vcodec libx264")
        print(result.returncode)
"""
from .domain.exceptions import (
    ConversionFailedException,
    ConversionTimeoutException,
    DeploymentException,
    EngineDisposedException,
    FFmpegEngineException,
    InputNotFoundException,
    InvalidArgumentException,
    LockTimeoutException,
    ProcessSpawnException,
)
from .domain.models import ConversionRequest, ConversionResult, DeploymentLocation, EngineState
from .services import CrossProcessLock, FFmpegEngine, ResourceDeployer

__all__ = [
    "ConversionFailedException",
    "ConversionRequest",
    "ConversionResult",
    "ConversionTimeoutException",
    "CrossProcessLock",
    "DeploymentException",
    "DeploymentLocation",
    "EngineDisposedException",
    "EngineState",
    "FFmpegEngine",
    "FFmpegEngineException",
    "InputNotFoundException",
    "InvalidArgumentException",
    "LockTimeoutException",
    "ProcessSpawnException",
    "ResourceDeployer",
]
