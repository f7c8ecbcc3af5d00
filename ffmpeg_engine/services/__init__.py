"""
Services Package for the FFmpeg Engine.

This package contains the service layer: the classes that act on the
filesystem, the lock primitive and child processes.

- **FFmpegEngine:** The managed wrapper. It deploys the tool, recovers from
  stale processes, and runs serialized conversions.

- **ResourceDeployer:** Materializes the executable from its gzip payload
  exactly once per deployment location.

- **CrossProcessLock:** The named, host-wide lock every engine instance
  serializes on.

- **Logging Service (`ConversionLog`, `ErrorLog`):** Optional structured run
  logs, separate from the real-time console logging.
"""
from .ffmpeg_engine import FFmpegEngine
from .process_lock import CrossProcessLock
from .resource_deployer import ResourceDeployer

__all__ = ["FFmpegEngine", "CrossProcessLock", "ResourceDeployer"]
