"""
This module materializes the FFmpeg executable from its embedded payload.

The payload is a gzip-compressed executable bundled inside the
`ffmpeg_engine.resources` package (or an explicitly configured file). It is
copied to a uniquely named scratch file beside the target location,
decompressed into another one, and moved into place only once decompression
has fully succeeded. An interrupted deployment never leaves a file that looks
deployed, and deployers racing in several processes never share scratch files.
"""
import gzip
import os
import shutil
import stat
import sys
import tempfile
import zlib
from contextlib import contextmanager
from importlib import resources
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from loguru import logger

from ..config.common import (
    COMPRESSED_SUFFIX,
    PARTIAL_SUFFIX,
    PAYLOAD_NAME,
    PAYLOAD_PACKAGE,
    PAYLOAD_PATH,
)
from ..domain.exceptions import DeploymentException
from ..domain.models import DeploymentLocation, default_deployment_location
from ..utils.format_utils import formatted_size


class ResourceDeployer:
    """
    Ensures a runnable copy of the external tool exists at a DeploymentLocation.

    Deployment is idempotent: once the executable is present it is never
    rewritten unless it has been deleted.
    """

    def __init__(self, location: Optional[DeploymentLocation] = None,
                 payload_path: Optional[Path] = None):
        self.location = location or default_deployment_location()
        self.payload_path = Path(payload_path) if payload_path else PAYLOAD_PATH

    def ensure_deployed(self) -> Path:
        """
        Makes sure the executable exists, deploying it from the payload if needed.

        Returns:
            The path of the deployed executable.

        Raises:
            DeploymentException: If the directory cannot be created, the payload
                cannot be located, or decompression fails.
        """
        directory = self.location.directory
        executable = self.location.executable_path

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DeploymentException(f"Could not create deployment directory '{directory}': {e}") from e

        if executable.is_file():
            logger.debug(f"FFmpeg already deployed at '{executable}'.")
            return executable

        logger.info(f"Deploying FFmpeg to '{executable}'...")
        self._decompress(self._stage_payload())
        logger.info(f"FFmpeg deployed ({formatted_size(executable.stat().st_size)}).")
        return executable

    @contextmanager
    def _open_payload(self) -> Iterator[BinaryIO]:
        if self.payload_path is not None:
            if not self.payload_path.is_file():
                raise DeploymentException(f"Configured payload '{self.payload_path}' could not be located.")
            with self.payload_path.open("rb") as f:
                yield f
            return

        try:
            payload = resources.files(PAYLOAD_PACKAGE).joinpath(PAYLOAD_NAME)
            found = payload.is_file()
        except (ModuleNotFoundError, OSError) as e:
            raise DeploymentException(f"Embedded payload '{PAYLOAD_NAME}' could not be located: {e}") from e
        if not found:
            raise DeploymentException(
                f"Embedded payload '{PAYLOAD_NAME}' could not be located in '{PAYLOAD_PACKAGE}'."
            )
        with payload.open("rb") as f:
            yield f

    def _stage_payload(self) -> Path:
        """Copies the compressed payload to a uniquely named scratch file beside the executable."""
        directory = self.location.directory
        compressed: Optional[Path] = None
        with self._open_payload() as source:
            try:
                with tempfile.NamedTemporaryFile(
                    dir=directory, prefix=f"{self.location.executable_name}.",
                    suffix=COMPRESSED_SUFFIX, delete=False,
                ) as target:
                    compressed = Path(target.name)
                    shutil.copyfileobj(source, target)
            except OSError as e:
                if compressed is not None:
                    compressed.unlink(missing_ok=True)
                raise DeploymentException(f"Could not write compressed payload to '{directory}': {e}") from e
        return compressed

    def _decompress(self, compressed: Path) -> None:
        executable = self.location.executable_path
        partial: Optional[Path] = None

        try:
            with gzip.open(compressed, "rb") as source, tempfile.NamedTemporaryFile(
                dir=self.location.directory, prefix=f"{self.location.executable_name}.",
                suffix=PARTIAL_SUFFIX, delete=False,
            ) as target:
                partial = Path(target.name)
                shutil.copyfileobj(source, target)
            if sys.platform != "win32":
                mode = partial.stat().st_mode
                partial.chmod(mode | stat.S_IRGRP | stat.S_IROTH | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            # Concurrent deployers each rename a complete file; the last one wins.
            try:
                os.replace(partial, executable)
            except PermissionError:
                # Windows refuses to replace a running executable; the copy in place is complete.
                if not executable.is_file():
                    raise
                partial.unlink(missing_ok=True)
        except (OSError, EOFError, zlib.error) as e:
            if partial is not None:
                partial.unlink(missing_ok=True)
            raise DeploymentException(f"Could not decompress FFmpeg payload into '{executable}': {e}") from e
        finally:
            compressed.unlink(missing_ok=True)
