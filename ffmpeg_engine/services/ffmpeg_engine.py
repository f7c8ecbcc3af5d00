"""
This module provides FFmpegEngine, the managed wrapper around the deployed
FFmpeg executable.

The engine guarantees three things:
- the executable is deployed before first use,
- at most one conversion (or stale-process recovery) runs at a time on the
  whole host, enforced by a named cross-process lock,
- leftover FFmpeg processes from an unclean shutdown are terminated on start.

Each `convert` call runs synchronously in the caller's thread: validate,
acquire the lock, spawn, wait for exit, release the lock.
"""
import shutil
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger

from ..config.common import (
    CONVERSION_LOG_DIR,
    LOCK_NAME,
    LOCK_TIMEOUT,
    PROCESS_TIMEOUT,
    STDERR_TAIL_LENGTH,
)
from ..domain.exceptions import (
    ConversionFailedException,
    ConversionTimeoutException,
    EngineDisposedException,
    ProcessSpawnException,
)
from ..domain.models import (
    ConversionRequest,
    ConversionResult,
    DeploymentLocation,
    EngineState,
    default_deployment_location,
)
from ..utils.command_utils import format_command
from ..utils.format_utils import format_timedelta
from ..utils.process_utils import is_file_locked, terminate_processes
from .logging_service import ConversionLog, ErrorLog
from .process_lock import CrossProcessLock
from .resource_deployer import ResourceDeployer

_IS_WINDOWS = sys.platform == "win32"

# Keeps the child from opening a console window on Windows.
_CREATION_FLAGS = subprocess.CREATE_NO_WINDOW if _IS_WINDOWS else 0


class FFmpegEngine:
    """
    Owns the deployed executable, the cross-process lock and the most recent
    child process handle.

    Construction walks UNINITIALIZED -> DEPLOYING -> LOCK_CHECK -> READY, or
    ends in FAILED with the error propagated. Call `dispose()` (or use the
    engine as a context manager) when no conversion is in flight; disposal
    removes the deployment directory.

    Args:
        deploy_root: Directory under which the product folder is created.
            Defaults to the process-wide location under the system temp dir.
        lock_name: Host-wide lock name. Engines sharing a name serialize.
        lock_dir: Directory holding the lock file.
        payload_path: Explicit gzip payload instead of the bundled resource.
        lock_timeout: Default seconds to wait for the lock; None waits forever.
        process_timeout: Default seconds to wait for FFmpeg; None waits forever.
        conversion_log_dir: Where to write the YAML conversion log and error log.
    """

    def __init__(
        self,
        deploy_root: Optional[Path] = None,
        lock_name: str = LOCK_NAME,
        lock_dir: Optional[Path] = None,
        payload_path: Optional[Path] = None,
        lock_timeout: Optional[float] = LOCK_TIMEOUT,
        process_timeout: Optional[float] = PROCESS_TIMEOUT,
        conversion_log_dir: Optional[Path] = CONVERSION_LOG_DIR,
    ):
        self.state = EngineState.UNINITIALIZED
        self.location = (
            DeploymentLocation.under(deploy_root) if deploy_root is not None else default_deployment_location()
        )
        self.lock = CrossProcessLock(lock_name, lock_dir)
        self.process: Optional[subprocess.Popen] = None
        self.lock_timeout = lock_timeout
        self.process_timeout = process_timeout

        self.conversion_log: Optional[ConversionLog] = None
        self.error_log: Optional[ErrorLog] = None
        if conversion_log_dir:
            self.conversion_log = ConversionLog(conversion_log_dir)
            self.error_log = ErrorLog(conversion_log_dir)

        try:
            self.state = EngineState.DEPLOYING
            ResourceDeployer(self.location, payload_path).ensure_deployed()

            self.state = EngineState.LOCK_CHECK
            if is_file_locked(self.file_path):
                logger.warning(f"'{self.file_path}' is held by another process. Cleaning up stale FFmpeg processes.")
                self._recover_stale_processes()
        except Exception:
            self.state = EngineState.FAILED
            self.lock.close()
            raise

        self.state = EngineState.READY
        logger.debug(f"FFmpegEngine ready (executable: '{self.file_path}', lock: '{self.lock.name}').")

    @property
    def directory_path(self) -> Path:
        return self.location.directory

    @property
    def file_path(self) -> Path:
        return self.location.executable_path

    def __enter__(self) -> "FFmpegEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()

    def _recover_stale_processes(self) -> None:
        with self.lock.hold(self.lock_timeout):
            terminate_processes(self.location.executable_name)

    def convert(
        self,
        input_path,
        output_path,
        parameters: Optional[str] = None,
        timeout: Optional[float] = None,
        lock_timeout: Optional[float] = None,
        check: bool = False,
    ) -> ConversionResult:
        """
        Runs FFmpeg once as `-i "<input>" <parameters> "<output>"` and waits for it.

        Arguments are validated before the lock is touched. The lock is held
        from spawn until the process has exited and is released on every path;
        the optional run logs are written after it has been released.

        Args:
            input_path: An existing input file.
            output_path: Where FFmpeg should write. Not validated beyond non-emptiness.
            parameters: Extra command-line flags passed through between input and output.
            timeout: Seconds to wait for FFmpeg. Defaults to the engine's process_timeout.
            lock_timeout: Seconds to wait for the lock. Defaults to the engine's lock_timeout.
            check: Raise ConversionFailedException on a non-zero exit code.

        Returns:
            The ConversionResult with the exit code and captured output. The exit
            code is not interpreted unless `check` is set.

        Raises:
            InvalidArgumentException: Empty input or output path.
            InputNotFoundException: The input file does not exist.
            ProcessSpawnException: The executable could not be launched.
            LockTimeoutException: The lock was not acquired within lock_timeout.
            ConversionTimeoutException: FFmpeg did not exit within timeout.
            EngineDisposedException: The engine has been disposed.
        """
        if self.state is EngineState.DISPOSED:
            raise EngineDisposedException("This FFmpegEngine has been disposed.")

        request = ConversionRequest.create(input_path, output_path, parameters)
        timeout = self.process_timeout if timeout is None else timeout
        lock_timeout = self.lock_timeout if lock_timeout is None else lock_timeout

        with self.lock.hold(lock_timeout):
            result = self._run(request, timeout)
        self._record(result)

        if check and not result.succeeded:
            raise ConversionFailedException(result)
        return result

    def _run(self, request: ConversionRequest, timeout: Optional[float]) -> ConversionResult:
        cmd_list = [str(self.file_path), *request.arguments()]
        logger.info(f"Converting '{request.input_path}' -> '{request.output_path}'")

        # CreateProcess takes one string; passing the composed line keeps parameters verbatim.
        if _IS_WINDOWS:
            command = request.command_string(self.file_path)
            logger.debug(f"Executing command: {command}")
        else:
            command = cmd_list
            logger.debug(f"Executing command: {format_command(cmd_list)}")

        started = datetime.now()
        try:
            self.process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                creationflags=_CREATION_FLAGS,
            )
        except OSError as e:
            raise ProcessSpawnException(f"Could not launch '{self.file_path}': {e}") from e

        try:
            stdout, stderr = self.process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.error(f"FFmpeg did not finish within {timeout}s. Killing PID {self.process.pid}.")
            self.process.kill()
            stdout, stderr = self.process.communicate()
            raise ConversionTimeoutException(request.command_line(), timeout, stdout or "", stderr or "")

        return ConversionResult(
            arguments=request.arguments(),
            command_line=request.command_line(),
            returncode=self.process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            elapsed=datetime.now() - started,
        )

    def _record(self, result: ConversionResult) -> None:
        elapsed = format_timedelta(result.elapsed)
        if result.succeeded:
            logger.success(f"FFmpeg finished in {elapsed}: {result.command_line}")
        else:
            logger.warning(f"FFmpeg exited with return code {result.returncode} after {elapsed}: {result.command_line}")
            if result.stderr:
                logger.debug(f"FFmpeg stderr (rc={result.returncode}): {result.stderr[-STDERR_TAIL_LENGTH:]}")
            if self.error_log:
                self.error_log.write(
                    f"Conversion failed at {datetime.now().isoformat(timespec='seconds')}",
                    f"Command: {result.command_line}",
                    f"Return code: {result.returncode}",
                    result.stderr[-STDERR_TAIL_LENGTH:],
                )

        if self.conversion_log:
            self.conversion_log.write(
                {
                    "ended_datetime": datetime.now().isoformat(timespec="seconds"),
                    "command": result.command_line,
                    "returncode": result.returncode,
                    "elapsed": elapsed,
                }
            )

    def _release_process(self) -> None:
        # Only the handle is released; a still-running child is not killed.
        if self.process is None:
            return
        for stream in (self.process.stdout, self.process.stderr):
            if stream and not stream.closed:
                stream.close()
        self.process = None

    def dispose(self) -> None:
        """
        Releases the lock primitive and the process handle, then deletes the
        deployment directory recursively.

        Must only be called while no conversion is in flight. A repeated call
        is a caller error; it is logged and ignored.
        """
        if self.state is EngineState.DISPOSED:
            logger.warning("FFmpegEngine.dispose() called more than once. Ignoring.")
            return

        try:
            self.lock.close()
            self._release_process()
            if self.location.exists():
                shutil.rmtree(self.directory_path)
                logger.debug(f"Removed deployment directory '{self.directory_path}'.")
        finally:
            self.state = EngineState.DISPOSED
