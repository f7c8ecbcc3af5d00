"""
Defines custom exception types for the FFmpeg Engine.

These exceptions let callers react to the specific way a conversion failed:
bad arguments are rejected before the lock is touched, deployment problems
make construction fail, and spawn problems surface from `convert`.

All custom exceptions inherit from the base `FFmpegEngineException`.
"""


class FFmpegEngineException(Exception):
    """Base class for all custom exceptions in the FFmpeg Engine."""

    pass


# --- Argument Validation Exceptions ---
class InvalidArgumentException(FFmpegEngineException, ValueError):
    """
    Raised when an input or output path is empty or only whitespace.

    Validation happens before the cross-process lock is acquired, so a bad
    call never blocks other callers.
    """

    def __init__(self, argument_name: str, message: str = ""):
        self.argument_name = argument_name
        super().__init__(message or f"'{argument_name}' must not be empty.")


class InputNotFoundException(FFmpegEngineException, FileNotFoundError):
    """Raised when the input file of a conversion does not exist."""

    def __init__(self, input_path):
        self.input_path = input_path
        super().__init__(f"The input file could not be found: '{input_path}'")


# --- Deployment Exceptions ---
class DeploymentException(FFmpegEngineException):
    """
    Raised when the executable cannot be materialized from its payload.

    Covers a missing embedded payload, a deployment directory that cannot be
    created, and decompression failures (corrupt or truncated payload, full
    disk, permission denial). Fatal to engine construction.
    """

    pass


# --- Execution Exceptions ---
class ProcessSpawnException(FFmpegEngineException):
    """Raised when the deployed executable could not be launched."""

    pass


class LockTimeoutException(FFmpegEngineException):
    """Raised when the cross-process lock was not acquired within the requested timeout."""

    def __init__(self, lock_name: str, timeout: float):
        self.lock_name = lock_name
        self.timeout = timeout
        super().__init__(f"Could not acquire lock '{lock_name}' within {timeout}s")


class ConversionTimeoutException(FFmpegEngineException):
    """
    Raised when the external tool did not exit within the requested timeout.

    The child process has been killed and reaped, and the lock released,
    by the time this propagates.
    """

    def __init__(self, command_line: str, timeout: float, stdout: str = "", stderr: str = ""):
        self.command_line = command_line
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Conversion did not finish within {timeout}s: {command_line}")


class ConversionFailedException(FFmpegEngineException):
    """Raised for a non-zero exit code, only when the caller asked for `check=True`."""

    def __init__(self, result):
        self.result = result
        super().__init__(
            f"FFmpeg exited with return code {result.returncode}: {result.command_line}"
        )


class EngineDisposedException(FFmpegEngineException):
    """Raised when a disposed engine is asked to convert."""

    pass
