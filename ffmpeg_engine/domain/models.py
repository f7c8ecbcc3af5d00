"""
Value types shared by the engine's services.

`DeploymentLocation` pins down where the executable lives, `ConversionRequest`
validates and composes a single invocation, `ConversionResult` carries what
the external tool produced, and `EngineState` tracks the engine lifecycle.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from ..config.common import (
    DEPLOY_ROOT,
    EXECUTABLE_NAME,
    PRODUCT_FOLDER,
)
from .exceptions import InputNotFoundException, InvalidArgumentException


class EngineState(Enum):
    UNINITIALIZED = "uninitialized"
    DEPLOYING = "deploying"
    LOCK_CHECK = "lock_check"
    READY = "ready"
    FAILED = "failed"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class DeploymentLocation:
    """
    The directory and executable path the tool is deployed to.

    The directory must exist before the executable is written into it.
    """

    directory: Path
    executable_path: Path

    @classmethod
    def under(cls, root: Path, product_folder: str = PRODUCT_FOLDER,
              executable_name: str = EXECUTABLE_NAME) -> "DeploymentLocation":
        directory = Path(root) / product_folder
        return cls(directory=directory, executable_path=directory / executable_name)

    @property
    def executable_name(self) -> str:
        return self.executable_path.name

    def exists(self) -> bool:
        return self.directory.exists()


@lru_cache(maxsize=None)
def default_deployment_location() -> DeploymentLocation:
    """Returns the process-wide deployment location, computed once."""
    return DeploymentLocation.under(DEPLOY_ROOT)


@dataclass(frozen=True)
class ConversionRequest:
    """
    A single, validated conversion call.

    Paths are kept as the caller passed them so they reach the tool verbatim.
    `parameters` is an opaque string of extra flags placed between the input
    and the output.
    """

    input_path: str
    output_path: str
    parameters: str = ""

    @classmethod
    def create(cls, input_path, output_path, parameters: Optional[str] = None) -> "ConversionRequest":
        """
        Validates the raw call arguments and builds a request.

        Raises:
            InvalidArgumentException: If the input or output path is empty or whitespace.
            InputNotFoundException: If the input file does not exist.
        """
        input_str = "" if input_path is None else str(input_path)
        output_str = "" if output_path is None else str(output_path)

        if not input_str.strip():
            raise InvalidArgumentException("input_path")
        if not Path(input_str).is_file():
            raise InputNotFoundException(input_str)
        if not output_str.strip():
            raise InvalidArgumentException("output_path")

        return cls(input_path=input_str, output_path=output_str, parameters=parameters or "")

    def arguments(self) -> List[str]:
        """
        The argument vector passed to the executable, without the executable itself.

        Parameters are split on whitespace only; quotes and backslashes reach
        the tool unchanged.
        """
        return ["-i", self.input_path, *self.parameters.split(), self.output_path]

    def command_line(self) -> str:
        """The invocation in its display form: -i "<input>" <parameters> "<output>"."""
        parts = [f'-i "{self.input_path}"']
        if self.parameters.strip():
            parts.append(self.parameters.strip())
        parts.append(f'"{self.output_path}"')
        return " ".join(parts)

    def command_string(self, executable) -> str:
        """The full command line as one string, the form CreateProcess receives on Windows."""
        return f'"{executable}" {self.command_line()}'


@dataclass
class ConversionResult:
    """What one run of the external tool produced. The return code is not interpreted."""

    arguments: List[str]
    command_line: str
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed: timedelta = field(default_factory=timedelta)

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0
