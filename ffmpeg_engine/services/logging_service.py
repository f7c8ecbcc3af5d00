"""
This module provides file-based run logs for conversions.

It separates logging concerns into a structured YAML log of every conversion
(ConversionLog) and a human-readable text log of failed ones (ErrorLog). Both
are optional and separate from the real-time console logging done through
loguru. Records are written after the engine has released its conversion
lock; the YAML log guards its read-modify-write with a lock file of its own.
"""

from pathlib import Path
from typing import Dict, List, Union

import yaml
from filelock import FileLock
from loguru import logger

from ..config.common import CONVERSION_LOG_FILE_NAME


class Log:
    """
    A base class for the file logs.

    It resolves the log directory and makes sure it exists.
    """

    # A decorative separator line used in text-based logs for better readability.
    linesep_marker: str = "=" * 50

    def __init__(self, log_dir: Path):
        self.log_file_path: Path  # To be defined by the subclass.
        self.log_dir: Path = Path(log_dir).resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def write(self, log_content: Union[dict, list, str]):
        raise NotImplementedError("Subclasses must implement the write() method.")


class ErrorLog(Log):
    """
    Appends human-readable error blocks to a text file.
    """

    DEFAULT_ERROR_FILENAME = "error.txt"

    def __init__(self, error_log_dir: Path, filename: str = DEFAULT_ERROR_FILENAME):
        super().__init__(error_log_dir)
        self.log_file_path = self.log_dir / filename

    def write(self, *error_messages: str):
        """
        Appends the given message lines followed by a separator line.

        Args:
            *error_messages: The lines of one error event.
        """
        if not error_messages:
            return

        content_to_write = "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"

        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            # Fall back to loguru so the message is not lost.
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")


class ConversionLog(Log):
    """
    Keeps a YAML list of conversion records.

    The file always holds a valid YAML list: each write reads the existing
    entries, appends the new one with the next index, and rewrites the file,
    all under a lock file beside the log so concurrent writers never lose
    each other's entries.
    """

    def __init__(self, log_dir: Path, filename: str = CONVERSION_LOG_FILE_NAME):
        super().__init__(log_dir)
        self.log_file_path = self.log_dir / filename
        self._write_lock = FileLock(str(self.log_file_path) + ".lock")

    def read(self) -> List[Dict]:
        if not self.log_file_path.is_file():
            return []
        try:
            with self.log_file_path.open("r", encoding="utf-8") as f:
                loaded_entries = yaml.safe_load(f)
        except (yaml.YAMLError, OSError) as e:
            logger.error(f"Error reading/parsing conversion log {self.log_file_path}: {e}. Starting a new log.")
            return []
        if loaded_entries is None:
            return []
        if not isinstance(loaded_entries, list):
            logger.warning(f"Conversion log {self.log_file_path} contained unexpected data. Starting a new log.")
            return []
        return loaded_entries

    def write(self, new_log_entry: dict):
        if not isinstance(new_log_entry, dict):
            logger.error("ConversionLog.write expects a dictionary as a log entry.")
            return

        with self._write_lock:
            self._append(new_log_entry)

    def _append(self, new_log_entry: dict):
        log_entries = self.read()
        current_max_index = max(
            (entry.get("index", 0) for entry in log_entries if isinstance(entry, dict)),
            default=0,
        )
        log_entries.append({"index": current_max_index + 1, **new_log_entry})

        try:
            with self.log_file_path.open("w", encoding="utf-8") as f:
                yaml.dump(
                    log_entries,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                    indent=4,
                    width=220,
                )
        except OSError as e:
            logger.error(f"Failed to write to conversion log {self.log_file_path}: {e}")
