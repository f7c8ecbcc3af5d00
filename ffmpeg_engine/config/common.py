"""
Common configuration settings used throughout the engine.

This module contains the constants shared by the deployer, the lock and the
engine itself. It also loads user-specific overrides from an optional YAML
file, allowing the deployment root, lock name or timeouts to be adjusted
without modifying the source code.
"""
import sys
import tempfile
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Configuration ---
# This block loads overrides from a 'config.user.yaml' file located at the
# project root. Only the 'engine' section is read; unknown keys are ignored.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"


# --- Deployment Layout ---

# The product-specific folder created under the system temporary directory.
PRODUCT_FOLDER = "ffmpeg_engine"

# The name of the deployed executable, which is also the image name searched
# for when stale processes are cleaned up.
EXECUTABLE_NAME = "ffmpeg.exe" if sys.platform == "win32" else "ffmpeg"

# Suffix of the compressed scratch file written beside the executable.
COMPRESSED_SUFFIX = ".gz"

# Suffix of the partially decompressed file; it is renamed over the final
# executable only once decompression has completed.
PARTIAL_SUFFIX = ".part"

# The root under which PRODUCT_FOLDER is created.
DEPLOY_ROOT: Path = Path(tempfile.gettempdir())


# --- Embedded Payload ---

# Package and resource name of the gzip-compressed executable bundled with
# the program. A packaging step is responsible for placing it there.
PAYLOAD_PACKAGE = "ffmpeg_engine.resources"
PAYLOAD_NAME = "ffmpeg.gz"

# An explicit payload file overriding the bundled resource, if configured.
PAYLOAD_PATH: Path | None = None


# --- Cross-Process Lock ---

# The fixed, host-wide lock name. Every engine instance on the machine, in any
# process, serializes on the lock file derived from this name.
LOCK_NAME = "ffmpeg_engine"

# Directory holding the lock file. It must not be the deployment directory,
# which is removed on disposal while other processes may still hold the lock.
LOCK_DIR: Path = Path(tempfile.gettempdir())

# Seconds to wait for the lock. None blocks indefinitely.
LOCK_TIMEOUT: float | None = None


# --- Process Execution ---

# Seconds to wait for the external tool to exit. None blocks indefinitely.
PROCESS_TIMEOUT: float | None = None

# Seconds to wait for killed stale processes to be reaped.
TERMINATE_WAIT_SECONDS = 3.0


# --- Logging Configuration ---

# The format string for the Loguru logger.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{process} - <level>{message}</level>"
)

# Directory for the structured conversion log and the error log. None
# disables both.
CONVERSION_LOG_DIR: Path | None = None

# The filename of the YAML conversion log.
CONVERSION_LOG_FILE_NAME = "conversion_log.yaml"

# Number of trailing stderr characters kept in log records.
STDERR_TAIL_LENGTH = 2000


def _optional_float(value) -> float | None:
    return None if value is None else float(value)


if USER_CONFIG_PATH.is_file():
    try:
        with USER_CONFIG_PATH.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
        engine_config = (user_config or {}).get("engine") or {}

        if engine_config.get("deploy_root"):
            DEPLOY_ROOT = Path(engine_config["deploy_root"])
        if engine_config.get("payload_path"):
            PAYLOAD_PATH = Path(engine_config["payload_path"])
        if engine_config.get("lock_name"):
            LOCK_NAME = str(engine_config["lock_name"])
        if engine_config.get("lock_dir"):
            LOCK_DIR = Path(engine_config["lock_dir"])
        if "lock_timeout" in engine_config:
            LOCK_TIMEOUT = _optional_float(engine_config["lock_timeout"])
        if "process_timeout" in engine_config:
            PROCESS_TIMEOUT = _optional_float(engine_config["process_timeout"])
        if engine_config.get("conversion_log_dir"):
            CONVERSION_LOG_DIR = Path(engine_config["conversion_log_dir"])
    except Exception as e:
        logger.warning(f"Could not load or parse '{USER_CONFIG_PATH}': {e}")
else:
    logger.debug(f"User config '{USER_CONFIG_PATH}' not found. Using built-in engine defaults.")
