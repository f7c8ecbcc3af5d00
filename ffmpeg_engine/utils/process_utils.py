"""
This module detects whether the deployed executable is held by another
process and terminates leftover instances of the tool.

These helpers support the engine's stale-process recovery: a previous
conversion may have outlived its owning application and still hold the
executable open or still be running it.
"""
import errno
import os
import sys
from pathlib import Path
from typing import List, Union

import psutil
from loguru import logger

from ..config.common import TERMINATE_WAIT_SECONDS

if sys.platform != "win32":
    import fcntl

# ERROR_SHARING_VIOLATION and ERROR_LOCK_VIOLATION
_WINDOWS_CONTENTION_ERRORS = {32, 33}
_FLOCK_CONTENTION_ERRNOS = {errno.EAGAIN, errno.EWOULDBLOCK, errno.EACCES}


def is_file_locked(file_path: Union[str, Path]) -> bool:
    """
    Checks whether a file is currently held in a way that denies shared reads.

    The file is opened for reading. On Windows, a sharing violation while
    opening means another handle holds it exclusively. On POSIX systems, where
    opening never fails for that reason, a non-blocking shared advisory lock
    is attempted instead, and contention with an exclusive holder means locked.
    A running process never locks its own image on POSIX, so the file is also
    considered locked while another process is executing it.

    Args:
        file_path: The file to check.

    Returns:
        True if the file is held by a foreign handle, False otherwise.

    Raises:
        ValueError: If `file_path` is empty.
        OSError: For any error other than contention (e.g. the file is missing).
    """
    if not str(file_path).strip():
        raise ValueError("file_path must not be empty.")

    if sys.platform == "win32":
        try:
            with open(file_path, "rb"):
                pass
        except PermissionError as e:
            if getattr(e, "winerror", None) not in _WINDOWS_CONTENTION_ERRORS:
                raise
            logger.debug(f"'{file_path}' is held by another handle: {e}")
            return True
        return False

    with open(file_path, "rb") as f:
        try:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH | fcntl.LOCK_NB)
        except OSError as e:
            if e.errno not in _FLOCK_CONTENTION_ERRNOS:
                raise
            logger.debug(f"'{file_path}' is held by another handle: {e}")
            return True
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    running = find_processes_running(file_path)
    if running:
        logger.debug(f"'{file_path}' is being executed by PID(s) {running}.")
        return True
    return False


def _matches_image_name(process_name: str, image_name: str) -> bool:
    process_name = (process_name or "").lower()
    image_name = image_name.lower()
    stem = image_name[:-4] if image_name.endswith(".exe") else image_name
    return process_name in (image_name, stem, f"{stem}.exe")


def terminate_processes(image_name: str, wait_seconds: float = TERMINATE_WAIT_SECONDS) -> List[int]:
    """
    Kills every running process whose name matches `image_name`.

    Matching is case-insensitive and ignores a trailing ".exe", so "ffmpeg"
    and "ffmpeg.exe" find the same processes. The current process is never
    touched. Failures for a single process (already gone, access denied) are
    logged and skipped so the rest of the pass still runs.

    Args:
        image_name: The executable name to search for.
        wait_seconds: How long to wait for killed processes to be reaped.

    Returns:
        The PIDs that were successfully signalled.
    """
    own_pid = os.getpid()
    killed: List[psutil.Process] = []

    for proc in psutil.process_iter(["name"]):
        try:
            if proc.pid == own_pid or not _matches_image_name(proc.info.get("name"), image_name):
                continue
            logger.warning(f"Terminating stale '{image_name}' process (PID {proc.pid}).")
            proc.kill()
            killed.append(proc)
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            logger.debug(f"Process {proc.pid} exited before it could be terminated.")
        except psutil.AccessDenied as e:
            logger.warning(f"Access denied while terminating PID {proc.pid}: {e}")

    if killed:
        _, alive = psutil.wait_procs(killed, timeout=wait_seconds)
        for proc in alive:
            logger.warning(f"Process {proc.pid} is still running {wait_seconds}s after being killed.")
        logger.info(f"Terminated {len(killed)} stale '{image_name}' process(es).")

    return [proc.pid for proc in killed]


def _same_file(candidate, target: Path) -> bool:
    if not candidate or not os.path.isabs(candidate):
        return False
    try:
        return os.path.samefile(candidate, target)
    except OSError:
        return False


def find_processes_running(file_path: Union[str, Path]) -> List[int]:
    """
    Finds the processes, other than this one, that are executing `file_path`.

    A process matches when its executable is the file, or when it is an
    interpreter running the file as a script (the kernel starts a "#!" script
    as `<interpreter> <script> ...`). Processes that cannot be inspected are
    skipped.

    Returns:
        The matching PIDs.
    """
    target = Path(file_path)
    own_pid = os.getpid()
    running = []

    for proc in psutil.process_iter(["exe", "cmdline"]):
        if proc.pid == own_pid:
            continue
        exe = proc.info.get("exe")
        cmdline = proc.info.get("cmdline") or []
        if _same_file(exe, target) or any(_same_file(arg, target) for arg in cmdline[:2]):
            running.append(proc.pid)

    return running
