"""
Helpers for presenting external commands in logs.
"""
import os
import shlex
import subprocess
from typing import List


def format_command(cmd_list: List[str]) -> str:
    """
    Joins an argument vector into a display string using the quoting rules of
    the current platform.

    Args:
        cmd_list: The executable followed by its arguments.

    Returns:
        A single string suitable for logging or copy-pasting into a shell.
    """
    if os.name == "nt":
        return subprocess.list2cmdline(cmd_list)
    return shlex.join(cmd_list)
