"""
This module contains helper functions for formatting data into human-readable strings,
used mainly in log messages about deployments and conversions.
"""

from datetime import timedelta


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta object into a "HH:MM:SS.mmm" string.

    Conversions are often shorter than a second in tests and for small inputs,
    so milliseconds are kept.

    Args:
        td_object: The timedelta object to format.

    Returns:
        A string such as "02:01:01.250". Returns "00:00:00.000" if the input is
        not a timedelta.
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00.000"

    total_ms = int(td_object.total_seconds() * 1000)
    total_seconds, milliseconds = divmod(total_ms, 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}.{milliseconds:03}"


def formatted_size(size_bytes: int) -> str:
    """
    Converts a size in bytes to a human-readable string (e.g., B, KB, MB, GB).

    Args:
        size_bytes: The size in bytes.

    Returns:
        A formatted string, e.g. 1536 becomes "1.50 KB" and 2097152 becomes "2 MB".
    """
    if size_bytes < 0:
        size_bytes = 0

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0

    if size_bytes == 0:
        return "0 B"

    for unit in units:
        if size_bytes < factor:
            if unit == "B":
                return f"{size_bytes} {unit}"
            # "2.00 MB" -> "2 MB"
            return f"{size_bytes:.2f} {unit}".replace(".00", "")
        size_bytes /= factor

    return f"{size_bytes:.2f} {units[-1]}".replace(".00", "")
