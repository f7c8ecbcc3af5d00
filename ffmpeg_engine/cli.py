"""
Command-Line Interface (CLI) setup for the FFmpeg Engine.

This module uses Python's `argparse` to define the arguments of a single
conversion run.
"""
import argparse
from typing import List, Optional


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for one conversion.

    Args:
        argv: Arguments to parse; defaults to sys.argv[1:].

    Returns:
        argparse.Namespace: The parsed arguments.
    """
    parser = argparse.ArgumentParser(description="Run one FFmpeg conversion through the managed engine.")
    parser.add_argument("input", help="Existing input media file.")
    parser.add_argument("output", help="Output file for FFmpeg to write.")
    parser.add_argument(
        "--params", default="",
        help='Extra FFmpeg flags placed between input and output, e.g. "-vcodec libx264".',
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Seconds to wait for FFmpeg to finish."
    )
    parser.add_argument(
        "--lock-timeout", type=float, default=None, help="Seconds to wait for the host-wide lock."
    )
    parser.add_argument(
        "--keep-deployment", action="store_true",
        help="Do not remove the deployed executable after the conversion.",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level."
    )
    return parser.parse_args(argv)
