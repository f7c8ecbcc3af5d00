"""
Utilities Package for the FFmpeg Engine.

This package contains helper modules that support the services without
belonging to any single one of them.

Modules:
    - command_utils.py: Formats argument vectors for logging.
    - format_utils.py: Converts elapsed times and byte counts into
      human-readable strings for log messages.
    - process_utils.py: Detects whether a file is held by a foreign handle and
      terminates leftover processes by image name.
"""
