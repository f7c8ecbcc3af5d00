"""
Main entry point for the FFmpeg Engine.

Parses the command line, configures logging, runs one conversion through the
engine and exits with FFmpeg's return code.
"""

import sys

from loguru import logger

from ffmpeg_engine.cli import get_args
from ffmpeg_engine.config.common import LOGGER_FORMAT
from ffmpeg_engine.domain.exceptions import FFmpegEngineException
from ffmpeg_engine.services.ffmpeg_engine import FFmpegEngine


def main(argv=None) -> int:
    args = get_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    engine = None
    try:
        engine = FFmpegEngine()
        result = engine.convert(
            args.input,
            args.output,
            args.params,
            timeout=args.timeout,
            lock_timeout=args.lock_timeout,
        )
    except FFmpegEngineException as e:
        logger.error(str(e))
        return 1
    finally:
        if engine is not None and not args.keep_deployment:
            engine.dispose()

    if not result.succeeded:
        sys.stderr.write(result.stderr)
    return result.returncode


if __name__ == "__main__":
    sys.exit(main())
