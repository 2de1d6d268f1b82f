#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Weather Signage Video - Application Entry Point

Assembles a directory of rendered weather images into a slideshow video
using the stored video settings.
"""

import argparse
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication

from core.exceptions import ConfigurationError
from core.logger import logger
from core.settings_manager import get_settings
from video_assembly.core import FFmpegBinaryManager
from video_assembly.models import BinarySource
from video_assembly.services import VideoAssemblyService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weather-signage-video",
        description="Assemble weather images into a slideshow video with FFmpeg"
    )
    parser.add_argument("image_dir", type=Path, help="Directory holding the rendered images")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="Output video file (default: slideshow.<container> in image_dir)")
    parser.add_argument("--ffmpeg-source", choices=[s.value for s in BinarySource], default=None,
                        help="Override the stored FFmpeg source")
    parser.add_argument("--ffmpeg-path", type=Path, default=None,
                        help="FFmpeg directory or executable for the custom source")
    parser.add_argument("--install-only", action="store_true",
                        help="Download the bundled FFmpeg build and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    """Application entry point"""
    args = build_parser().parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Weather Signage Video")
    app.setOrganizationName("WeatherSignage")

    settings = get_settings()
    if args.debug or settings.debug_logging:
        logger.enable_debug(True)
        logger.debug(f"Log file: {logger.get_log_file_path()}")
    logger.cleanup_old_logs()

    source_config = settings.load_binary_source_config()
    if args.ffmpeg_source:
        source_config = source_config.with_source(BinarySource(args.ffmpeg_source), args.ffmpeg_path)
    binary_manager = FFmpegBinaryManager(source_config)

    if args.install_only:
        result = binary_manager.ensure_installed(
            lambda pct, msg: logger.info(f"[{pct:5.1f}%] {msg}")
        )
        if not result.success:
            logger.error(result.error.user_message)
            return 1
        logger.info(f"FFmpeg ready in {result.value}")
        return 0

    is_valid, message = binary_manager.validate_configuration()
    if not is_valid:
        logger.warning(message)

    try:
        config = settings.load_encode_config()
    except ConfigurationError as e:
        logger.error(e.user_message)
        return 2

    service = VideoAssemblyService(binary_manager)
    result = service.assemble(
        args.image_dir,
        config,
        output_file=args.output,
        progress_callback=lambda event: logger.debug(
            f"{event.phase}: {event.percentage:.1f}% {event.message}"
        )
    )

    for warning in result.warnings:
        logger.warning(warning)

    if not result.is_success:
        return 1

    logger.info(
        f"Video assembled in {result.duration_formatted}: {result.output_file} "
        f"({result.output_size_bytes or 0} bytes)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
