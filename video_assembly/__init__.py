"""
Slideshow video assembly.

Turns a directory of rendered weather images into a video with FFmpeg:
binary provisioning, encode settings, filter graph construction, process
orchestration and progress translation.

Usage:
    from video_assembly import FFmpegBinaryManager, VideoAssemblyService, EncodeConfig

    service = VideoAssemblyService(FFmpegBinaryManager())
    result = service.assemble(image_dir, EncodeConfig())
"""

from .models import EncodeConfig, BinarySourceConfig, ProcessingResult
from .core import FFmpegBinaryManager
from .services import VideoAssemblyService, EncodeConfigResolver

__version__ = '1.0.0'

__all__ = [
    'EncodeConfig',
    'BinarySourceConfig',
    'ProcessingResult',
    'FFmpegBinaryManager',
    'VideoAssemblyService',
    'EncodeConfigResolver',
]
