"""
Video assembly workers.

This package contains background thread workers for assembling videos and
installing FFmpeg without blocking the UI.
"""

from .video_assembly_worker import VideoAssemblyWorker
from .binary_install_worker import BinaryInstallWorker

__all__ = [
    'VideoAssemblyWorker',
    'BinaryInstallWorker',
]
