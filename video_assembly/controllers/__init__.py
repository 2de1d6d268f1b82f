"""
Video assembly controllers.

This package contains the controller that connects the UI layer to the
assembly and install workers.
"""

from .video_assembly_controller import VideoAssemblyController

__all__ = [
    'VideoAssemblyController',
]
