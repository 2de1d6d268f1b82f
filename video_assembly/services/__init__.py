"""
Video assembly services.

This package contains the business logic for resolving encode settings,
building filter graphs and FFmpeg commands, running the encoder and
translating its progress output.
"""

from .encode_config_resolver import EncodeConfigResolver
from .filter_graph import (
    FilterGraph,
    FilterGraphBuilder,
    Transition,
    TransitionKind,
    TransitionPlan,
)
from .ffmpeg_command_builder import FFmpegCommandBuilder
from .process_orchestrator import OrchestratorState, ProcessOrchestrator
from .progress_translator import PhaseProgressMapper, ProgressTranslator
from .hardware_probe import HardwareEncoderProbe, enforce_hardware_policy
from .video_assembly_service import VideoAssemblyService, find_images

__all__ = [
    'EncodeConfigResolver',
    'FilterGraph',
    'FilterGraphBuilder',
    'Transition',
    'TransitionKind',
    'TransitionPlan',
    'FFmpegCommandBuilder',
    'OrchestratorState',
    'ProcessOrchestrator',
    'PhaseProgressMapper',
    'ProgressTranslator',
    'HardwareEncoderProbe',
    'enforce_hardware_policy',
    'VideoAssemblyService',
    'find_images',
]
