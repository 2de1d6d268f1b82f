"""
Video assembly data models.

This package contains the configuration values, enums and result types used
throughout the video assembly subsystem.
"""

from .encode_config import (
    EncodeConfig,
    QualityPreset,
    QualityPresetState,
    Resolution,
    VideoCodec,
    Bitrate,
    Container,
    ENCODER_SPEED_PRESETS,
)

from .binary_source import (
    BinarySource,
    BinarySourceConfig,
    EncoderBinary,
    PRIMARY_DOWNLOAD_URL,
    FALLBACK_DOWNLOAD_URL,
    default_cache_dir,
)

from .progress_event import ProgressEvent

from .processing_result import (
    ProcessingResult,
    ProcessingStatus,
)

__all__ = [
    # Encode configuration
    'EncodeConfig',
    'QualityPreset',
    'QualityPresetState',
    'Resolution',
    'VideoCodec',
    'Bitrate',
    'Container',
    'ENCODER_SPEED_PRESETS',

    # Binary source
    'BinarySource',
    'BinarySourceConfig',
    'EncoderBinary',
    'PRIMARY_DOWNLOAD_URL',
    'FALLBACK_DOWNLOAD_URL',
    'default_cache_dir',

    # Progress
    'ProgressEvent',

    # Results
    'ProcessingResult',
    'ProcessingStatus',
]
