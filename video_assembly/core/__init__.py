"""
Video assembly core utilities.

This package contains codec and preset tables and the FFmpeg binary
manager used throughout the subsystem.
"""

from .codec_definitions import (
    CodecInfo,
    VIDEO_CODECS,
    HARDWARE_ENCODERS,
    NVENC_PRESETS,
    FASTSTART_CONTAINERS,
    is_hardware_codec,
    supports_crf,
    supports_speed_preset,
    is_codec_container_compatible,
    get_hardware_variant,
)

from .preset_definitions import (
    QualityPresetDefinition,
    QUALITY_PRESETS,
    DEFAULT_PRESET,
    get_preset_definition,
    get_all_preset_names,
)

from .binary_manager import (
    FFmpegBinaryManager,
    executable_name,
)

__all__ = [
    # Codec definitions
    'CodecInfo',
    'VIDEO_CODECS',
    'HARDWARE_ENCODERS',
    'NVENC_PRESETS',
    'FASTSTART_CONTAINERS',
    'is_hardware_codec',
    'supports_crf',
    'supports_speed_preset',
    'is_codec_container_compatible',
    'get_hardware_variant',

    # Preset definitions
    'QualityPresetDefinition',
    'QUALITY_PRESETS',
    'DEFAULT_PRESET',
    'get_preset_definition',
    'get_all_preset_names',

    # Binary management
    'FFmpegBinaryManager',
    'executable_name',
]
