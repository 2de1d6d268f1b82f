"""
Codec and container definitions.

Maps the selectable software encoders to their vendor hardware variants and
records which containers can hold each codec.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field

from ..models.encode_config import Container


@dataclass
class CodecInfo:
    """Information about a video encoder."""
    name: str
    long_name: str
    is_hardware: bool = False
    supported_containers: List[str] = field(default_factory=list)
    hardware_variants: List[str] = field(default_factory=list)  # preferred order
    supports_crf: bool = True
    supports_speed_preset: bool = False


_MP4_FAMILY = [Container.MP4.value, Container.MKV.value, Container.MOV.value, Container.AVI.value]

VIDEO_CODECS: Dict[str, CodecInfo] = {
    # H.264 / AVC
    'libx264': CodecInfo(
        name='libx264',
        long_name='H.264 / AVC (software)',
        supports_speed_preset=True,
        supported_containers=list(_MP4_FAMILY),
        hardware_variants=['h264_nvenc', 'h264_amf', 'h264_qsv'],
    ),
    'h264_nvenc': CodecInfo(
        name='h264_nvenc',
        long_name='H.264 / AVC (NVIDIA NVENC)',
        supports_speed_preset=True,
        is_hardware=True,
        supported_containers=list(_MP4_FAMILY),
    ),
    'h264_amf': CodecInfo(
        name='h264_amf',
        long_name='H.264 / AVC (AMD AMF)',
        is_hardware=True,
        supported_containers=list(_MP4_FAMILY),
    ),
    'h264_qsv': CodecInfo(
        name='h264_qsv',
        long_name='H.264 / AVC (Intel QSV)',
        supports_speed_preset=True,
        is_hardware=True,
        supported_containers=list(_MP4_FAMILY),
    ),

    # H.265 / HEVC
    'libx265': CodecInfo(
        name='libx265',
        long_name='H.265 / HEVC (software)',
        supports_speed_preset=True,
        supported_containers=[Container.MP4.value, Container.MKV.value, Container.MOV.value],
        hardware_variants=['hevc_nvenc', 'hevc_amf', 'hevc_qsv'],
    ),
    'hevc_nvenc': CodecInfo(
        name='hevc_nvenc',
        long_name='H.265 / HEVC (NVIDIA NVENC)',
        supports_speed_preset=True,
        is_hardware=True,
        supported_containers=[Container.MP4.value, Container.MKV.value, Container.MOV.value],
    ),
    'hevc_amf': CodecInfo(
        name='hevc_amf',
        long_name='H.265 / HEVC (AMD AMF)',
        is_hardware=True,
        supported_containers=[Container.MP4.value, Container.MKV.value, Container.MOV.value],
    ),
    'hevc_qsv': CodecInfo(
        name='hevc_qsv',
        long_name='H.265 / HEVC (Intel QSV)',
        supports_speed_preset=True,
        is_hardware=True,
        supported_containers=[Container.MP4.value, Container.MKV.value, Container.MOV.value],
    ),

    # Web codecs
    'libvpx-vp9': CodecInfo(
        name='libvpx-vp9',
        long_name='VP9 (software)',
        supported_containers=[Container.WEBM.value, Container.MKV.value, Container.MP4.value],
    ),
    'libaom-av1': CodecInfo(
        name='libaom-av1',
        long_name='AV1 (software)',
        supported_containers=[Container.WEBM.value, Container.MKV.value, Container.MP4.value],
    ),

    # Legacy
    'mpeg4': CodecInfo(
        name='mpeg4',
        long_name='MPEG-4 Part 2',
        supported_containers=[Container.MP4.value, Container.AVI.value, Container.MKV.value,
                              Container.MOV.value],
        supports_crf=False,
    ),
    'msmpeg4': CodecInfo(
        name='msmpeg4',
        long_name='Microsoft MPEG-4 v3',
        supported_containers=[Container.AVI.value, Container.MKV.value],
        supports_crf=False,
    ),
}

HARDWARE_ENCODERS: List[str] = [name for name, info in VIDEO_CODECS.items() if info.is_hardware]

# x264-style speed presets translated to NVENC p1 (fastest) .. p7 (slowest)
NVENC_PRESETS: Dict[str, str] = {
    'ultrafast': 'p1',
    'superfast': 'p1',
    'veryfast': 'p2',
    'faster': 'p3',
    'fast': 'p3',
    'medium': 'p4',
    'slow': 'p5',
    'slower': 'p6',
    'veryslow': 'p7',
}

# Containers that benefit from moving the index to the front of the file
FASTSTART_CONTAINERS = (Container.MP4.value, Container.MOV.value)


def is_hardware_codec(codec: str) -> bool:
    info = VIDEO_CODECS.get(codec)
    return info.is_hardware if info else False


def supports_crf(codec: str) -> bool:
    """Whether the encoder accepts a constant-rate-factor quality target."""
    info = VIDEO_CODECS.get(codec)
    return info.supports_crf if info else True


def supports_speed_preset(codec: str) -> bool:
    info = VIDEO_CODECS.get(codec)
    return info.supports_speed_preset if info else False


def is_codec_container_compatible(codec: str, container: str) -> bool:
    """Check if a codec can be stored in a container. Unknown codecs are allowed."""
    info = VIDEO_CODECS.get(codec)
    if not info:
        return True
    return container in info.supported_containers


def get_hardware_variant(codec: str, available_encoders) -> Optional[str]:
    """
    Pick the first vendor encoder for ``codec`` that the FFmpeg build offers.

    Args:
        codec: Software encoder name, e.g. 'libx264'
        available_encoders: Encoder names reported by the capability probe

    Returns:
        Hardware encoder name, or None when no variant is available
    """
    if is_hardware_codec(codec):
        return codec if codec in available_encoders else None

    info = VIDEO_CODECS.get(codec)
    if not info:
        return None

    for variant in info.hardware_variants:
        if variant in available_encoders:
            return variant
    return None
