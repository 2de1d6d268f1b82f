"""
Quality preset definitions.

Maps each named quality preset onto concrete resolution, codec, bitrate and
frame rate choices. CUSTOM has no definition: applying it keeps whatever
values are currently selected.
"""

from dataclasses import dataclass
from typing import Optional, Dict, List

from ..models.encode_config import (
    QualityPreset,
    QualityPresetState,
    Resolution,
    VideoCodec,
    Bitrate,
)


@dataclass(frozen=True)
class QualityPresetDefinition:
    """Concrete values a quality preset resolves to."""
    preset_name: QualityPreset
    resolution: Resolution
    codec: VideoCodec
    bitrate: Bitrate
    frame_rate: int
    description: str = ""

    def to_state(self) -> QualityPresetState:
        return QualityPresetState(
            resolution=self.resolution,
            codec=self.codec,
            bitrate=self.bitrate,
            frame_rate=self.frame_rate,
            preset=self.preset_name,
        )


QUALITY_PRESETS: Dict[QualityPreset, QualityPresetDefinition] = {
    QualityPreset.ULTRA: QualityPresetDefinition(
        preset_name=QualityPreset.ULTRA,
        resolution=Resolution.UHD_4K,
        codec=VideoCodec.H264,
        bitrate=Bitrate.ULTRA,
        frame_rate=60,
        description="4K at 60 fps for large high-end displays",
    ),
    QualityPreset.HIGH: QualityPresetDefinition(
        preset_name=QualityPreset.HIGH,
        resolution=Resolution.FULL_HD,
        codec=VideoCodec.H264,
        bitrate=Bitrate.HIGH,
        frame_rate=30,
        description="Full HD with generous bitrate",
    ),
    QualityPreset.BALANCED: QualityPresetDefinition(
        preset_name=QualityPreset.BALANCED,
        resolution=Resolution.FULL_HD,
        codec=VideoCodec.H264,
        bitrate=Bitrate.MEDIUM,
        frame_rate=30,
        description="Full HD, moderate file size (default)",
    ),
    QualityPreset.WEB: QualityPresetDefinition(
        preset_name=QualityPreset.WEB,
        resolution=Resolution.HD,
        codec=VideoCodec.H264,
        bitrate=Bitrate.MEDIUM_LOW,
        frame_rate=30,
        description="720p for streaming and web embedding",
    ),
    QualityPreset.LOW_BANDWIDTH: QualityPresetDefinition(
        preset_name=QualityPreset.LOW_BANDWIDTH,
        resolution=Resolution.FWVGA,
        codec=VideoCodec.H264,
        bitrate=Bitrate.LOW,
        frame_rate=24,
        description="Small files for slow links",
    ),
}

DEFAULT_PRESET = QualityPreset.BALANCED


def get_preset_definition(preset: QualityPreset) -> Optional[QualityPresetDefinition]:
    """Definition for a preset, or None for CUSTOM."""
    return QUALITY_PRESETS.get(preset)


def get_all_preset_names() -> List[str]:
    """Display labels in menu order, CUSTOM last."""
    return [preset.label for preset in QUALITY_PRESETS] + [QualityPreset.CUSTOM.label]
