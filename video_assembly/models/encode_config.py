"""
Encode configuration data model.

Defines the immutable value object handed to a single video assembly run,
plus the enumerations behind the resolution, codec and bitrate choices.
Every enumeration maps explicitly to and from its display label, so
display strings are never parsed back into encoder parameters.
"""

from dataclasses import dataclass, asdict, replace
from pathlib import Path
from typing import Optional
from enum import Enum


class QualityPreset(Enum):
    """Named quality bundles offered as a single choice."""
    ULTRA = "Ultra (Best Quality)"
    HIGH = "High Quality"
    BALANCED = "Balanced"
    WEB = "Web Optimized"
    LOW_BANDWIDTH = "Low Bandwidth"
    CUSTOM = "Custom"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> "QualityPreset":
        """Look up a preset by label, falling back to CUSTOM for unknown text."""
        for preset in cls:
            if preset.value == label:
                return preset
        return cls.CUSTOM


class Resolution(Enum):
    """Output canvas sizes (width, height, label)."""
    UHD_4K = (3840, 2160, "3840x2160 (4K/UHD)")
    QHD_2K = (2560, 1440, "2560x1440 (2K/QHD)")
    FULL_HD = (1920, 1080, "1920x1080 (Full HD)")
    HD_PLUS = (1600, 900, "1600x900 (HD+)")
    HD = (1280, 720, "1280x720 (HD)")
    QHD = (960, 540, "960x540 (qHD)")
    FWVGA = (854, 480, "854x480 (FWVGA)")
    VGA = (640, 480, "640x480 (VGA)")

    @property
    def width(self) -> int:
        return self.value[0]

    @property
    def height(self) -> int:
        return self.value[1]

    @property
    def label(self) -> str:
        return self.value[2]

    @classmethod
    def from_label(cls, label: str) -> "Resolution":
        for resolution in cls:
            if resolution.label == label:
                return resolution
        raise ValueError(f"Unknown resolution label: {label!r}")

    @classmethod
    def from_size(cls, width: int, height: int) -> Optional["Resolution"]:
        for resolution in cls:
            if resolution.width == width and resolution.height == height:
                return resolution
        return None

    @classmethod
    def from_legacy_mode(cls, mode: str) -> "Resolution":
        """Map the older Mode4K/Mode1080p/ModeVertical setting onto a canvas size."""
        if mode == "Mode4K":
            return cls.UHD_4K
        return cls.FULL_HD


class VideoCodec(Enum):
    """Software video encoders offered for selection."""
    H264 = ("libx264", "libx264 (H.264)")
    H265 = ("libx265", "libx265 (H.265/HEVC)")
    VP9 = ("libvpx-vp9", "libvpx-vp9 (VP9)")
    AV1 = ("libaom-av1", "libaom-av1 (AV1)")
    MPEG4 = ("mpeg4", "mpeg4 (MPEG-4)")
    MSMPEG4 = ("msmpeg4", "msmpeg4 (MS MPEG-4)")

    @property
    def encoder(self) -> str:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]

    @classmethod
    def from_label(cls, label: str) -> "VideoCodec":
        for codec in cls:
            if codec.label == label:
                return codec
        raise ValueError(f"Unknown codec label: {label!r}")

    @classmethod
    def from_encoder(cls, encoder: str) -> "VideoCodec":
        for codec in cls:
            if codec.encoder == encoder:
                return codec
        raise ValueError(f"Unknown encoder: {encoder!r}")


class Bitrate(Enum):
    """Target video bitrates (ffmpeg value, label)."""
    LOW = ("1M", "1M (Low)")
    MEDIUM_LOW = ("2M", "2M (Medium-Low)")
    MEDIUM = ("4M", "4M (Medium)")
    MEDIUM_HIGH = ("6M", "6M (Medium-High)")
    HIGH = ("8M", "8M (High)")
    VERY_HIGH = ("12M", "12M (Very High)")
    ULTRA = ("16M", "16M (Ultra)")

    @property
    def rate(self) -> str:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]

    @classmethod
    def from_label(cls, label: str) -> "Bitrate":
        for bitrate in cls:
            if bitrate.label == label:
                return bitrate
        raise ValueError(f"Unknown bitrate label: {label!r}")

    @classmethod
    def from_rate(cls, rate: str) -> "Bitrate":
        for bitrate in cls:
            if bitrate.rate == rate:
                return bitrate
        raise ValueError(f"Unknown bitrate: {rate!r}")


class Container(Enum):
    """Output container formats."""
    MP4 = "mp4"
    MKV = "mkv"
    MOV = "mov"
    AVI = "avi"
    WEBM = "webm"


ENCODER_SPEED_PRESETS = (
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow",
)


@dataclass(frozen=True)
class QualityPresetState:
    """
    The four preset-controlled fields plus the active preset tag.

    The tag is CUSTOM whenever the fields were edited after a preset was
    applied.
    """
    resolution: Resolution = Resolution.FULL_HD
    codec: VideoCodec = VideoCodec.H264
    bitrate: Bitrate = Bitrate.MEDIUM
    frame_rate: int = 30
    preset: QualityPreset = QualityPreset.BALANCED


@dataclass(frozen=True)
class EncodeConfig:
    """
    Configuration for a single video assembly run.

    Immutable once handed to the pipeline. Use ``with_changes`` (a thin
    wrapper over dataclasses.replace) to derive a modified copy.
    """

    # === Canvas & Timing ===
    width: int = 1920
    height: int = 1080
    frame_rate: int = 30

    # === Video Codec ===
    codec: str = "libx264"
    bitrate: str = "4M"

    # === CRF Mode ===
    use_crf: bool = True
    crf: int = 23
    encoder_preset: str = "medium"
    max_bitrate: Optional[str] = None  # only honored in CRF mode
    buffer_size: Optional[str] = None  # only honored in CRF mode

    # === Output ===
    container: str = "mp4"
    hardware_acceleration: bool = False

    # === Slides ===
    static_duration: float = 8.0
    fade_duration: float = 0.5
    enable_fade: bool = False
    enforce_total_duration: bool = False
    total_duration_seconds: float = 60.0

    # === Audio ===
    audio_file: Optional[Path] = None

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.audio_file is not None and not isinstance(self.audio_file, Path):
            object.__setattr__(self, 'audio_file', Path(self.audio_file))

        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Resolution must be positive, got {self.width}x{self.height}")

        if not (1 <= self.frame_rate <= 240):
            raise ValueError(f"Frame rate must be between 1 and 240, got {self.frame_rate}")

        if not (0 <= self.crf <= 51):
            raise ValueError(f"CRF must be between 0 and 51, got {self.crf}")

        if self.static_duration <= 0:
            raise ValueError(f"Static duration must be positive, got {self.static_duration}")

        if self.fade_duration < 0:
            raise ValueError(f"Fade duration cannot be negative, got {self.fade_duration}")

        if self.enforce_total_duration and self.total_duration_seconds <= 0:
            raise ValueError(
                f"Total duration must be positive, got {self.total_duration_seconds}"
            )

        if self.container not in {c.value for c in Container}:
            raise ValueError(f"Unsupported container: {self.container}")

        if not self.codec:
            raise ValueError("Codec must not be empty")

    def with_changes(self, **changes) -> "EncodeConfig":
        return replace(self, **changes)

    # === Derived Timing ===

    def effective_static_duration(self, image_count: int) -> float:
        """
        Seconds each image stays on screen.

        In total-duration mode the requested length is split evenly across
        the images; otherwise the configured static duration applies.
        """
        if self.enforce_total_duration and image_count > 0:
            return self.total_duration_seconds / image_count
        return self.static_duration

    def clip_duration(self, image_count: int) -> float:
        """Length of each looped input clip (static time plus the fade tail)."""
        return self.effective_static_duration(image_count) + self.fade_duration

    def expected_total_seconds(self, image_count: int) -> float:
        """Expected length of the finished video."""
        if image_count <= 0:
            return 0.0
        static = self.effective_static_duration(image_count)
        if self.enable_fade:
            # crossfades overlap, only the final clip keeps its fade tail
            return static * image_count + self.fade_duration
        return (static + self.fade_duration) * image_count

    def expected_total_frames(self, image_count: int) -> int:
        return int(round(self.expected_total_seconds(image_count) * self.frame_rate))

    @property
    def file_extension(self) -> str:
        return f".{self.container}"

    def to_dict(self) -> dict:
        """Convert settings to dictionary for serialization."""
        data = asdict(self)
        data['audio_file'] = str(self.audio_file) if self.audio_file else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "EncodeConfig":
        """Create settings from dictionary, ignoring unknown keys."""
        known = {f for f in cls.__dataclass_fields__}
        values = {k: v for k, v in data.items() if k in known}
        if values.get('audio_file'):
            values['audio_file'] = Path(values['audio_file'])
        return cls(**values)
