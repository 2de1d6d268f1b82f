"""
FFmpeg binary source data model.

Describes where the FFmpeg executables come from (auto-downloaded cache,
system search path or a user supplied location) and the resolved result.
"""

import os
import platform
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple
from enum import Enum


PRIMARY_DOWNLOAD_URL = (
    "https://github.com/BtbN/FFmpeg-Builds/releases/download/latest/"
    "ffmpeg-master-latest-win64-gpl.zip"
)
FALLBACK_DOWNLOAD_URL = (
    "https://github.com/GyanD/codexffmpeg/releases/download/7.1/"
    "ffmpeg-7.1-essentials_build.zip"
)


class BinarySource(Enum):
    """Provenance of the FFmpeg executable."""
    BUNDLED = "bundled"
    SYSTEM_PATH = "system_path"
    CUSTOM = "custom"

    @classmethod
    def from_setting(cls, value: str) -> "BinarySource":
        """Parse a stored setting such as 'Bundled', 'SystemPath' or 'custom'."""
        normalized = str(value or "").replace("_", "").replace(" ", "").lower()
        for source in cls:
            if source.value.replace("_", "") == normalized:
                return source
        return cls.BUNDLED


def default_cache_dir() -> Path:
    """Per-user directory holding the downloaded executables."""
    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data:
        return Path(local_app_data) / "WeatherImageGenerator" / "FFmpeg"
    return Path.home() / ".weather_signage" / "ffmpeg"


def default_search_dirs() -> Tuple[Path, ...]:
    """Conventional FFmpeg install directories checked before PATH."""
    if platform.system() == "Windows":
        dirs = [
            Path(r"C:\ffmpeg\bin"),
            Path(r"C:\Program Files\ffmpeg\bin"),
            Path(r"C:\Program Files (x86)\ffmpeg\bin"),
        ]
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            dirs.append(Path(local_app_data) / "ffmpeg" / "bin")
        return tuple(dirs)
    return (
        Path("/usr/bin"),
        Path("/usr/local/bin"),
        Path("/opt/homebrew/bin"),
        Path("/snap/bin"),
    )


@dataclass(frozen=True)
class BinarySourceConfig:
    """
    Immutable binary source configuration.

    A settings change produces a new value (``with_source``) that is handed
    to the provisioner as a whole, so no reader ever sees a half-updated
    source/custom-path pair.
    """
    source: BinarySource = BinarySource.BUNDLED
    custom_path: Optional[Path] = None
    cache_dir: Path = field(default_factory=default_cache_dir)
    download_urls: Tuple[str, ...] = (PRIMARY_DOWNLOAD_URL, FALLBACK_DOWNLOAD_URL)
    search_dirs: Tuple[Path, ...] = field(default_factory=default_search_dirs)

    def __post_init__(self):
        if self.custom_path is not None and not isinstance(self.custom_path, Path):
            object.__setattr__(self, 'custom_path', Path(self.custom_path))
        if not isinstance(self.cache_dir, Path):
            object.__setattr__(self, 'cache_dir', Path(self.cache_dir))
        object.__setattr__(self, 'download_urls', tuple(self.download_urls))
        object.__setattr__(self, 'search_dirs', tuple(Path(p) for p in self.search_dirs))

    def with_source(self, source: BinarySource,
                    custom_path: Optional[Path] = None) -> "BinarySourceConfig":
        return replace(self, source=source, custom_path=custom_path)


@dataclass(frozen=True)
class EncoderBinary:
    """A resolved FFmpeg executable."""
    path: str
    provenance: BinarySource
    available: bool

    def __str__(self) -> str:
        state = "available" if self.available else "missing"
        return f"{self.path} ({self.provenance.value}, {state})"
