#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Centralized settings management for video assembly
"""

from dataclasses import replace
from typing import Any, Callable, List, Optional, Tuple
from pathlib import Path
from PySide6.QtCore import QSettings

from core.exceptions import ConfigurationError, HardwareEncodingUnsupportedError
from core.logger import logger
from core.result_types import Result
from video_assembly.models import (
    BinarySource,
    BinarySourceConfig,
    EncodeConfig,
    QualityPreset,
    Resolution,
)
from video_assembly.core import DEFAULT_PRESET
from video_assembly.services.hardware_probe import enforce_hardware_policy


def _to_bool(value: Any, default: bool = False) -> bool:
    """QSettings hands back 'true'/'false' strings from INI and registry stores"""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    return bool(value)


class SettingsManager:
    """Centralized settings management"""

    # Canonical keys for all settings
    KEYS = {
        # Slide timing
        'STATIC_DURATION': 'video.static_duration',
        'FADE_DURATION': 'video.fade_duration',
        'ENABLE_FADE': 'video.enable_fade',
        'ENFORCE_TOTAL_DURATION': 'video.enforce_total_duration',
        'TOTAL_DURATION': 'video.total_duration_seconds',

        # Encoding
        'WIDTH': 'video.width',
        'HEIGHT': 'video.height',
        'FRAME_RATE': 'video.frame_rate',
        'CODEC': 'video.codec',
        'BITRATE': 'video.bitrate',
        'CONTAINER': 'video.container',
        'QUALITY_PRESET': 'video.quality_preset',
        'USE_CRF': 'video.use_crf',
        'CRF': 'video.crf',
        'ENCODER_PRESET': 'video.encoder_preset',
        'MAX_BITRATE': 'video.max_bitrate',
        'BUFFER_SIZE': 'video.buffer_size',
        'HARDWARE_ACCELERATION': 'video.hardware_acceleration',
        'AUDIO_FILE': 'video.audio_file',
        'LEGACY_VIDEO_MODE': 'video.mode',

        # FFmpeg binaries
        'FFMPEG_SOURCE': 'ffmpeg.source',
        'FFMPEG_CUSTOM_PATH': 'ffmpeg.custom_path',

        # Debug settings
        'DEBUG_LOGGING': 'debug.enable_logging',

        # Path settings
        'LAST_IMAGE_DIR': 'paths.last_image_directory',
        'LAST_OUTPUT_DIR': 'paths.last_output_directory'
    }

    def __init__(self, settings: Optional[QSettings] = None):
        """Initialize settings manager

        Args:
            settings: Backing store; defaults to the per-user native store
        """
        self._settings = settings if settings is not None else QSettings('WeatherSignage', 'Settings')

        self._migrate_legacy_mode()

        # Set defaults on initialization
        self._set_defaults()

    def _migrate_legacy_mode(self):
        """Replace the older Mode4K/Mode1080p/ModeVertical value with a canvas size"""
        legacy_key = self.KEYS['LEGACY_VIDEO_MODE']
        if not self._settings.contains(legacy_key):
            return

        mode = str(self._settings.value(legacy_key))
        if not self._settings.contains(self.KEYS['WIDTH']):
            resolution = Resolution.from_legacy_mode(mode)
            self._settings.setValue(self.KEYS['WIDTH'], resolution.width)
            self._settings.setValue(self.KEYS['HEIGHT'], resolution.height)
            logger.info(f"Migrated video mode {mode} to {resolution.width}x{resolution.height}")
        self._settings.remove(legacy_key)

    def _set_defaults(self):
        """Set default values for missing keys"""
        defaults = {
            self.KEYS['STATIC_DURATION']: 8.0,
            self.KEYS['FADE_DURATION']: 0.5,
            self.KEYS['ENABLE_FADE']: False,
            self.KEYS['ENFORCE_TOTAL_DURATION']: False,
            self.KEYS['TOTAL_DURATION']: 60.0,
            self.KEYS['WIDTH']: 1920,
            self.KEYS['HEIGHT']: 1080,
            self.KEYS['FRAME_RATE']: 30,
            self.KEYS['CODEC']: 'libx264',
            self.KEYS['BITRATE']: '4M',
            self.KEYS['CONTAINER']: 'mp4',
            self.KEYS['QUALITY_PRESET']: DEFAULT_PRESET.label,
            self.KEYS['USE_CRF']: True,
            self.KEYS['CRF']: 23,
            self.KEYS['ENCODER_PRESET']: 'medium',
            self.KEYS['HARDWARE_ACCELERATION']: False,
            self.KEYS['FFMPEG_SOURCE']: BinarySource.BUNDLED.value,
            self.KEYS['DEBUG_LOGGING']: False
        }

        for key, default in defaults.items():
            if not self._settings.contains(key):
                self._settings.setValue(key, default)

    def get(self, key: str, default: Any = None) -> Any:
        """Get setting value

        Args:
            key: Either a KEYS constant or direct key string
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        canonical_key = self.KEYS.get(key, key)
        return self._settings.value(canonical_key, default)

    def set(self, key: str, value: Any):
        """Set setting value

        Args:
            key: Either a KEYS constant or direct key string
            value: Value to set; None removes the key
        """
        canonical_key = self.KEYS.get(key, key)
        if value is None:
            self._settings.remove(canonical_key)
        else:
            self._settings.setValue(canonical_key, value)

    def sync(self):
        """Force settings to disk"""
        self._settings.sync()

    def contains(self, key: str) -> bool:
        canonical_key = self.KEYS.get(key, key)
        return self._settings.contains(canonical_key)

    # === Encode configuration ===

    @property
    def quality_preset(self) -> QualityPreset:
        """Quality preset tag shown next to the encode settings"""
        return QualityPreset.from_label(str(self.get('QUALITY_PRESET', DEFAULT_PRESET.label)))

    def load_encode_config(self) -> EncodeConfig:
        """Build an EncodeConfig from the stored values

        Raises:
            ConfigurationError: If a stored value is malformed or out of range
        """
        try:
            audio_file = self.get('AUDIO_FILE', None)
            return EncodeConfig(
                width=int(self.get('WIDTH', 1920)),
                height=int(self.get('HEIGHT', 1080)),
                frame_rate=int(self.get('FRAME_RATE', 30)),
                codec=str(self.get('CODEC', 'libx264')),
                bitrate=str(self.get('BITRATE', '4M')),
                use_crf=_to_bool(self.get('USE_CRF'), True),
                crf=int(self.get('CRF', 23)),
                encoder_preset=str(self.get('ENCODER_PRESET', 'medium')),
                max_bitrate=self.get('MAX_BITRATE', None) or None,
                buffer_size=self.get('BUFFER_SIZE', None) or None,
                container=str(self.get('CONTAINER', 'mp4')),
                hardware_acceleration=_to_bool(self.get('HARDWARE_ACCELERATION'), False),
                static_duration=float(self.get('STATIC_DURATION', 8.0)),
                fade_duration=float(self.get('FADE_DURATION', 0.5)),
                enable_fade=_to_bool(self.get('ENABLE_FADE'), False),
                enforce_total_duration=_to_bool(self.get('ENFORCE_TOTAL_DURATION'), False),
                total_duration_seconds=float(self.get('TOTAL_DURATION', 60.0)),
                audio_file=Path(audio_file) if audio_file else None
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Stored video settings are invalid: {e}") from e

    def save_encode_config(
        self,
        config: EncodeConfig,
        probe_result: Optional[Result[List[str]]] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        preset: Optional[QualityPreset] = None
    ) -> Tuple[EncodeConfig, Optional[HardwareEncodingUnsupportedError]]:
        """Persist an encode configuration

        With a hardware probe result, the hardware advisory policy runs first:
        hardware encoding stays on only if an encoder was found or the user
        confirmed the advisory.

        Returns:
            (config actually saved, advisory or None)
        """
        advisory = None
        if probe_result is not None:
            config, advisory = enforce_hardware_policy(config, probe_result, confirm)

        self.set('WIDTH', config.width)
        self.set('HEIGHT', config.height)
        self.set('FRAME_RATE', config.frame_rate)
        self.set('CODEC', config.codec)
        self.set('BITRATE', config.bitrate)
        self.set('USE_CRF', config.use_crf)
        self.set('CRF', config.crf)
        self.set('ENCODER_PRESET', config.encoder_preset)
        self.set('MAX_BITRATE', config.max_bitrate)
        self.set('BUFFER_SIZE', config.buffer_size)
        self.set('CONTAINER', config.container)
        self.set('HARDWARE_ACCELERATION', config.hardware_acceleration)
        self.set('STATIC_DURATION', config.static_duration)
        self.set('FADE_DURATION', config.fade_duration)
        self.set('ENABLE_FADE', config.enable_fade)
        self.set('ENFORCE_TOTAL_DURATION', config.enforce_total_duration)
        self.set('TOTAL_DURATION', config.total_duration_seconds)
        self.set('AUDIO_FILE', str(config.audio_file) if config.audio_file else None)

        if preset is not None:
            self.set('QUALITY_PRESET', preset.label)

        self.sync()
        logger.debug(f"Saved video settings: {config.to_dict()}")
        return config, advisory

    # === FFmpeg source ===

    def load_binary_source_config(self, cache_dir: Optional[Path] = None) -> BinarySourceConfig:
        """Binary source configuration from the stored source and custom path"""
        source = BinarySource.from_setting(self.get('FFMPEG_SOURCE', BinarySource.BUNDLED.value))
        custom = self.get('FFMPEG_CUSTOM_PATH', None)

        config = BinarySourceConfig(source=source, custom_path=Path(custom) if custom else None)
        if cache_dir is not None:
            config = replace(config, cache_dir=Path(cache_dir))
        return config

    def save_binary_source(self, source: BinarySource, custom_path: Optional[Path] = None):
        self.set('FFMPEG_SOURCE', source.value)
        self.set('FFMPEG_CUSTOM_PATH', str(custom_path) if custom_path else None)
        self.sync()
        logger.info(f"FFmpeg source saved: {source.value}")

    # === Misc ===

    @property
    def debug_logging(self) -> bool:
        """Whether debug logging is enabled"""
        return _to_bool(self.get('DEBUG_LOGGING'), False)

    @property
    def last_image_directory(self) -> Optional[Path]:
        path_str = self.get('LAST_IMAGE_DIR', None)
        return Path(path_str) if path_str else None

    def set_last_image_directory(self, path: Path):
        self.set('LAST_IMAGE_DIR', str(path))

    @property
    def last_output_directory(self) -> Optional[Path]:
        path_str = self.get('LAST_OUTPUT_DIR', None)
        return Path(path_str) if path_str else None

    def set_last_output_directory(self, path: Path):
        self.set('LAST_OUTPUT_DIR', str(path))

    def reset_all_settings(self):
        """Clear all stored settings and restore defaults"""
        self._settings.clear()
        self._settings.sync()
        self._set_defaults()
        logger.info("All settings reset to defaults")


_settings_manager: Optional[SettingsManager] = None


def get_settings() -> SettingsManager:
    """Shared settings manager backed by the per-user store"""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager
