#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for persisted video and FFmpeg settings
"""

import pytest
from pathlib import Path
import sys
import os

from PySide6.QtCore import QSettings

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import ConfigurationError, HardwareEncodingUnsupportedError
from core.result_types import Result
from core.settings_manager import SettingsManager
from video_assembly.models import BinarySource, EncodeConfig, QualityPreset


class TestSettingsManager:
    """Test suite for SettingsManager"""

    @pytest.fixture(autouse=True)
    def settings_file(self, tmp_path):
        self.path = str(tmp_path / "settings.ini")
        self.manager = self._open()

    def _open(self):
        return SettingsManager(QSettings(self.path, QSettings.IniFormat))

    def test_defaults_build_default_config(self):
        config = self.manager.load_encode_config()

        assert config == EncodeConfig()
        assert self.manager.quality_preset == QualityPreset.BALANCED
        assert not self.manager.debug_logging

    @pytest.mark.parametrize("mode,size", [
        ("Mode4K", (3840, 2160)),
        ("Mode1080p", (1920, 1080)),
        ("ModeVertical", (1920, 1080)),
    ])
    def test_legacy_video_mode_migrated(self, tmp_path, mode, size):
        path = str(tmp_path / "legacy.ini")
        stored = QSettings(path, QSettings.IniFormat)
        stored.setValue('video.mode', mode)
        stored.sync()

        manager = SettingsManager(QSettings(path, QSettings.IniFormat))
        config = manager.load_encode_config()

        assert (config.width, config.height) == size
        assert manager.get('LEGACY_VIDEO_MODE') is None

    def test_legacy_mode_does_not_override_canvas(self, tmp_path):
        path = str(tmp_path / "legacy.ini")
        stored = QSettings(path, QSettings.IniFormat)
        stored.setValue('video.mode', "Mode4K")
        stored.setValue('video.width', 1280)
        stored.setValue('video.height', 720)
        stored.sync()

        config = SettingsManager(QSettings(path, QSettings.IniFormat)).load_encode_config()

        assert (config.width, config.height) == (1280, 720)

    def test_encode_config_survives_reopen(self, tmp_path):
        audio = tmp_path / "loop.mp3"
        config = EncodeConfig(width=1280, height=720, frame_rate=25, codec="libx265",
                              bitrate="2M", crf=28, max_bitrate="3M", buffer_size="6M",
                              container="mkv", static_duration=5.0, fade_duration=1.0,
                              enable_fade=True, audio_file=audio)

        self.manager.save_encode_config(config, preset=QualityPreset.CUSTOM)
        reopened = self._open()

        assert reopened.load_encode_config() == config
        assert reopened.quality_preset == QualityPreset.CUSTOM

    def test_clearing_optional_values(self):
        self.manager.save_encode_config(EncodeConfig(max_bitrate="6M", buffer_size="12M"))
        self.manager.save_encode_config(EncodeConfig())

        config = self._open().load_encode_config()
        assert config.max_bitrate is None
        assert config.buffer_size is None

    def test_malformed_value_is_configuration_error(self):
        self.manager.set('WIDTH', 'wide')

        with pytest.raises(ConfigurationError):
            self.manager.load_encode_config()

    def test_out_of_range_value_is_configuration_error(self):
        self.manager.set('CRF', 80)

        with pytest.raises(ConfigurationError):
            self.manager.load_encode_config()

    def test_hardware_flag_cleared_without_encoder(self):
        config = EncodeConfig(hardware_acceleration=True)

        saved, advisory = self.manager.save_encode_config(config, probe_result=Result.success([]))

        assert not saved.hardware_acceleration
        assert isinstance(advisory, HardwareEncodingUnsupportedError)
        assert not self._open().load_encode_config().hardware_acceleration

    def test_hardware_flag_kept_after_confirmation(self):
        config = EncodeConfig(hardware_acceleration=True)
        failed = Result.error(HardwareEncodingUnsupportedError("Could not query FFmpeg encoders"))

        saved, advisory = self.manager.save_encode_config(config, probe_result=failed,
                                                          confirm=lambda message: True)

        assert saved.hardware_acceleration
        assert advisory is not None
        assert self._open().load_encode_config().hardware_acceleration

    def test_hardware_flag_saved_as_is_without_probe(self):
        saved, advisory = self.manager.save_encode_config(EncodeConfig(hardware_acceleration=True))

        assert saved.hardware_acceleration
        assert advisory is None

    def test_binary_source_round_trip(self, tmp_path):
        custom = tmp_path / "ffmpeg" / "bin"
        self.manager.save_binary_source(BinarySource.CUSTOM, custom)

        config = self._open().load_binary_source_config(cache_dir=tmp_path / "cache")

        assert config.source == BinarySource.CUSTOM
        assert config.custom_path == custom
        assert config.cache_dir == tmp_path / "cache"

    def test_binary_source_defaults_to_bundled(self):
        config = self.manager.load_binary_source_config()

        assert config.source == BinarySource.BUNDLED
        assert config.custom_path is None

    def test_switching_source_drops_custom_path(self, tmp_path):
        self.manager.save_binary_source(BinarySource.CUSTOM, tmp_path)
        self.manager.save_binary_source(BinarySource.SYSTEM_PATH)

        config = self.manager.load_binary_source_config()
        assert config.source == BinarySource.SYSTEM_PATH
        assert config.custom_path is None

    def test_last_directories(self, tmp_path):
        self.manager.set_last_image_directory(tmp_path / "images")
        self.manager.set_last_output_directory(tmp_path / "videos")

        assert self.manager.last_image_directory == tmp_path / "images"
        assert self.manager.last_output_directory == tmp_path / "videos"

    def test_reset_restores_defaults(self):
        self.manager.set('WIDTH', 640)
        self.manager.set_last_image_directory(Path("/tmp/images"))

        self.manager.reset_all_settings()

        assert int(self.manager.get('WIDTH')) == 1920
        assert self.manager.last_image_directory is None
