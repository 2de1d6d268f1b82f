#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for quality preset resolution and Custom tracking
"""

import pytest
from pathlib import Path
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from video_assembly.models import EncodeConfig, QualityPreset, Resolution, VideoCodec, Bitrate
from video_assembly.services import EncodeConfigResolver


class TestEncodeConfigResolver:
    """Test suite for EncodeConfigResolver"""

    def setup_method(self):
        """Set up test fixtures"""
        self.resolver = EncodeConfigResolver(EncodeConfig(static_duration=5.0))

    def test_applying_preset_is_idempotent(self):
        first = self.resolver.apply_preset(QualityPreset.WEB)
        second = self.resolver.apply_preset(QualityPreset.WEB)

        assert first == second
        assert (first.width, first.height) == (1280, 720)
        assert first.bitrate == "2M"
        assert self.resolver.active_preset == QualityPreset.WEB

    def test_preset_by_label(self):
        config = self.resolver.apply_preset("Ultra (Best Quality)")
        assert (config.width, config.height, config.frame_rate) == (3840, 2160, 60)
        assert config.bitrate == "16M"

    def test_preset_leaves_other_fields_alone(self):
        config = self.resolver.apply_preset(QualityPreset.HIGH)
        assert config.static_duration == 5.0

    def test_editing_preset_field_switches_to_custom_once(self):
        self.resolver.apply_preset(QualityPreset.BALANCED)

        self.resolver.set_resolution(Resolution.HD)
        self.resolver.set_bitrate(Bitrate.HIGH)
        self.resolver.set_codec(VideoCodec.H265)

        assert self.resolver.active_preset == QualityPreset.CUSTOM
        assert self.resolver.custom_transitions == 1
        assert self.resolver.config.codec == "libx265"

    def test_unchanged_value_is_not_an_edit(self):
        self.resolver.apply_preset(QualityPreset.BALANCED)
        self.resolver.set_frame_rate(30)

        assert self.resolver.active_preset == QualityPreset.BALANCED
        assert self.resolver.custom_transitions == 0

    def test_loading_does_not_mark_custom(self):
        self.resolver.load(EncodeConfig(width=1280, height=720), QualityPreset.WEB)

        assert self.resolver.active_preset == QualityPreset.WEB
        assert self.resolver.state.resolution == Resolution.HD
        assert self.resolver.custom_transitions == 0

    def test_custom_preset_only_changes_tag(self):
        before = self.resolver.apply_preset(QualityPreset.HIGH)
        after = self.resolver.apply_preset(QualityPreset.CUSTOM)

        assert after == before
        assert self.resolver.active_preset == QualityPreset.CUSTOM

    def test_mark_custom_rejects_other_fields(self):
        with pytest.raises(ValueError):
            self.resolver.mark_custom_on_edit('container')

    def test_crf_off_clears_rate_caps(self):
        self.resolver.set_crf_mode(True, crf=20, max_bitrate="6M", buffer_size="12M")
        assert self.resolver.config.max_bitrate == "6M"

        config = self.resolver.set_crf_mode(False)
        assert config.use_crf is False
        assert config.max_bitrate is None
        assert config.buffer_size is None
        assert config.crf == 20

    def test_unknown_speed_preset_rejected(self):
        with pytest.raises(ValueError):
            self.resolver.set_crf_mode(True, encoder_preset="warp")

    def test_non_preset_settings_keep_tag(self):
        self.resolver.apply_preset(QualityPreset.BALANCED)
        self.resolver.set_timing(static_duration=3.0, enable_fade=True)
        self.resolver.set_container(".MKV")
        self.resolver.set_hardware_acceleration(True)

        assert self.resolver.active_preset == QualityPreset.BALANCED
        assert self.resolver.config.container == "mkv"
        assert self.resolver.config.static_duration == 3.0

    def test_audio_file_set_and_cleared(self):
        self.resolver.apply_preset(QualityPreset.BALANCED)

        config = self.resolver.set_audio_file("/music/loop.mp3")
        assert config.audio_file == Path("/music/loop.mp3")
        assert self.resolver.active_preset == QualityPreset.BALANCED

        assert self.resolver.set_audio_file(None).audio_file is None

    def test_unlisted_values_edited_to_table_entries(self):
        resolver = EncodeConfigResolver(EncodeConfig(width=800, height=600, codec="libvpx-vp9",
                                                     bitrate="3M", container="webm"))

        config = resolver.set_resolution(Resolution.FULL_HD)
        assert (config.width, config.height) == (1920, 1080)
        assert resolver.active_preset == QualityPreset.CUSTOM

        assert resolver.set_codec(VideoCodec.H264).codec == "libx264"
        assert resolver.set_bitrate(Bitrate.MEDIUM).bitrate == "4M"
        assert resolver.custom_transitions == 1
