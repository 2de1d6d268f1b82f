#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for encode configuration models and quality presets
"""

import pytest
from pathlib import Path
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from video_assembly.models import (
    EncodeConfig,
    QualityPreset,
    Resolution,
    VideoCodec,
    Bitrate,
)
from video_assembly.core import (
    QUALITY_PRESETS,
    get_preset_definition,
    get_all_preset_names,
    get_hardware_variant,
    is_codec_container_compatible,
    supports_crf,
)


class TestEncodeConfig:
    """Test suite for EncodeConfig validation and derived timing"""

    def test_defaults(self):
        config = EncodeConfig()
        assert (config.width, config.height, config.frame_rate) == (1920, 1080, 30)
        assert config.codec == "libx264"
        assert config.bitrate == "4M"
        assert config.use_crf and config.crf == 23
        assert config.encoder_preset == "medium"
        assert config.static_duration == 8.0
        assert config.fade_duration == 0.5
        assert config.enable_fade is False
        assert config.container == "mp4"

    def test_config_is_immutable(self):
        config = EncodeConfig()
        with pytest.raises(Exception):
            config.width = 1280

        changed = config.with_changes(width=1280, height=720)
        assert changed.width == 1280
        assert config.width == 1920

    @pytest.mark.parametrize("changes", [
        {'width': 0},
        {'frame_rate': 0},
        {'crf': 52},
        {'static_duration': 0},
        {'fade_duration': -1},
        {'container': 'flv'},
        {'enforce_total_duration': True, 'total_duration_seconds': 0},
    ])
    def test_invalid_values_rejected(self, changes):
        with pytest.raises(ValueError):
            EncodeConfig(**changes)

    def test_timing_without_fades(self):
        config = EncodeConfig(static_duration=2.0, fade_duration=0.5, enable_fade=False)
        assert config.clip_duration(3) == pytest.approx(2.5)
        assert config.expected_total_seconds(3) == pytest.approx(7.5)
        assert config.expected_total_frames(3) == 225

    def test_timing_with_fades(self):
        config = EncodeConfig(static_duration=2.0, fade_duration=0.5, enable_fade=True)
        assert config.expected_total_seconds(3) == pytest.approx(6.5)

    def test_total_duration_splits_evenly(self):
        config = EncodeConfig(enforce_total_duration=True, total_duration_seconds=60.0)
        assert config.effective_static_duration(12) == pytest.approx(5.0)

        config = config.with_changes(enforce_total_duration=False)
        assert config.effective_static_duration(12) == pytest.approx(8.0)

    def test_dict_round_trip_keeps_audio_path(self):
        config = EncodeConfig(audio_file=Path("music/loop.mp3"), container="mkv")
        restored = EncodeConfig.from_dict(dict(config.to_dict(), unknown_key=1))
        assert restored == config
        assert isinstance(restored.audio_file, Path)


class TestLabelMappings:
    """Test suite for enum label and value lookups"""

    def test_unknown_preset_label_is_custom(self):
        assert QualityPreset.from_label("Balanced") == QualityPreset.BALANCED
        assert QualityPreset.from_label("Something Else") == QualityPreset.CUSTOM

    def test_resolution_lookups(self):
        assert Resolution.from_size(1920, 1080) == Resolution.FULL_HD
        assert Resolution.from_size(123, 456) is None
        assert Resolution.from_label(Resolution.HD.label) == Resolution.HD

    def test_codec_and_bitrate_lookups(self):
        assert VideoCodec.from_encoder("libx265") == VideoCodec.H265
        assert VideoCodec.from_label(VideoCodec.VP9.label) == VideoCodec.VP9
        assert Bitrate.from_rate("4M") == Bitrate.MEDIUM
        with pytest.raises(ValueError):
            Bitrate.from_rate("3.3M")


class TestPresetDefinitions:
    """Test suite for the quality preset table"""

    def test_every_named_preset_is_defined(self):
        for preset in QualityPreset:
            if preset == QualityPreset.CUSTOM:
                assert get_preset_definition(preset) is None
            else:
                assert preset in QUALITY_PRESETS

    def test_balanced_preset_values(self):
        definition = get_preset_definition(QualityPreset.BALANCED)
        assert definition.resolution == Resolution.FULL_HD
        assert definition.codec == VideoCodec.H264
        assert definition.bitrate == Bitrate.MEDIUM
        assert definition.frame_rate == 30

    def test_preset_names_are_labels(self):
        names = get_all_preset_names()
        assert "Balanced" in names
        assert names[-1] == "Custom"


class TestCodecDefinitions:
    """Test suite for codec capability lookups"""

    def test_hardware_variant_follows_preference_order(self):
        assert get_hardware_variant("libx264", {"h264_qsv", "h264_nvenc"}) == "h264_nvenc"
        assert get_hardware_variant("libx265", {"h264_nvenc"}) is None
        assert get_hardware_variant("libvpx-vp9", {"h264_nvenc"}) is None

    def test_crf_support(self):
        assert supports_crf("libx264")
        assert not supports_crf("mpeg4")

    def test_container_compatibility(self):
        assert is_codec_container_compatible("libvpx-vp9", "webm")
        assert not is_codec_container_compatible("libx264", "webm")
        assert is_codec_container_compatible("some_future_codec", "mp4")
