"""
Encode configuration resolver.

Turns the human-facing quality choices (preset, resolution, codec, bitrate,
frame rate) into an EncodeConfig and keeps track of whether the current
values still match a named preset or have been hand-edited ("Custom").
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from core.logger import logger
from ..core.preset_definitions import get_preset_definition
from ..models.encode_config import (
    EncodeConfig,
    QualityPreset,
    QualityPresetState,
    Resolution,
    VideoCodec,
    Bitrate,
    ENCODER_SPEED_PRESETS,
)


PRESET_FIELDS = ('resolution', 'codec', 'bitrate', 'frame_rate')


class EncodeConfigResolver:
    """
    Resolves quality presets and tracks the Custom state.

    Applying a preset overwrites the four preset fields and sets the tag to
    that preset. Any direct edit of one of those fields switches the tag to
    CUSTOM. ``custom_transitions`` counts how often that switch happened.
    """

    def __init__(self, base_config: Optional[EncodeConfig] = None,
                 preset: QualityPreset = QualityPreset.BALANCED):
        """
        Args:
            base_config: Configuration supplying the fields presets don't touch
            preset: Tag to report for the loaded values
        """
        self.custom_transitions = 0
        self._loading = False
        self.load(base_config or EncodeConfig(), preset)

    # === State ===

    @property
    def state(self) -> QualityPresetState:
        return self._state

    @property
    def config(self) -> EncodeConfig:
        return self._config

    @property
    def active_preset(self) -> QualityPreset:
        return self._state.preset

    def load(self, config: EncodeConfig, preset: QualityPreset = QualityPreset.CUSTOM) -> EncodeConfig:
        """
        Load stored values without treating them as an edit.

        Values that don't correspond to a known label keep the config as is
        and are reported with the closest defaults in ``state``; edits are
        always compared against the config itself.
        """
        self._loading = True
        try:
            resolution = Resolution.from_size(config.width, config.height) or Resolution.FULL_HD
            try:
                codec = VideoCodec.from_encoder(config.codec)
            except ValueError:
                codec = VideoCodec.H264
            try:
                bitrate = Bitrate.from_rate(config.bitrate)
            except ValueError:
                bitrate = Bitrate.MEDIUM

            self._config = config
            self._state = QualityPresetState(
                resolution=resolution,
                codec=codec,
                bitrate=bitrate,
                frame_rate=config.frame_rate,
                preset=preset,
            )
        finally:
            self._loading = False
        return self._config

    # === Presets ===

    def apply_preset(self, preset: Union[QualityPreset, str]) -> EncodeConfig:
        """
        Apply a named preset.

        Pure with respect to the preset fields: the same preset always yields
        the same resolution, codec, bitrate and frame rate. CUSTOM only
        changes the tag.

        Args:
            preset: QualityPreset member or its display label

        Returns:
            The resulting EncodeConfig
        """
        if isinstance(preset, str):
            preset = QualityPreset.from_label(preset)

        definition = get_preset_definition(preset)
        if definition is None:
            self._state = replace(self._state, preset=QualityPreset.CUSTOM)
            return self._config

        self._loading = True
        try:
            self._state = definition.to_state()
            self._config = self._config.with_changes(
                width=definition.resolution.width,
                height=definition.resolution.height,
                codec=definition.codec.encoder,
                bitrate=definition.bitrate.rate,
                frame_rate=definition.frame_rate,
            )
        finally:
            self._loading = False

        logger.debug(f"Applied quality preset: {preset.label}")
        return self._config

    def mark_custom_on_edit(self, field: str) -> bool:
        """
        Record a direct edit of a preset field.

        Returns:
            True if this edit switched the tag to CUSTOM
        """
        if field not in PRESET_FIELDS:
            raise ValueError(f"Not a preset field: {field}")

        if self._loading or self._state.preset == QualityPreset.CUSTOM:
            return False

        self._state = replace(self._state, preset=QualityPreset.CUSTOM)
        self.custom_transitions += 1
        logger.debug(f"Quality preset switched to Custom after editing {field}")
        return True

    # === Preset field edits ===

    def set_resolution(self, resolution: Union[Resolution, str]) -> EncodeConfig:
        if isinstance(resolution, str):
            resolution = Resolution.from_label(resolution)
        if (resolution.width, resolution.height) == (self._config.width, self._config.height):
            return self._config

        self._state = replace(self._state, resolution=resolution)
        self._config = self._config.with_changes(width=resolution.width, height=resolution.height)
        self.mark_custom_on_edit('resolution')
        return self._config

    def set_codec(self, codec: Union[VideoCodec, str]) -> EncodeConfig:
        if isinstance(codec, str):
            codec = VideoCodec.from_label(codec)
        if codec.encoder == self._config.codec:
            return self._config

        self._state = replace(self._state, codec=codec)
        self._config = self._config.with_changes(codec=codec.encoder)
        self.mark_custom_on_edit('codec')
        return self._config

    def set_bitrate(self, bitrate: Union[Bitrate, str]) -> EncodeConfig:
        if isinstance(bitrate, str):
            bitrate = Bitrate.from_label(bitrate)
        if bitrate.rate == self._config.bitrate:
            return self._config

        self._state = replace(self._state, bitrate=bitrate)
        self._config = self._config.with_changes(bitrate=bitrate.rate)
        self.mark_custom_on_edit('bitrate')
        return self._config

    def set_frame_rate(self, frame_rate: int) -> EncodeConfig:
        frame_rate = int(frame_rate)
        if frame_rate == self._config.frame_rate:
            return self._config

        self._config = self._config.with_changes(frame_rate=frame_rate)
        self._state = replace(self._state, frame_rate=frame_rate)
        self.mark_custom_on_edit('frame_rate')
        return self._config

    # === Other settings (never affect the preset tag) ===

    def set_crf_mode(self, enabled: bool, crf: Optional[int] = None,
                     encoder_preset: Optional[str] = None,
                     max_bitrate: Optional[str] = None,
                     buffer_size: Optional[str] = None) -> EncodeConfig:
        """
        Switch between CRF and bitrate encoding.

        Max bitrate and buffer size only apply in CRF mode and are cleared
        when CRF mode is turned off.
        """
        encoder_preset = encoder_preset or self._config.encoder_preset
        if encoder_preset not in ENCODER_SPEED_PRESETS:
            raise ValueError(f"Unknown encoder preset: {encoder_preset}")

        if enabled:
            self._config = self._config.with_changes(
                use_crf=True,
                crf=self._config.crf if crf is None else crf,
                encoder_preset=encoder_preset,
                max_bitrate=max_bitrate or None,
                buffer_size=buffer_size or None,
            )
        else:
            self._config = self._config.with_changes(
                use_crf=False,
                encoder_preset=encoder_preset,
                max_bitrate=None,
                buffer_size=None,
            )
        return self._config

    def set_timing(self, static_duration: Optional[float] = None,
                   fade_duration: Optional[float] = None,
                   enable_fade: Optional[bool] = None,
                   enforce_total_duration: Optional[bool] = None,
                   total_duration_seconds: Optional[float] = None) -> EncodeConfig:
        changes = {
            'static_duration': static_duration,
            'fade_duration': fade_duration,
            'enable_fade': enable_fade,
            'enforce_total_duration': enforce_total_duration,
            'total_duration_seconds': total_duration_seconds,
        }
        self._config = self._config.with_changes(
            **{key: value for key, value in changes.items() if value is not None}
        )
        return self._config

    def set_container(self, container: str) -> EncodeConfig:
        self._config = self._config.with_changes(container=container.lower().lstrip('.'))
        return self._config

    def set_audio_file(self, audio_file: Optional[Path]) -> EncodeConfig:
        self._config = self._config.with_changes(audio_file=Path(audio_file) if audio_file else None)
        return self._config

    def set_hardware_acceleration(self, enabled: bool) -> EncodeConfig:
        self._config = self._config.with_changes(hardware_acceleration=bool(enabled))
        return self._config
