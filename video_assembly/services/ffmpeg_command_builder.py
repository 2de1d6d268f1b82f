"""
FFmpeg command builder service.

Constructs the FFmpeg argument list for a slideshow from an image list, an
EncodeConfig and a FilterGraph. Commands are returned as an array suitable
for subprocess execution and as a formatted string for display and logs.
"""

import shlex
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from core.logger import logger
from ..core import (
    FASTSTART_CONTAINERS,
    NVENC_PRESETS,
    get_hardware_variant,
    supports_crf,
    supports_speed_preset,
)
from ..models.encode_config import EncodeConfig
from .filter_graph import FilterGraph, format_seconds


class FFmpegCommandBuilder:
    """
    Service for building FFmpeg command line arguments.

    Layout of a command:
    ffmpeg -y <image inputs> [-i audio] -filter_complex <graph> -map [outv]
    [-map N:a -shortest] <encoding options> <output>
    """

    def select_video_encoder(self, config: EncodeConfig,
                             available_encoders: Iterable[str] = ()) -> Tuple[str, Optional[str]]:
        """
        Choose the encoder actually passed to -c:v.

        With hardware acceleration on, the first vendor variant of the
        configured codec that the probe reported is used.

        Returns:
            (encoder, warning). warning is set when hardware encoding was
            requested but no variant is available.
        """
        if not config.hardware_acceleration:
            return config.codec, None

        variant = get_hardware_variant(config.codec, set(available_encoders))
        if variant:
            return variant, None

        warning = (f"Hardware encoding requested but no hardware encoder for {config.codec} "
                   f"is available, using software encoding")
        return config.codec, warning

    def build_command(
        self,
        ffmpeg_path: str,
        images: Sequence[Path],
        config: EncodeConfig,
        output_file: Path,
        filter_graph: FilterGraph,
        video_encoder: Optional[str] = None
    ) -> Tuple[List[str], str]:
        """
        Build the FFmpeg command for one slideshow.

        Args:
            ffmpeg_path: Executable to run
            images: Ordered still images, input i is images[i]
            config: Encode configuration for this run
            output_file: Destination video file
            filter_graph: Graph built for the same images and config
            video_encoder: Encoder for -c:v, defaults to config.codec

        Returns:
            Tuple of (command_array, command_string)
        """
        encoder = video_encoder or config.codec
        clip_duration = format_seconds(config.clip_duration(len(images)))

        cmd = [str(ffmpeg_path), '-y']

        # === Inputs ===

        for image in images:
            cmd.extend([
                '-framerate', str(config.frame_rate),
                '-loop', '1',
                '-t', clip_duration,
                '-i', str(image),
            ])

        audio_input, audio_map = self._build_audio_args(config, len(images))
        cmd.extend(audio_input)

        # === Filter Graph & Mapping ===

        cmd.extend(['-filter_complex', filter_graph.render()])
        cmd.extend(['-map', filter_graph.map_target])
        cmd.extend(audio_map)

        # === Video Encoding ===

        cmd.extend(self._build_encoding_args(config, encoder))
        cmd.extend(['-pix_fmt', 'yuv420p'])

        if config.container in FASTSTART_CONTAINERS:
            cmd.extend(['-movflags', '+faststart'])

        cmd.append(str(output_file))

        return cmd, self._format_command_string(cmd)

    def _build_audio_args(self, config: EncodeConfig, audio_index: int) -> Tuple[List[str], List[str]]:
        """
        Audio input and mapping arguments.

        Both are empty unless the configured audio file exists on disk.
        """
        if not config.audio_file:
            return [], []

        if not config.audio_file.is_file():
            logger.warning(f"Audio file not found, building video without audio: {config.audio_file}")
            return [], []

        return (
            ['-i', str(config.audio_file)],
            ['-map', f'{audio_index}:a', '-shortest'],
        )

    def _build_encoding_args(self, config: EncodeConfig, encoder: str) -> List[str]:
        args = ['-c:v', encoder]

        if not (config.use_crf and supports_crf(encoder)):
            args.extend(['-b:v', config.bitrate])
            return args

        crf = str(config.crf)
        if 'nvenc' in encoder:
            args.extend(['-rc', 'vbr', '-cq', crf, '-b:v', '0'])
            args.extend(['-preset', NVENC_PRESETS.get(config.encoder_preset, 'p4')])
        elif 'qsv' in encoder:
            args.extend(['-global_quality', crf, '-preset', config.encoder_preset])
        elif 'amf' in encoder:
            args.extend(['-rc', 'cqp', '-qp_i', crf, '-qp_p', crf])
        else:
            args.extend(['-crf', crf])
            if supports_speed_preset(encoder):
                args.extend(['-preset', config.encoder_preset])
            else:
                # constant quality for VP9 / AV1 needs the bitrate target cleared
                args.extend(['-b:v', '0'])

        if config.max_bitrate:
            args.extend(['-maxrate', config.max_bitrate])
        if config.buffer_size:
            args.extend(['-bufsize', config.buffer_size])

        return args

    def _format_command_string(self, cmd: List[str]) -> str:
        """Format command array as readable string with line breaks."""
        quoted_parts = [shlex.quote(part) for part in cmd]

        lines = []
        current_line = quoted_parts[0]

        for part in quoted_parts[1:]:
            if part.startswith('-') and len(current_line) > 60:
                lines.append(current_line + ' \\')
                current_line = '  ' + part
            else:
                current_line += ' ' + part

        lines.append(current_line)
        return '\n'.join(lines)

    def validate_command(self, cmd: List[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate FFmpeg command structure.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not cmd:
            return False, "Empty command"

        if '-i' not in cmd:
            return False, "No input file specified (-i flag missing)"

        if '-filter_complex' not in cmd or '-map' not in cmd:
            return False, "Filter graph or output mapping missing"

        no_value_flags = {'-y', '-n', '-shortest', '-hide_banner', '-nostdin'}

        def _is_negative_number(s: str) -> bool:
            return len(s) > 1 and s[0] == '-' and s[1:].isdigit()

        i = 1
        while i < len(cmd) - 1:
            tok = cmd[i]

            if tok.startswith('-') and not _is_negative_number(tok):
                if tok in no_value_flags:
                    i += 1
                    continue

                nxt = cmd[i + 1]
                if nxt.startswith('-') and not _is_negative_number(nxt):
                    return False, f"Orphaned flag: {tok} has no value"

                i += 2
                continue

            i += 1

        if cmd[-1].startswith('-'):
            return False, "No output file specified"

        return True, None
