"""
Video assembly service.

Runs one slideshow assembly end to end: collects the images, makes sure an
FFmpeg executable is available, builds the filter graph and command, runs
the encoder and turns its output into progress events and a
ProcessingResult.
"""

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from core.exceptions import ConfigurationError, ImageSetTooSmallError, SignageError
from core.logger import logger
from core.result_types import Result
from ..core import FFmpegBinaryManager, is_codec_container_compatible
from ..models.binary_source import BinarySource, EncoderBinary
from ..models.encode_config import EncodeConfig
from ..models.processing_result import ProcessingResult
from ..models.progress_event import ProgressEvent
from .ffmpeg_command_builder import FFmpegCommandBuilder
from .filter_graph import FilterGraphBuilder
from .hardware_probe import HardwareEncoderProbe
from .process_orchestrator import ProcessOrchestrator
from .progress_translator import DETAIL_TAG, ERROR_TAG, ProgressTranslator


IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.webp')
DEFAULT_OUTPUT_STEM = "slideshow"
MIN_IMAGES = 2

INSTALL_PHASE = "ffmpeg"
VIDEO_PHASE = "video"

ProgressCallback = Callable[[ProgressEvent], None]


def find_images(image_dir: Union[str, Path]) -> List[Path]:
    """Still images directly inside ``image_dir``, ordered by file name."""
    directory = Path(image_dir)
    if not directory.is_dir():
        return []

    return sorted(
        (path for path in directory.iterdir()
         if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS),
        key=lambda path: path.name
    )


class VideoAssemblyService:
    """
    Service for assembling still images into a video.

    One instance handles one run at a time. ``cancel`` is honored between
    phases; an encoder that has already started runs to completion.
    """

    def __init__(self, binary_manager: FFmpegBinaryManager,
                 hardware_probe: Optional[HardwareEncoderProbe] = None,
                 orchestrator_factory: Callable[..., ProcessOrchestrator] = ProcessOrchestrator):
        self.binary_manager = binary_manager
        self.hardware_probe = hardware_probe or HardwareEncoderProbe()
        self.orchestrator_factory = orchestrator_factory
        self.graph_builder = FilterGraphBuilder()
        self.command_builder = FFmpegCommandBuilder()
        self._cancelled = False
        self.last_error: Optional[SignageError] = None

    def cancel(self):
        """Cancel the run before its next phase starts."""
        self._cancelled = True

    def assemble(
        self,
        images: Union[str, Path, Iterable[Path]],
        config: EncodeConfig,
        output_file: Optional[Path] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> ProcessingResult:
        """
        Assemble images into a video.

        Args:
            images: Directory of images, or the ordered image paths
            config: Encode configuration for this run
            output_file: Destination; defaults to slideshow.<container> in the
                image directory
            progress_callback: Optional callback receiving ProgressEvents

        Returns:
            ProcessingResult; ``is_success`` only when the video file exists
        """
        self.last_error = None
        image_dir, image_list = self._collect_images(images)
        result = ProcessingResult(image_dir=image_dir, image_count=len(image_list))

        try:
            if len(image_list) < MIN_IMAGES:
                return self._fail(result, ImageSetTooSmallError(
                    len(image_list), str(image_dir) if image_dir else None
                ))

            if not is_codec_container_compatible(config.codec, config.container):
                return self._fail(result, ConfigurationError(
                    f"Codec {config.codec} cannot be stored in .{config.container} files",
                    setting='container'
                ))

            output_dir = image_dir or image_list[0].parent
            output_file = Path(output_file).resolve() if output_file else \
                output_dir / f"{DEFAULT_OUTPUT_STEM}{config.file_extension}"
            if config.audio_file is not None:
                config = config.with_changes(audio_file=config.audio_file.resolve())
            result.output_file = output_file
            result.expected_video_seconds = config.expected_total_seconds(len(image_list))

            if self._cancelled:
                return self._cancel(result)

            binary_result = self._acquire_binary(progress_callback)
            if not binary_result.success:
                return self._fail(result, binary_result.error)
            binary = binary_result.value
            result.ffmpeg_path = binary.path
            for warning in binary_result.warnings:
                result.add_warning(warning)

            encoder = self._select_encoder(binary, config, result)

            graph = self.graph_builder.build(image_list, config)
            output_file.parent.mkdir(parents=True, exist_ok=True)

            cmd, cmd_string = self.command_builder.build_command(
                binary.path, image_list, config, output_file, graph, video_encoder=encoder
            )
            is_valid, problem = self.command_builder.validate_command(cmd)
            if not is_valid:
                return self._fail(result, ConfigurationError(f"Invalid FFmpeg command: {problem}"))
            result.ffmpeg_command = cmd_string

            if self._cancelled:
                return self._cancel(result)

            logger.info(
                f"Assembling {len(image_list)} images into {output_file.name} "
                f"({config.width}x{config.height} @ {config.frame_rate}fps, {encoder}, "
                f"~{result.expected_video_seconds:.1f}s)"
            )
            self._report(progress_callback, VIDEO_PHASE, 0.0, "Encoding video...")

            translator = ProgressTranslator(
                expected_seconds=result.expected_video_seconds,
                expected_frames=config.expected_total_frames(len(image_list))
            )
            orchestrator = self.orchestrator_factory(
                self._make_line_handler(translator, progress_callback)
            )
            run = orchestrator.execute(binary.path, cmd[1:], output_file.parent, output_file)

            result.ffmpeg_output = orchestrator.output_text
            for warning in run.warnings:
                result.add_warning(warning)

            if not run.success:
                return self._fail(result, run.error, log=False)

            self._extract_performance_metrics(orchestrator.stderr_lines, result)
            result.output_size_bytes = output_file.stat().st_size
            result.mark_complete()

            self._report(progress_callback, VIDEO_PHASE, 100.0, f"Video complete: {output_file.name}")
            return result

        except SignageError as e:
            return self._fail(result, e)
        except OSError as e:
            return self._fail(result, ConfigurationError(f"Cannot prepare output {output_file}: {e}"))

    # === Phases ===

    def _collect_images(self, images) -> Tuple[Optional[Path], List[Path]]:
        if isinstance(images, (str, Path)):
            image_dir = Path(images).resolve()
            return image_dir, find_images(image_dir)

        image_list = [Path(image).resolve() for image in images]
        image_dir = image_list[0].parent if image_list else None
        return image_dir, image_list

    def _acquire_binary(self, progress_callback: Optional[ProgressCallback]) -> Result[EncoderBinary]:
        """Resolve FFmpeg, downloading the bundled build when it is missing."""
        binary = self.binary_manager.resolve()
        if binary.available or binary.provenance != BinarySource.BUNDLED:
            return Result.success(binary)

        logger.info("Bundled FFmpeg not installed, downloading")
        install = self.binary_manager.ensure_installed(
            lambda pct, msg: self._report(progress_callback, INSTALL_PHASE, pct, msg)
        )
        if not install.success:
            return Result.error(install.error, install.warnings)

        return Result.success(self.binary_manager.resolve(), warnings=install.warnings)

    def _select_encoder(self, binary: EncoderBinary, config: EncodeConfig,
                        result: ProcessingResult) -> str:
        available: List[str] = []
        if config.hardware_acceleration:
            probe = self.hardware_probe.probe(binary.path)
            if probe.success:
                available = probe.value

        encoder, warning = self.command_builder.select_video_encoder(config, available)
        if warning:
            logger.warning(warning)
            result.add_warning(warning)
        return encoder

    def _make_line_handler(self, translator: ProgressTranslator,
                           progress_callback: Optional[ProgressCallback]):
        def handle_line(stream_name: str, line: str):
            for tagged in translator.condense(line):
                if tagged.startswith(DETAIL_TAG):
                    logger.debug(tagged)
                    continue
                if tagged.startswith(ERROR_TAG):
                    logger.warning(tagged)
                    continue

                logger.info(tagged)
                is_progress, percent = ProgressTranslator.try_parse(tagged)
                if is_progress:
                    self._report(progress_callback, VIDEO_PHASE, percent, tagged)

        return handle_line

    # === Outcome ===

    def _fail(self, result: ProcessingResult, error: SignageError, log: bool = True) -> ProcessingResult:
        self.last_error = error
        if log:
            logger.error(f"[FAIL] {error.message}")
        result.mark_failed(
            error.message,
            error_code=getattr(error, 'return_code', None),
            error_kind=type(error).__name__
        )
        return result

    def _cancel(self, result: ProcessingResult) -> ProcessingResult:
        logger.info("Video assembly cancelled")
        result.mark_cancelled()
        return result

    @staticmethod
    def _report(progress_callback: Optional[ProgressCallback], phase: str,
                percentage: float, message: str):
        if progress_callback:
            progress_callback(ProgressEvent(phase=phase, percentage=percentage, message=message))

    def _extract_performance_metrics(self, output_lines: List[str], result: ProcessingResult):
        """Extract performance metrics from FFmpeg output."""
        for line in reversed(output_lines[-20:]):
            stats = ProgressTranslator.parse_stats(line)
            if stats is None:
                continue

            if result.encoding_speed is None and stats.speed is not None:
                result.encoding_speed = stats.speed
            if result.frames_processed is None and stats.frame is not None:
                result.frames_processed = stats.frame
            if result.average_fps is None and stats.fps is not None:
                result.average_fps = stats.fps

            if result.encoding_speed and result.frames_processed and result.average_fps:
                break
