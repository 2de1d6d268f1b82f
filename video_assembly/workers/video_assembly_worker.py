"""
Video assembly worker.

Background thread worker that runs one slideshow assembly with progress
reporting via Qt signals.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from PySide6.QtCore import Signal

from core.result_types import Result
from core.workers import BaseWorkerThread
from ..core import FFmpegBinaryManager
from ..models.encode_config import EncodeConfig
from ..models.processing_result import ProcessingStatus
from ..models.progress_event import ProgressEvent
from ..services.hardware_probe import HardwareEncoderProbe
from ..services.video_assembly_service import VideoAssemblyService


class VideoAssemblyWorker(BaseWorkerThread):
    """
    Background worker for video assembly.

    Runs VideoAssemblyService in a separate thread. The Result emitted on
    ``result_ready`` carries the ProcessingResult as its value.

    Signals:
        progress_event: (event: ProgressEvent) phase-local progress
    """

    progress_event = Signal(object)

    def __init__(
        self,
        images: Union[str, Path, Iterable[Path]],
        config: EncodeConfig,
        binary_manager: FFmpegBinaryManager,
        output_file: Optional[Path] = None,
        hardware_probe: Optional[HardwareEncoderProbe] = None,
        parent=None
    ):
        super().__init__(parent)
        self.images = images
        self.config = config
        self.output_file = output_file
        self.service = VideoAssemblyService(binary_manager, hardware_probe)
        self.operation_name = "Video assembly"

    def execute(self) -> Result:
        self.check_cancellation()

        processing = self.service.assemble(
            self.images,
            self.config,
            output_file=self.output_file,
            progress_callback=self._on_progress
        )

        if processing.status == ProcessingStatus.CANCELLED:
            self.check_cancellation()

        if processing.is_success:
            return Result.success(
                processing,
                warnings=list(processing.warnings),
                output_file=str(processing.output_file)
            )

        result = Result.error(self.service.last_error, list(processing.warnings))
        result.value = processing
        return result

    def _on_progress(self, event: ProgressEvent):
        if self.cancelled:
            return
        self.progress_event.emit(event)
        self.emit_progress(int(event.percentage), event.message)

    def cancel(self):
        """Cancel before the encoder starts; a running encode finishes."""
        super().cancel()
        self.service.cancel()
