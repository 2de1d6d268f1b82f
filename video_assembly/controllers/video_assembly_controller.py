"""
Video assembly controller.

Orchestrates assembly and install workflows between the UI and the
workers. Manages worker lifecycle and maps encoder progress into the
overall progress of the update cycle.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from PySide6.QtCore import QObject, Signal

from core.logger import logger
from core.result_types import Result
from ..core import FFmpegBinaryManager
from ..models.encode_config import EncodeConfig
from ..models.progress_event import ProgressEvent
from ..services.hardware_probe import HardwareEncoderProbe
from ..services.progress_translator import PhaseProgressMapper
from ..services.video_assembly_service import VIDEO_PHASE
from ..workers.binary_install_worker import BinaryInstallWorker
from ..workers.video_assembly_worker import VideoAssemblyWorker


class VideoAssemblyController(QObject):
    """
    Controller for video assembly operations.

    Signals:
        overall_progress: (percentage: float, message: str) in update-cycle terms
        assembly_complete: (result: Result) value is the ProcessingResult
        assembly_error: (user_message: str)
        install_progress: (percentage: int, message: str)
        install_complete: (result: Result) value is the cache directory
    """

    overall_progress = Signal(float, str)
    assembly_complete = Signal(Result)
    assembly_error = Signal(str)
    install_progress = Signal(int, str)
    install_complete = Signal(Result)

    def __init__(self, binary_manager: Optional[FFmpegBinaryManager] = None,
                 hardware_probe: Optional[HardwareEncoderProbe] = None, parent=None):
        super().__init__(parent)
        self.binary_manager = binary_manager or FFmpegBinaryManager()
        self.hardware_probe = hardware_probe or HardwareEncoderProbe()
        self.progress_mapper = PhaseProgressMapper(self._emit_overall)
        self.worker: Optional[VideoAssemblyWorker] = None
        self.install_worker: Optional[BinaryInstallWorker] = None

    # === Progress phases ===

    def observe_status(self, message: str, overall_percent: float):
        """Feed a status message of the update cycle; the video phase starts there."""
        self.progress_mapper.observe_status(message, overall_percent)

    def begin_video_phase(self, overall_percent: float):
        self.progress_mapper.begin_phase(VIDEO_PHASE, overall_percent)

    # === Assembly ===

    def start_assembly(
        self,
        images: Union[str, Path, Iterable[Path]],
        config: EncodeConfig,
        output_file: Optional[Path] = None
    ):
        """
        Start video assembly in a background thread.

        Raises:
            RuntimeError: If an assembly is already running
        """
        if self.is_running():
            raise RuntimeError("Video assembly already in progress")

        self.worker = VideoAssemblyWorker(
            images=images,
            config=config,
            binary_manager=self.binary_manager,
            output_file=output_file,
            hardware_probe=self.hardware_probe,
            parent=self
        )

        self.worker.progress_event.connect(self._on_progress_event)
        self.worker.result_ready.connect(self._on_assembly_result)
        self.worker.finished.connect(self._on_worker_finished)

        self.worker.start()

    def cancel_assembly(self):
        """Request cancellation; an encoder that already started runs to completion."""
        if self.is_running():
            self.worker.cancel()

    def is_running(self) -> bool:
        return self.worker is not None and self.worker.isRunning()

    # === FFmpeg install ===

    def start_install(self):
        """
        Download the bundled FFmpeg build in a background thread.

        Raises:
            RuntimeError: If an install is already running
        """
        if self.is_installing():
            raise RuntimeError("FFmpeg install already in progress")

        self.install_worker = BinaryInstallWorker(self.binary_manager, parent=self)
        self.install_worker.progress_update.connect(self.install_progress.emit)
        self.install_worker.result_ready.connect(self.install_complete.emit)
        self.install_worker.finished.connect(self._on_install_finished)
        self.install_worker.start()

    def is_installing(self) -> bool:
        return self.install_worker is not None and self.install_worker.isRunning()

    # === Worker callbacks ===

    def _on_progress_event(self, event: ProgressEvent):
        if event.phase == VIDEO_PHASE:
            self.progress_mapper.report(event.percentage, event.message)
        else:
            self.overall_progress.emit(self.progress_mapper.base, event.message)

    def _emit_overall(self, event: ProgressEvent):
        self.overall_progress.emit(event.percentage, event.message)

    def _on_assembly_result(self, result: Result):
        if not result.success and result.error is not None:
            logger.warning(f"Video assembly failed: {result.error.message}")
            self.assembly_error.emit(result.error.user_message)
        self.assembly_complete.emit(result)

    def _on_worker_finished(self):
        if self.worker:
            self.worker.deleteLater()
            self.worker = None

    def _on_install_finished(self):
        if self.install_worker:
            self.install_worker.deleteLater()
            self.install_worker = None
