"""
FFmpeg install worker.

Downloads and installs the bundled FFmpeg build off the UI thread.
"""

from pathlib import Path

from core.result_types import Result
from core.workers import BaseWorkerThread
from ..core import FFmpegBinaryManager


class BinaryInstallWorker(BaseWorkerThread):
    """Runs FFmpegBinaryManager.ensure_installed in a background thread."""

    def __init__(self, binary_manager: FFmpegBinaryManager, parent=None):
        super().__init__(parent)
        self.binary_manager = binary_manager
        self.operation_name = "FFmpeg install"

    def execute(self) -> Result[Path]:
        self.check_cancellation()
        return self.binary_manager.ensure_installed(self.emit_progress)
