#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for assembly and install workers and the assembly controller

Workers are driven through run() on the test thread so that their signals
are delivered synchronously.
"""

import pytest
from pathlib import Path
import sys
import os
from unittest.mock import MagicMock

from PySide6.QtCore import QCoreApplication

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import EncodeError, ThreadError
from core.result_types import Result
from video_assembly.controllers import VideoAssemblyController
from video_assembly.core import FFmpegBinaryManager
from video_assembly.models import EncodeConfig, ProcessingResult, ProgressEvent
from video_assembly.workers import BinaryInstallWorker, VideoAssemblyWorker


@pytest.fixture(scope="module", autouse=True)
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class TestVideoAssemblyWorker:
    """Test suite for VideoAssemblyWorker"""

    def setup_method(self):
        self.results = []
        self.events = []
        self.progress = []
        self.worker = VideoAssemblyWorker(
            images=Path("/frames"),
            config=EncodeConfig(),
            binary_manager=MagicMock(spec=FFmpegBinaryManager)
        )
        self.worker.service = MagicMock()
        self.worker.result_ready.connect(self.results.append)
        self.worker.progress_event.connect(self.events.append)
        self.worker.progress_update.connect(lambda pct, msg: self.progress.append((pct, msg)))

    def _processing(self, success=True):
        processing = ProcessingResult(image_dir=Path("/frames"), output_file=Path("/frames/slideshow.mp4"))
        if success:
            processing.mark_complete()
        else:
            processing.mark_failed("FFmpeg exited with code 1", error_code=1, error_kind="EncodeError")
        return processing

    def test_success_carries_processing_result(self):
        processing = self._processing()
        processing.add_warning("Hardware encoding unavailable, using software encoder")
        self.worker.service.assemble.return_value = processing

        self.worker.run()

        assert len(self.results) == 1
        result = self.results[0]
        assert result.success
        assert result.value is processing
        assert result.warnings == processing.warnings
        assert result.metadata['output_file'] == str(processing.output_file)
        assert result.metadata['operation_name'] == "Video assembly"

    def test_failure_carries_typed_error(self):
        processing = self._processing(success=False)
        error = EncodeError("FFmpeg exited with code 1", return_code=1)
        self.worker.service.assemble.return_value = processing
        self.worker.service.last_error = error

        self.worker.run()

        result = self.results[0]
        assert not result.success
        assert result.error is error
        assert result.value is processing

    def test_progress_events_forwarded(self):
        processing = self._processing()

        def assemble(images, config, output_file=None, progress_callback=None):
            progress_callback(ProgressEvent(phase="video", percentage=42.0, message="[MAIN] 42%"))
            return processing

        self.worker.service.assemble.side_effect = assemble
        self.worker.run()

        assert [e.percentage for e in self.events] == [42.0]
        assert self.progress[0][0] == 0
        assert (42, "[MAIN] 42%") in self.progress

    def test_cancel_before_start(self):
        self.worker.cancel()
        self.worker.run()

        result = self.results[0]
        assert not result.success
        assert isinstance(result.error, ThreadError)
        self.worker.service.assemble.assert_not_called()
        self.worker.service.cancel.assert_called_once()

    def test_unexpected_exception_becomes_thread_error(self):
        self.worker.service.assemble.side_effect = RuntimeError("disk vanished")

        self.worker.run()

        result = self.results[0]
        assert isinstance(result.error, ThreadError)
        assert "disk vanished" in result.error.message


class TestBinaryInstallWorker:
    """Test suite for BinaryInstallWorker"""

    def setup_method(self):
        self.results = []
        self.progress = []
        self.manager = MagicMock(spec=FFmpegBinaryManager)
        self.worker = BinaryInstallWorker(self.manager)
        self.worker.result_ready.connect(self.results.append)
        self.worker.progress_update.connect(lambda pct, msg: self.progress.append((pct, msg)))

    def test_install_progress_and_result(self):
        def install(callback):
            callback(40.0, "Downloading FFmpeg... 50%")
            return Result.success(Path("/cache"))

        self.manager.ensure_installed.side_effect = install

        self.worker.run()

        assert self.results[0].success
        assert self.results[0].value == Path("/cache")
        assert (40, "Downloading FFmpeg... 50%") in self.progress

    def test_cancelled_install_never_downloads(self):
        self.worker.cancel()
        self.worker.run()

        assert isinstance(self.results[0].error, ThreadError)
        self.manager.ensure_installed.assert_not_called()


class TestVideoAssemblyController:
    """Test suite for controller progress mapping and result routing"""

    def setup_method(self):
        self.overall = []
        self.errors = []
        self.completed = []
        self.controller = VideoAssemblyController(
            binary_manager=MagicMock(spec=FFmpegBinaryManager),
            hardware_probe=MagicMock()
        )
        self.controller.overall_progress.connect(lambda pct, msg: self.overall.append((pct, msg)))
        self.controller.assembly_error.connect(self.errors.append)
        self.controller.assembly_complete.connect(self.completed.append)

    def test_video_progress_defaults_to_last_fifth(self):
        self.controller._on_progress_event(ProgressEvent(phase="video", percentage=50.0, message="half"))
        assert self.overall == [(pytest.approx(90.0), "half")]

    def test_status_message_moves_video_phase(self):
        self.controller.observe_status("Creating video...", 60.0)
        self.controller._on_progress_event(ProgressEvent(phase="video", percentage=50.0, message="half"))
        assert self.overall[0][0] == pytest.approx(80.0)

    def test_install_events_hold_at_phase_start(self):
        self.controller.begin_video_phase(70.0)
        self.controller._on_progress_event(ProgressEvent(phase="ffmpeg", percentage=50.0, message="dl"))
        assert self.overall == [(pytest.approx(70.0), "dl")]

    def test_failure_reports_user_message(self):
        error = EncodeError("FFmpeg exited with code 1", return_code=1)
        result = Result.error(error)

        self.controller._on_assembly_result(result)

        assert self.errors == [error.user_message]
        assert self.completed == [result]

    def test_success_reports_only_completion(self):
        result = Result.success(ProcessingResult())
        self.controller._on_assembly_result(result)

        assert self.errors == []
        assert self.completed == [result]

    def test_not_running_initially(self):
        assert not self.controller.is_running()
        assert not self.controller.is_installing()
