#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base worker thread class with unified error handling

Video assembly and FFmpeg installation run off the UI thread. Every worker
reports progress as (percentage, message) and finishes with exactly one
Result on result_ready.
"""

from PySide6.QtCore import QThread, Signal
from typing import Optional
from datetime import datetime

from ..result_types import Result
from ..exceptions import SignageError, ThreadError
from ..error_handler import handle_error


class BaseWorkerThread(QThread):
    """
    Base class for all worker threads with unified error handling

    Subclasses implement execute(). Cancellation is cooperative: workers call
    check_cancellation() between phases, never in the middle of an encode.
    """

    result_ready = Signal(Result)
    progress_update = Signal(int, str)

    def __init__(self, parent=None):
        super().__init__(parent)

        self.cancelled = False
        self.operation_start_time = None
        self.operation_name = self.__class__.__name__

        self.setObjectName(f"{self.__class__.__name__}_{id(self)}")

    def run(self):
        """
        Main thread execution method

        Runs execute() and emits its Result. Unexpected exceptions become a
        ThreadError result.
        """
        try:
            self.operation_start_time = datetime.utcnow()
            self.emit_progress(0, f"Starting {self.operation_name}...")

            result = self.execute()

            if result is None:
                result = Result.success(None)
            self.emit_result(result)

        except SignageError as e:
            self.handle_error(e)
        except Exception as e:
            self.handle_unexpected_error(e)

    def execute(self) -> Optional[Result]:
        """
        Execute the worker operation

        Returns:
            Result object indicating operation outcome, or None for default success
        """
        raise NotImplementedError("Subclasses must implement execute() method")

    def emit_progress(self, percentage: int, message: str):
        """
        Thread-safe progress emission

        Args:
            percentage: Progress percentage (clamped to 0-100)
            message: Status message describing current operation
        """
        percentage = max(0, min(100, int(percentage)))

        if not self.cancelled:
            self.progress_update.emit(percentage, message)

    def emit_result(self, result: Result):
        """Thread-safe result emission with timing metadata"""
        if self.operation_start_time:
            duration = (datetime.utcnow() - self.operation_start_time).total_seconds()
            result.add_metadata('duration_seconds', duration)
            result.add_metadata('operation_name', self.operation_name)

        result.add_metadata('worker_thread', self.objectName())

        self.result_ready.emit(result)

    def handle_error(self, error: SignageError, context: Optional[dict] = None):
        """
        Route an error through the central handler and emit it as the result

        Args:
            error: The error that occurred
            context: Additional context information
        """
        context = context or {}
        context.update({
            'worker_class': self.__class__.__name__,
            'operation_name': self.operation_name,
            'cancelled': self.cancelled
        })

        if self.operation_start_time:
            context['operation_duration'] = (datetime.utcnow() - self.operation_start_time).total_seconds()

        handle_error(error, context)
        self.emit_result(Result.error(error))

    def handle_unexpected_error(self, exception: Exception):
        """Wrap an exception that is not a SignageError in a ThreadError"""
        error = ThreadError(
            f"Unexpected error in {self.operation_name}: {exception}",
            thread_name=self.objectName(),
            user_message="An unexpected error occurred. Please try the operation again."
        )
        self.handle_error(error, {
            'exception_type': exception.__class__.__name__,
            'exception_str': str(exception)
        })

    def cancel(self):
        """
        Request cancellation of the operation

        Honored at the next check_cancellation() call. A running encoder
        process is allowed to finish.
        """
        self.cancelled = True

    def is_cancelled(self) -> bool:
        return self.cancelled

    def check_cancellation(self):
        """
        Raise if cancellation has been requested

        Raises:
            ThreadError: If cancellation has been requested
        """
        if self.cancelled:
            raise ThreadError(
                f"{self.operation_name} was cancelled",
                thread_name=self.objectName(),
                user_message="Operation was cancelled by user request.",
                recoverable=True
            )
