#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Thread-aware exception hierarchy for the weather signage video pipeline

Every failure the video assembly subsystem can report is represented here.
Errors carry a technical message for the log, a user-facing message for the
status display, a severity and a recoverable flag so the outer
fetch/render/assemble cycle can decide whether to retry on its next pass.
"""

from PySide6.QtCore import QThread
from typing import Dict, Any, Optional
from datetime import datetime
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels for categorization and UI display"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class SignageError(Exception):
    """
    Base exception for all signage application errors

    Captures the thread the error was raised on so that errors produced in
    worker threads can be routed safely to the main thread.
    """

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 user_message: Optional[str] = None,
                 recoverable: bool = False,
                 severity: ErrorSeverity = ErrorSeverity.ERROR,
                 context: Optional[Dict[str, Any]] = None):
        """
        Initialize signage error

        Args:
            message: Technical error message for logging
            error_code: Unique error code for categorization
            user_message: User-friendly message for UI display
            recoverable: Whether the operation can be retried later
            severity: Error severity level
            context: Additional context information
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.user_message = user_message or self._generate_user_message()
        self.recoverable = recoverable
        self.severity = severity
        self.timestamp = datetime.utcnow()

        current_thread = QThread.currentThread()
        self.thread_name = current_thread.objectName() or current_thread.__class__.__name__
        self.is_main_thread = current_thread.isMainThread()

    def _generate_user_message(self) -> str:
        """Generate user-friendly message from technical message"""
        return "An error occurred while generating the video. Please check the logs for details."

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and serialization"""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'user_message': self.user_message,
            'severity': self.severity.value,
            'recoverable': self.recoverable,
            'timestamp': self.timestamp.isoformat(),
            'thread_name': self.thread_name,
            'is_main_thread': self.is_main_thread,
            'context': self.context
        }


class ImageSetTooSmallError(SignageError):
    """Fewer than two still images were available for assembly"""

    def __init__(self, image_count: int, image_dir: Optional[str] = None, **kwargs):
        context = kwargs.pop('context', {})
        context['image_count'] = image_count
        if image_dir:
            context['image_dir'] = image_dir
        kwargs['context'] = context

        message = f"Need at least 2 images to create a video, found {image_count}"
        super().__init__(message, severity=ErrorSeverity.WARNING, **kwargs)

    def _generate_user_message(self) -> str:
        return "Not enough images to build a video. At least two images are required."


class BinaryUnavailableError(SignageError):
    """No download source could supply the FFmpeg binaries"""

    def __init__(self, message: str, attempted_urls: Optional[list] = None, **kwargs):
        context = kwargs.pop('context', {})
        if attempted_urls:
            context['attempted_urls'] = list(attempted_urls)
        kwargs['context'] = context
        kwargs.setdefault('recoverable', True)
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "FFmpeg could not be downloaded. Check your internet connection and try again later."


class ArchiveMissingExecutableError(SignageError):
    """A downloaded archive did not contain the expected executable"""

    def __init__(self, executable: str, archive_url: Optional[str] = None, **kwargs):
        context = kwargs.pop('context', {})
        context['executable'] = executable
        if archive_url:
            context['archive_url'] = archive_url
        kwargs['context'] = context

        message = f"Could not find {executable} in the extracted archive"
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "The downloaded FFmpeg package did not contain the expected program."


class ProcessStartError(SignageError):
    """The encoder could not be launched directly or through the shell"""

    def __init__(self, message: str, binary_path: Optional[str] = None, **kwargs):
        context = kwargs.pop('context', {})
        if binary_path:
            context['binary_path'] = binary_path
        kwargs['context'] = context
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "FFmpeg could not be started. Check the FFmpeg source in settings."


class EncodeError(SignageError):
    """The encoder exited without producing the expected output file"""

    def __init__(self, message: str, output_path: Optional[str] = None,
                 return_code: Optional[int] = None, **kwargs):
        context = kwargs.pop('context', {})
        if output_path:
            context['output_path'] = output_path
        if return_code is not None:
            context['return_code'] = return_code
        kwargs['context'] = context
        kwargs.setdefault('recoverable', True)

        self.return_code = return_code
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "Video encoding failed. The next update cycle will try again."


class HardwareEncodingUnsupportedError(SignageError):
    """Advisory raised when no hardware encoder is available"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('severity', ErrorSeverity.WARNING)
        kwargs.setdefault('recoverable', True)
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return ("FFmpeg does not appear to support hardware encoding on this system. "
                "Enabling hardware encoding may cause FFmpeg to fail.")


class ConfigurationError(SignageError):
    """Invalid or inconsistent video configuration"""

    def __init__(self, message: str, setting: Optional[str] = None, **kwargs):
        context = kwargs.pop('context', {})
        if setting:
            context['setting'] = setting
        kwargs['context'] = context
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        setting = self.context.get('setting')
        if setting:
            return f"The video setting '{setting}' is not valid."
        return "The video settings are not valid."


class ThreadError(SignageError):
    """Worker thread failures, including cancellation"""

    def __init__(self, message: str, thread_name: Optional[str] = None, **kwargs):
        context = kwargs.pop('context', {})
        if thread_name:
            context['worker_thread'] = thread_name
        kwargs['context'] = context
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "A background operation failed. Please try again."
