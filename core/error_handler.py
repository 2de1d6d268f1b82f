#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Thread-safe centralized error handling

Errors raised inside assembly and install workers are logged immediately on
the worker thread and then routed to the main thread through a queued Qt
signal so that status displays can react to them.
"""

from PySide6.QtCore import QObject, Signal, QThread, Qt
from typing import Callable, List, Dict, Any, Optional
from datetime import datetime

from .exceptions import SignageError, ErrorSeverity
from .logger import logger


class ErrorHandler(QObject):
    """
    Centralized error routing

    Logs every error by severity, keeps per-severity counts and a bounded list
    of recent errors, and notifies registered callbacks on the main thread.
    """

    # error, context
    error_occurred = Signal(SignageError, dict)

    def __init__(self, parent=None):
        super().__init__(parent)

        self._ui_callbacks: List[Callable[[SignageError, dict], None]] = []
        self._error_counts = {severity: 0 for severity in ErrorSeverity}
        self._recent_errors: List[Dict[str, Any]] = []
        self._max_recent_errors = 100

        self.error_occurred.connect(
            self._handle_error_main_thread,
            Qt.QueuedConnection
        )

    def register_ui_callback(self, callback: Callable[[SignageError, dict], None]):
        """
        Register a callback invoked on the main thread for every error

        Args:
            callback: Function to call with (error, context)
        """
        self._ui_callbacks.append(callback)

    def unregister_ui_callback(self, callback: Callable[[SignageError, dict], None]):
        if callback in self._ui_callbacks:
            self._ui_callbacks.remove(callback)

    def handle_error(self, error: SignageError, context: Optional[dict] = None):
        """
        Handle error from any thread

        Args:
            error: The error that occurred
            context: Additional context information
        """
        context = dict(context or {})
        current_thread = QThread.currentThread()
        context.update({
            'handler_thread': current_thread.objectName() or current_thread.__class__.__name__,
            'timestamp': datetime.utcnow().isoformat()
        })

        self._log_error(error, context)
        self._error_counts[error.severity] += 1
        self._store_recent_error(error, context)

        if not current_thread.isMainThread():
            self.error_occurred.emit(error, context)
        else:
            self._handle_error_main_thread(error, context)

    def _handle_error_main_thread(self, error: SignageError, context: dict):
        for callback in list(self._ui_callbacks):
            try:
                callback(error, context)
            except Exception as callback_error:
                logger.error(f"Error callback failed: {callback_error}", exc_info=True)

    def _log_error(self, error: SignageError, context: dict):
        details = ', '.join(
            f"{key}={value}" for key, value in {**error.context, **context}.items()
            if key not in ('timestamp', 'handler_thread')
        )
        log_msg = f"[{error.error_code}] {error.message}"
        if details:
            log_msg += f" | Context: {details}"

        if error.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_msg)
        elif error.severity == ErrorSeverity.ERROR:
            logger.error(log_msg)
        elif error.severity == ErrorSeverity.WARNING:
            logger.warning(log_msg)
        else:
            logger.info(log_msg)

    def _store_recent_error(self, error: SignageError, context: dict):
        record = error.to_dict()
        record['handler_context'] = context.copy()
        self._recent_errors.append(record)

        if len(self._recent_errors) > self._max_recent_errors:
            self._recent_errors = self._recent_errors[-self._max_recent_errors:]

    def get_error_statistics(self) -> Dict[str, int]:
        """Error counts keyed by severity value"""
        return {severity.value: count for severity, count in self._error_counts.items()}

    def get_recent_errors(self, count: Optional[int] = None) -> List[Dict[str, Any]]:
        if count is None:
            return self._recent_errors.copy()
        return self._recent_errors[-count:]

    def clear_statistics(self):
        self._error_counts = {severity: 0 for severity in ErrorSeverity}
        self._recent_errors.clear()


_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """
    Get the global error handler instance

    Creates the instance if it doesn't exist. Should first be called from
    the main thread during application initialization.
    """
    global _global_error_handler

    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()

    return _global_error_handler


def handle_error(error: SignageError, context: Optional[dict] = None):
    """Handle an error using the global error handler"""
    get_error_handler().handle_error(error, context)
