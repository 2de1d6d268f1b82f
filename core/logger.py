#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Centralized logging system with Qt signal support

The video pipeline writes a line-oriented diagnostic log ([RUNNING], [MAIN],
[FF], [FFMPEG], [DONE], [FAIL] tagged lines). Every line reaches the daily
log file. The console and any connected live log view additionally drop a
message that repeats within half a second and report the number of dropped
copies before the next distinct message.
"""

import logging
import sys
import threading
import time
from pathlib import Path
from datetime import datetime
from typing import Callable, Optional, Tuple
from PySide6.QtCore import QObject, Signal


LOG_DIRECTORY = Path.home() / '.weather_signage' / 'logs'
REPEAT_WINDOW_SECONDS = 0.5


class RepeatSuppressor:
    """Detects a message repeated within ``window`` seconds of its last copy"""

    def __init__(self, window: float = REPEAT_WINDOW_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._last_message: Optional[str] = None
        self._last_time = 0.0
        self._repeat_count = 0

    def check(self, message: str) -> Tuple[bool, Optional[str]]:
        """
        Returns:
            (show, summary). ``show`` is False for a suppressed repeat.
            ``summary`` names how often the previous message was dropped and
            is set on the first distinct message after a run of repeats.
        """
        with self._lock:
            now = self._clock()
            if message == self._last_message and now - self._last_time < self.window:
                self._repeat_count += 1
                self._last_time = now
                return False, None

            summary = None
            if self._repeat_count > 0:
                summary = f"    (repeated {self._repeat_count}x)"

            self._last_message = message
            self._last_time = now
            self._repeat_count = 0
            return True, summary


def _not_repeated(record: logging.LogRecord) -> bool:
    return not getattr(record, 'repeated', False)


class AppLogger(QObject):
    """Centralized logging with Qt signal support for UI integration"""

    # level, message
    log_message = Signal(str, str)

    _instance = None

    def __new__(cls):
        """Singleton pattern ensures single logger instance"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        super().__init__()
        self._initialized = True

        self.logger = logging.getLogger('WeatherSignage')
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.repeats = RepeatSuppressor()
        self._debug_enabled = False
        self._file_handler: Optional[logging.FileHandler] = None

        self._setup_console_handler()
        self._setup_file_handler()

    def _setup_console_handler(self):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter('[%(asctime)s] %(message)s', datefmt='%H:%M:%S'))
        console_handler.addFilter(_not_repeated)
        self.logger.addHandler(console_handler)
        self._console_handler = console_handler

    def _setup_file_handler(self):
        """Daily log file holding every line, repeats included"""
        try:
            LOG_DIRECTORY.mkdir(parents=True, exist_ok=True)
            log_file = LOG_DIRECTORY / f"app_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            self.logger.warning(f"File logging disabled, cannot open log in {LOG_DIRECTORY}: {e}")
            return

        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(threadName)s - %(message)s'
        ))
        self.logger.addHandler(file_handler)
        self._file_handler = file_handler

    def enable_debug(self, enabled: bool = True):
        """Enable or disable debug logging to console

        Args:
            enabled: Whether to show debug messages in console
        """
        self._debug_enabled = enabled
        self._console_handler.setLevel(logging.DEBUG if enabled else logging.INFO)
        self.info(f"Debug logging {'enabled' if enabled else 'disabled'}")

    def _log(self, level: int, message: str, exc_info: bool = False):
        show, summary = self.repeats.check(message)
        if summary:
            self.logger.info(summary)
            self.log_message.emit('DEBUG', summary)

        self.logger.log(level, message, exc_info=exc_info, extra={'repeated': not show})

        if show and (level > logging.DEBUG or self._debug_enabled):
            self.log_message.emit(logging.getLevelName(level), message)

    def debug(self, message: str):
        self._log(logging.DEBUG, message)

    def info(self, message: str):
        self._log(logging.INFO, message)

    def warning(self, message: str):
        self._log(logging.WARNING, message)

    def error(self, message: str, exc_info: bool = False):
        """Log error message

        Args:
            message: Error message to log
            exc_info: Whether to include exception traceback
        """
        self._log(logging.ERROR, message, exc_info=exc_info)

    def critical(self, message: str, exc_info: bool = True):
        self._log(logging.CRITICAL, message, exc_info=exc_info)

    def get_log_file_path(self) -> Optional[Path]:
        """Path to the current log file, or None if file logging is off"""
        if self._file_handler is not None:
            return Path(self._file_handler.baseFilename)
        return None

    def cleanup_old_logs(self, days_to_keep: int = 30):
        """Delete log files older than the given number of days"""
        if not LOG_DIRECTORY.exists():
            return

        cutoff = time.time() - days_to_keep * 86400
        for log_file in LOG_DIRECTORY.glob('app_*.log'):
            try:
                if log_file.stat().st_mtime < cutoff:
                    log_file.unlink()
                    self.debug(f"Deleted old log file: {log_file.name}")
            except OSError as e:
                self.warning(f"Could not delete old log file {log_file.name}: {e}")


# Global logger instance
logger = AppLogger()
