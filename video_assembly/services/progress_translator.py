"""
Progress translation service.

FFmpeg statistics lines (frame=, fps=, time=, speed=, bitrate=) are
condensed into tagged progress lines such as ``[MAIN] [#####-----] 42%``.
Those tagged lines are what the rest of the application parses: the
percentage is read back with ``try_parse`` and remapped into the encoding
phase of the overall update cycle with ``map_to_overall``.
"""

import re
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..models.progress_event import ProgressEvent


PROGRESS_TAG = "[MAIN]"
DETAIL_TAG = "[FF]"
ERROR_TAG = "[FFMPEG]"

BAR_WIDTH = 40
THROTTLE_SECONDS = 0.8

_TIME_PATTERN = re.compile(r'time=\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)')
_FRAME_PATTERN = re.compile(r'frame=\s*(\d+)')
_FPS_PATTERN = re.compile(r'fps=\s*(\d+(?:\.\d+)?)')
_SPEED_PATTERN = re.compile(r'speed=\s*(\d+(?:\.\d+)?)x')
_BITRATE_PATTERN = re.compile(r'bitrate=\s*([\d.]+\s*\w+/s)')
_ERROR_WORDS = ('error', 'failed', 'invalid')


@dataclass
class FFmpegStats:
    """Values parsed from one FFmpeg statistics line."""
    frame: Optional[int] = None
    fps: Optional[float] = None
    time_seconds: Optional[float] = None
    speed: Optional[float] = None
    bitrate: Optional[str] = None

    @property
    def has_position(self) -> bool:
        return self.time_seconds is not None or self.frame is not None


def build_bar(percent: float, width: int) -> str:
    filled = int(round(max(0.0, min(100.0, percent)) / 100.0 * width))
    return '#' * filled + '-' * (width - filled)


class ProgressTranslator:
    """
    Condenses FFmpeg output into tagged progress lines and parses them back.

    One instance follows one encoder run; ``expected_seconds`` and
    ``expected_frames`` describe the video that run should produce.
    """

    def __init__(self, expected_seconds: float = 0.0, expected_frames: int = 0,
                 throttle_seconds: float = THROTTLE_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.expected_seconds = expected_seconds
        self.expected_frames = expected_frames
        self.throttle_seconds = throttle_seconds
        self._clock = clock
        self._last_percent: Optional[int] = None
        self._last_emit: Optional[float] = None
        self.last_stats: Optional[FFmpegStats] = None

    # === Raw FFmpeg output ===

    @staticmethod
    def parse_stats(line: str) -> Optional[FFmpegStats]:
        """Parse an FFmpeg statistics line, or None for any other line."""
        if 'frame=' not in line and 'time=' not in line:
            return None

        stats = FFmpegStats()

        time_match = _TIME_PATTERN.search(line)
        if time_match:
            hours, minutes, seconds = time_match.groups()
            stats.time_seconds = int(hours) * 3600 + int(minutes) * 60 + float(seconds)

        frame_match = _FRAME_PATTERN.search(line)
        if frame_match:
            stats.frame = int(frame_match.group(1))

        fps_match = _FPS_PATTERN.search(line)
        if fps_match:
            stats.fps = float(fps_match.group(1))

        speed_match = _SPEED_PATTERN.search(line)
        if speed_match:
            stats.speed = float(speed_match.group(1))

        bitrate_match = _BITRATE_PATTERN.search(line)
        if bitrate_match:
            stats.bitrate = bitrate_match.group(1).replace(' ', '')

        return stats if stats.has_position else None

    def percent_for(self, stats: FFmpegStats) -> float:
        """Completion percentage from elapsed time, or frames when time is unknown."""
        if stats.time_seconds is not None and self.expected_seconds > 0:
            percent = stats.time_seconds / self.expected_seconds * 100.0
        elif stats.frame is not None and self.expected_frames > 0:
            percent = stats.frame / self.expected_frames * 100.0
        else:
            percent = 0.0
        return max(0.0, min(100.0, percent))

    def condense(self, line: str) -> List[str]:
        """
        Turn one raw FFmpeg output line into log lines.

        Statistics lines yield a ``[MAIN]`` progress line and an ``[FF]``
        detail line, at most once per throttle interval unless the whole
        percentage changed. Lines mentioning an error are tagged
        ``[FFMPEG]``. Everything else yields nothing.
        """
        stats = self.parse_stats(line)
        if stats is None:
            text = line.strip()
            if text and any(word in text.lower() for word in _ERROR_WORDS):
                return [f"{ERROR_TAG} {text}"]
            return []

        self.last_stats = stats
        percent = self.percent_for(stats)
        whole = int(percent)
        now = self._clock()

        changed = whole != self._last_percent
        stale = self._last_emit is None or now - self._last_emit >= self.throttle_seconds
        if not (changed or stale):
            return []

        self._last_percent = whole
        self._last_emit = now
        return [self.format_progress_line(percent), self._format_detail_line(percent, stats)]

    @staticmethod
    def format_progress_line(percent: float) -> str:
        return f"{PROGRESS_TAG} [{build_bar(percent, BAR_WIDTH)}] {int(percent)}%"

    def _format_detail_line(self, percent: float, stats: FFmpegStats) -> str:
        parts = [f"{DETAIL_TAG} [{build_bar(percent, BAR_WIDTH)}] {percent:5.1f}%"]
        if stats.frame is not None:
            if self.expected_frames > 0:
                parts.append(f"frame {stats.frame}/{self.expected_frames}")
            else:
                parts.append(f"frame {stats.frame}")
        if stats.time_seconds is not None:
            parts.append(f"time {stats.time_seconds:.1f}s")
        if stats.fps is not None:
            parts.append(f"{stats.fps:g} fps")
        if stats.speed is not None:
            parts.append(f"{stats.speed:g}x")
        if stats.bitrate:
            parts.append(stats.bitrate)
        return ' | '.join(parts)

    # === Tagged lines ===

    @staticmethod
    def try_parse(line: str) -> Tuple[bool, float]:
        """
        Read the percentage from a ``[MAIN]`` progress line.

        Returns:
            (is_progress, percent); percent is clamped to 0-100
        """
        if not line:
            return False, 0.0

        text = line.strip()
        if not text.startswith(PROGRESS_TAG):
            return False, 0.0

        percent_index = text.rfind('%')
        if percent_index <= 0:
            return False, 0.0

        token = text[:percent_index].rsplit(' ', 1)[-1]
        try:
            value = float(token)
        except ValueError:
            return False, 0.0

        return True, max(0.0, min(100.0, value))

    @staticmethod
    def map_to_overall(percent: float, phase_base: float, phase_range: float) -> float:
        """Linearly map a 0-100 phase percentage into [base, base + range]."""
        percent = max(0.0, min(100.0, percent))
        return phase_base + percent / 100.0 * phase_range


class PhaseProgressMapper:
    """
    Tracks the current phase of the outer update cycle.

    Encoding defaults to the 80-100 slice of overall progress. When a status
    message announcing the video phase arrives with its overall percentage,
    the slice becomes [that percentage, 100].
    """

    DEFAULT_BASE = 80.0
    DEFAULT_RANGE = 20.0

    def __init__(self, callback: Optional[Callable[[ProgressEvent], None]] = None,
                 phase: str = "video", base: float = DEFAULT_BASE,
                 span: float = DEFAULT_RANGE):
        self.callback = callback
        self.phase = phase
        self.base = base
        self.span = span

    def begin_phase(self, phase: str, base: float, span: Optional[float] = None):
        """Record where a phase starts; the span defaults to the rest of the bar."""
        base = max(0.0, min(100.0, base))
        self.phase = phase
        self.base = base
        self.span = (100.0 - base) if span is None else span

    def observe_status(self, message: str, overall_percent: float):
        """Start the video phase when a status message announces it."""
        if 'video' in message.lower():
            self.begin_phase('video', overall_percent)

    def report(self, percent: float, message: str = "") -> ProgressEvent:
        overall = ProgressTranslator.map_to_overall(percent, self.base, self.span)
        event = ProgressEvent(phase=self.phase, percentage=overall, message=message)
        if self.callback:
            self.callback(event)
        return event

    def handle_line(self, line: str) -> Optional[ProgressEvent]:
        """Report a tagged progress line, ignoring anything else."""
        is_progress, percent = ProgressTranslator.try_parse(line)
        if not is_progress:
            return None
        return self.report(percent, line.strip())
