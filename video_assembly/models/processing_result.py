"""
Assembly result data model.

Tracks the outcome, timing and encoder statistics of one slideshow
assembly run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List
from datetime import datetime
from enum import Enum


class ProcessingStatus(Enum):
    """Assembly run status."""
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    IN_PROGRESS = "in_progress"


@dataclass
class ProcessingResult:
    """
    Result of a video assembly run.

    ``is_success`` is only True when the encoder produced the output file.
    """

    # === Run Info ===
    image_dir: Optional[Path] = None
    output_file: Optional[Path] = None
    image_count: int = 0

    # === Status ===
    status: ProcessingStatus = ProcessingStatus.IN_PROGRESS

    # === Timing ===
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    # === Output ===
    expected_video_seconds: Optional[float] = None
    output_size_bytes: Optional[int] = None

    # === Performance Metrics ===
    encoding_speed: Optional[float] = None  # multiple of realtime
    average_fps: Optional[float] = None
    frames_processed: Optional[int] = None

    # === Error Handling ===
    error_message: Optional[str] = None
    error_code: Optional[int] = None
    error_kind: Optional[str] = None  # exception class name of the failure

    warnings: List[str] = field(default_factory=list)

    # === FFmpeg ===
    ffmpeg_path: Optional[str] = None
    ffmpeg_command: Optional[str] = None
    ffmpeg_output: Optional[str] = None

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if self.image_dir is not None and not isinstance(self.image_dir, Path):
            self.image_dir = Path(self.image_dir)
        if self.output_file is not None and not isinstance(self.output_file, Path):
            self.output_file = Path(self.output_file)

    def mark_complete(self, status: ProcessingStatus = ProcessingStatus.SUCCESS):
        self.status = status
        self.end_time = datetime.now()
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def mark_failed(self, error_message: str, error_code: Optional[int] = None,
                    error_kind: Optional[str] = None):
        """
        Mark the run as failed.

        Args:
            error_message: Human-readable error description
            error_code: Encoder exit code, when one is known
            error_kind: Name of the error class describing the failure
        """
        self.error_message = error_message
        self.error_code = error_code
        self.error_kind = error_kind
        self.mark_complete(ProcessingStatus.FAILED)

    def mark_cancelled(self):
        self.mark_complete(ProcessingStatus.CANCELLED)

    def add_warning(self, warning: str):
        self.warnings.append(warning)

    @property
    def is_success(self) -> bool:
        return self.status == ProcessingStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        return self.status == ProcessingStatus.FAILED

    @property
    def duration_formatted(self) -> str:
        """Run duration as HH:MM:SS."""
        if not self.duration_seconds:
            return "00:00:00"

        hours = int(self.duration_seconds // 3600)
        minutes = int((self.duration_seconds % 3600) // 60)
        seconds = int(self.duration_seconds % 60)

        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    def to_dict(self) -> dict:
        """Convert result to dictionary for serialization."""
        return {
            'image_dir': str(self.image_dir) if self.image_dir else None,
            'output_file': str(self.output_file) if self.output_file else None,
            'image_count': self.image_count,
            'status': self.status.value,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration_seconds': self.duration_seconds,
            'expected_video_seconds': self.expected_video_seconds,
            'output_size_bytes': self.output_size_bytes,
            'encoding_speed': self.encoding_speed,
            'average_fps': self.average_fps,
            'frames_processed': self.frames_processed,
            'error_message': self.error_message,
            'error_code': self.error_code,
            'error_kind': self.error_kind,
            'warnings': self.warnings,
            'ffmpeg_path': self.ffmpeg_path,
            'ffmpeg_command': self.ffmpeg_command,
        }
