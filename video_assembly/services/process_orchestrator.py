"""
FFmpeg process orchestration service.

Runs the encoder as a child process, draining stdout and stderr on two
reader threads so neither pipe can fill up and stall FFmpeg. If the
executable cannot be launched directly, the same command is retried once
through the shell. A run succeeds when the expected output file exists
afterwards, whatever the exit code.
"""

import os
import shlex
import subprocess
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from core.exceptions import EncodeError, ProcessStartError
from core.logger import logger
from core.result_types import Result


# (stream name, line) for every non-empty output line
LineHandler = Callable[[str, str], None]


class OrchestratorState(Enum):
    """Lifecycle of one encoder run."""
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def render_command_line(command: Sequence[str]) -> str:
    """Quote an argument list as a single shell command line for this platform."""
    if os.name == 'nt':
        return subprocess.list2cmdline(list(command))
    return shlex.join(list(command))


class ProcessOrchestrator:
    """
    Spawns FFmpeg and waits for it to finish.

    Not reentrant: one instance runs one process at a time. Operational
    failures are returned as failed Results (ProcessStartError, EncodeError).
    """

    def __init__(self, line_handler: Optional[LineHandler] = None):
        """
        Args:
            line_handler: Called from the reader threads for each output line
        """
        self.line_handler = line_handler
        self._state = OrchestratorState.IDLE
        self._state_lock = threading.Lock()
        self._handler_lock = threading.Lock()
        self._reset_run()

    def _reset_run(self):
        self.return_code: Optional[int] = None
        self.used_shell_fallback = False
        self.command_line: Optional[str] = None
        self.stdout_lines: List[str] = []
        self.stderr_lines: List[str] = []
        self._reader_errors: List[Exception] = []

    @property
    def state(self) -> OrchestratorState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: OrchestratorState):
        with self._state_lock:
            self._state = state
        logger.debug(f"Encoder process state: {state.value}")

    def execute(self, binary_path: str, args: Sequence[str], working_dir: Optional[Path],
                expected_output: Path) -> Result[Path]:
        """
        Run ``binary_path`` with ``args`` and check for ``expected_output``.

        Any file already at ``expected_output`` is deleted first, so a file
        left over from an earlier run can never be mistaken for success.

        Args:
            binary_path: FFmpeg executable (absolute path or bare name)
            args: Arguments after the executable
            working_dir: Working directory for the child process
            expected_output: File the run must produce

        Returns:
            Result with the output path on success
        """
        if self.state in (OrchestratorState.STARTING, OrchestratorState.RUNNING):
            raise RuntimeError("Encoder process already running")

        self._reset_run()
        self._set_state(OrchestratorState.STARTING)

        expected_output = Path(expected_output)
        command = [str(binary_path)] + [str(arg) for arg in args]
        self.command_line = render_command_line(command)
        cwd = str(working_dir) if working_dir and Path(working_dir).is_dir() else None

        try:
            expected_output.unlink(missing_ok=True)
        except OSError as e:
            return self._fail(EncodeError(
                f"Cannot remove previous output {expected_output}: {e}",
                output_path=str(expected_output)
            ))

        logger.info(f"[RUNNING] {self.command_line}")

        try:
            process = self._spawn_direct(command, cwd)
        except OSError as direct_error:
            logger.warning(f"Direct start of {binary_path} failed ({direct_error}), retrying through the shell")
            try:
                process = self._spawn_shell(self.command_line, cwd)
                self.used_shell_fallback = True
            except OSError as shell_error:
                return self._fail(ProcessStartError(
                    f"Could not start {binary_path}: {direct_error}; shell fallback failed: {shell_error}",
                    binary_path=str(binary_path)
                ))

        self._set_state(OrchestratorState.RUNNING)
        self.return_code = self._drain(process)

        warnings = [f"Output handler failed: {error}" for error in self._reader_errors]

        if expected_output.exists():
            if self.return_code != 0:
                warnings.append(f"FFmpeg exited with code {self.return_code} but produced {expected_output.name}")
                logger.warning(warnings[-1])
            self._set_state(OrchestratorState.COMPLETED)
            logger.info(f"[DONE] Video saved to {expected_output}")
            return Result.success(
                expected_output,
                warnings=warnings,
                return_code=self.return_code,
                used_shell_fallback=self.used_shell_fallback
            )

        return self._fail(EncodeError(
            f"FFmpeg exited with code {self.return_code} without creating {expected_output}: "
            f"{self.last_error_line()}",
            output_path=str(expected_output),
            return_code=self.return_code
        ), warnings)

    def _fail(self, error, warnings: Optional[List[str]] = None) -> Result[Path]:
        self._set_state(OrchestratorState.FAILED)
        logger.error(f"[FAIL] {error.message}")
        return Result.error(error, warnings)

    # === Spawning ===

    def _spawn_direct(self, command: List[str], cwd: Optional[str]) -> subprocess.Popen:
        return subprocess.Popen(command, cwd=cwd, **self._popen_options())

    def _spawn_shell(self, command_line: str, cwd: Optional[str]) -> subprocess.Popen:
        return subprocess.Popen(command_line, cwd=cwd, shell=True, **self._popen_options())

    def _popen_options(self) -> dict:
        return {
            'stdin': subprocess.DEVNULL,
            'stdout': subprocess.PIPE,
            'stderr': subprocess.PIPE,
            'text': True,
            'encoding': 'utf-8',
            'errors': 'replace',
            'bufsize': 1,
            'startupinfo': self._get_subprocess_startupinfo(),
        }

    def _get_subprocess_startupinfo(self):
        """Get subprocess startup info for Windows (hide console window)"""
        if os.name == 'nt':
            startupinfo = subprocess.STARTUPINFO()
            startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
            startupinfo.wShowWindow = subprocess.SW_HIDE
            return startupinfo
        return None

    # === Output draining ===

    def _drain(self, process: subprocess.Popen) -> int:
        """Read both pipes concurrently until EOF, then wait for exit."""
        stdout_thread = threading.Thread(
            target=self._read_stream,
            args=(process.stdout, 'stdout', self.stdout_lines),
            name="FFmpegStdoutReader",
            daemon=True
        )
        stderr_thread = threading.Thread(
            target=self._read_stream,
            args=(process.stderr, 'stderr', self.stderr_lines),
            name="FFmpegStderrReader",
            daemon=True
        )

        stdout_thread.start()
        stderr_thread.start()

        return_code = process.wait()

        stdout_thread.join()
        stderr_thread.join()

        return return_code

    def _read_stream(self, stream, stream_name: str, sink: List[str]):
        # universal newlines split FFmpeg's carriage-return progress updates
        handler_failed = False
        try:
            for raw_line in iter(stream.readline, ''):
                line = raw_line.rstrip('\r\n')
                if not line.strip():
                    continue
                sink.append(line)

                if self.line_handler is None or handler_failed:
                    continue
                try:
                    with self._handler_lock:
                        self.line_handler(stream_name, line)
                except Exception as e:
                    # keep draining so FFmpeg never blocks on a full pipe
                    handler_failed = True
                    self._reader_errors.append(e)
                    logger.error(f"Output handler failed on {stream_name}: {e}", exc_info=True)
        finally:
            stream.close()

    # === Diagnostics ===

    def last_error_line(self) -> str:
        """Most relevant line of FFmpeg's error output."""
        for line in reversed(self.stderr_lines[-10:]):
            lowered = line.lower()
            if 'error' in lowered or 'invalid' in lowered or 'not found' in lowered:
                return line.strip()

        for line in reversed(self.stderr_lines):
            if line.strip():
                return line.strip()

        return "no output"

    @property
    def output_text(self) -> str:
        return '\n'.join(self.stderr_lines + self.stdout_lines)
