"""
Hardware encoder capability probe.

Asks the FFmpeg build which vendor encoders it was compiled with and applies
the advisory policy used when a user turns hardware encoding on.
"""

import os
import subprocess
from typing import Callable, List, Optional, Tuple

from core.exceptions import HardwareEncodingUnsupportedError
from core.logger import logger
from core.result_types import Result
from ..core import HARDWARE_ENCODERS
from ..models.encode_config import EncodeConfig


PROBE_TIMEOUT = 10


class HardwareEncoderProbe:
    """Lists the hardware encoders an FFmpeg executable offers."""

    def __init__(self, timeout: int = PROBE_TIMEOUT):
        self.timeout = timeout
        self._cache = {}

    def probe(self, ffmpeg_path: str) -> Result[List[str]]:
        """
        Run ``ffmpeg -hide_banner -encoders`` and pick out vendor encoders.

        Returns:
            Result with the available hardware encoder names (possibly empty).
            Fails only when FFmpeg could not be queried.
        """
        ffmpeg_path = str(ffmpeg_path)
        if ffmpeg_path in self._cache:
            return Result.success(list(self._cache[ffmpeg_path]))

        try:
            result = subprocess.run(
                [ffmpeg_path, '-hide_banner', '-encoders'],
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout,
                startupinfo=self._get_subprocess_startupinfo()
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Could not query FFmpeg encoders: {e}")
            return Result.error(HardwareEncodingUnsupportedError(
                f"Could not query FFmpeg encoders: {e}"
            ))

        if result.returncode != 0:
            return Result.error(HardwareEncodingUnsupportedError(
                f"FFmpeg encoder query exited with code {result.returncode}"
            ))

        available = self.parse_encoders(result.stdout)
        self._cache[ffmpeg_path] = available
        logger.info(f"Hardware encoders available: {', '.join(available) or 'none'}")
        return Result.success(list(available))

    @staticmethod
    def parse_encoders(output: str) -> List[str]:
        """Hardware encoder names listed in ``-encoders`` output, in table order."""
        listed = set()
        for line in output.splitlines():
            # " V....D h264_nvenc           NVIDIA NVENC H.264 encoder"
            parts = line.split()
            if len(parts) >= 2 and parts[0][:1] == 'V':
                listed.add(parts[1])
        return [name for name in HARDWARE_ENCODERS if name in listed]

    def _get_subprocess_startupinfo(self):
        if os.name == 'nt':
            startupinfo = subprocess.STARTUPINFO()
            startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
            startupinfo.wShowWindow = subprocess.SW_HIDE
            return startupinfo
        return None


def enforce_hardware_policy(
    config: EncodeConfig,
    probe_result: Result[List[str]],
    confirm: Optional[Callable[[str], bool]] = None
) -> Tuple[EncodeConfig, Optional[HardwareEncodingUnsupportedError]]:
    """
    Apply the hardware advisory to a configuration about to be saved.

    When hardware encoding is on but the probe found no vendor encoder, an
    advisory is produced. The flag survives only if ``confirm`` is given and
    returns True for the advisory text; otherwise it is cleared.

    Returns:
        (config to save, advisory or None)
    """
    if not config.hardware_acceleration:
        return config, None

    if probe_result.success and probe_result.value:
        return config, None

    reason = "no hardware encoder found" if probe_result.success else probe_result.error.message
    advisory = HardwareEncodingUnsupportedError(
        f"FFmpeg does not appear to support hardware encoding on this system. ({reason})\n"
        f"Enabling hardware encoding may cause ffmpeg to fail.",
        context={'reason': reason}
    )
    logger.warning(advisory.message)

    if confirm is not None and confirm(advisory.message):
        logger.info("Hardware encoding kept enabled after advisory")
        return config, advisory

    return config.with_changes(hardware_acceleration=False), advisory
