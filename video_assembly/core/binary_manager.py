"""
Binary manager for FFmpeg and FFprobe executables.

Locates the executables according to the configured source (auto-downloaded
cache, system search path or a custom location) and, for the bundled source,
downloads and installs them into a per-user cache directory.

Installation downloads and extracts into private temporary locations and
moves each executable into the cache with a staged copy followed by an
atomic rename, so a concurrent resolver never sees a partially written file.
"""

import os
import platform
import shutil
import stat
import subprocess
import tempfile
import threading
import time
import uuid
import zipfile
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import httpx

from core.exceptions import (
    ArchiveMissingExecutableError,
    BinaryUnavailableError,
)
from core.logger import logger
from core.result_types import Result
from ..models.binary_source import BinarySource, BinarySourceConfig, EncoderBinary


USER_AGENT = "WeatherImageGenerator/1.0"
DOWNLOAD_TIMEOUT = 600.0
CHUNK_SIZE = 81920

# Download owns the first 80% of install progress, extraction reports 85/95
DOWNLOAD_PROGRESS_SHARE = 0.8
EXTRACT_START_PROGRESS = 85.0
EXTRACT_DONE_PROGRESS = 95.0
DOWNLOAD_LOG_INTERVAL = 2.0

INSTALLED_BINARIES = ("ffmpeg", "ffprobe", "ffplay")

ProgressCallback = Callable[[float, str], None]


def executable_name(name: str) -> str:
    """Platform file name for an executable ('ffmpeg' -> 'ffmpeg.exe' on Windows)."""
    if platform.system() == "Windows":
        return f"{name}.exe"
    return name


class FFmpegBinaryManager:
    """
    Resolves and provisions the FFmpeg executables.

    The manager holds an immutable BinarySourceConfig. Changing the source
    means handing a new config to ``reconfigure``, which also drops the
    cached resolution. Operational failures are returned as failed Result
    objects rather than raised.
    """

    def __init__(self, config: Optional[BinarySourceConfig] = None,
                 http_client: Optional[httpx.Client] = None):
        """
        Args:
            config: Source configuration; defaults to the bundled source
            http_client: Client used for downloads; one is created per
                install when omitted
        """
        self._config = config or BinarySourceConfig()
        self._http_client = http_client
        self._resolved: Optional[EncoderBinary] = None
        # cache dir whose last install came from an archive without ffprobe
        self._ffprobe_missing_in: Optional[Path] = None
        self._state_lock = threading.Lock()
        self._install_lock = threading.Lock()

    # === Configuration ===

    @property
    def config(self) -> BinarySourceConfig:
        return self._config

    def reconfigure(self, config: BinarySourceConfig):
        """Replace the source configuration and forget the previous resolution."""
        with self._state_lock:
            self._config = config
            self._resolved = None
        logger.info(f"[FFmpeg] Source set to {config.source.value}")

    def _invalidate(self):
        with self._state_lock:
            self._resolved = None

    # === Resolution ===

    def resolve(self) -> EncoderBinary:
        """
        Resolve the FFmpeg executable for the active configuration.

        The result is cached until the configuration changes, the cache is
        cleared or an install completes.
        """
        with self._state_lock:
            if self._resolved is not None:
                return self._resolved
            config = self._config

        resolved = self._resolve_binary("ffmpeg", config)

        with self._state_lock:
            if self._config is config:
                self._resolved = resolved
        return resolved

    def get_ffmpeg_path(self) -> str:
        return self.resolve().path

    def get_ffprobe_path(self) -> str:
        return self._resolve_binary("ffprobe", self._config).path

    def _resolve_binary(self, name: str, config: BinarySourceConfig) -> EncoderBinary:
        exe = executable_name(name)

        if config.source == BinarySource.SYSTEM_PATH:
            found = self.find_system_binary(name, config)
            if found:
                return EncoderBinary(str(found), BinarySource.SYSTEM_PATH, True)
            logger.warning(f"[FFmpeg] {exe} not found in system PATH, relying on the OS loader")
            return EncoderBinary(exe, BinarySource.SYSTEM_PATH, False)

        if config.source == BinarySource.CUSTOM:
            custom = self._find_custom_binary(exe, config)
            if custom:
                return EncoderBinary(str(custom), BinarySource.CUSTOM, True)
            logger.warning(
                f"[FFmpeg] Custom path '{config.custom_path}' has no {exe}, using bundled FFmpeg"
            )

        cached = config.cache_dir / exe
        if cached.is_file():
            return EncoderBinary(str(cached), BinarySource.BUNDLED, True)

        found = self.find_system_binary(name, config)
        if found:
            logger.info(f"[FFmpeg] Bundled {exe} not downloaded yet, using system copy: {found}")
            return EncoderBinary(str(found), BinarySource.SYSTEM_PATH, True)

        return EncoderBinary(str(cached), BinarySource.BUNDLED, False)

    def _find_custom_binary(self, exe: str, config: BinarySourceConfig) -> Optional[Path]:
        custom = config.custom_path
        if custom is None or not str(custom).strip():
            return None
        if custom.is_dir() and (custom / exe).is_file():
            return custom / exe
        if custom.is_file() and custom.name.lower() == exe.lower():
            return custom
        return None

    def find_system_binary(self, name: str,
                           config: Optional[BinarySourceConfig] = None) -> Optional[Path]:
        """
        Search conventional install directories, then every PATH entry.

        Args:
            name: Binary name without extension ('ffmpeg' or 'ffprobe')
            config: Configuration supplying the conventional directories

        Returns:
            Path to the executable or None if not found
        """
        config = config or self._config
        exe = executable_name(name)

        for directory in config.search_dirs:
            candidate = directory / exe
            if candidate.is_file():
                return candidate

        for entry in os.environ.get("PATH", "").split(os.pathsep):
            entry = entry.strip().strip('"')
            if not entry:
                continue
            candidate = Path(entry) / exe
            if candidate.is_file():
                return candidate

        return None

    # === Installation ===

    def cache_path(self, name: str = "ffmpeg") -> Path:
        return self._config.cache_dir / executable_name(name)

    def is_installed(self) -> bool:
        """Whether the cache holds both ffmpeg and ffprobe."""
        return self.cache_path("ffmpeg").is_file() and self.cache_path("ffprobe").is_file()

    def ensure_installed(self, progress_callback: Optional[ProgressCallback] = None) -> Result[Path]:
        """
        Make sure the cache directory holds the FFmpeg executables.

        Tries each download URL in order until one succeeds, extracts the
        archive, locates the executables inside it and installs them into the
        cache. Temporary files are always removed.

        Args:
            progress_callback: Optional callback (percentage, message)

        Returns:
            Result with the cache directory, or BinaryUnavailableError /
            ArchiveMissingExecutableError
        """
        with self._install_lock:
            config = self._config

            if self.is_installed():
                self._report(progress_callback, 100.0, "FFmpeg already installed")
                return Result.success(config.cache_dir)

            if self._ffprobe_missing_in == config.cache_dir and self.cache_path("ffmpeg").is_file():
                self._report(progress_callback, 100.0, "FFmpeg already installed")
                return Result.success(config.cache_dir, warnings=["Archive did not contain ffprobe"])

            logger.info(f"[FFmpeg] Installing FFmpeg into {config.cache_dir}")
            archive_path = Path(tempfile.gettempdir()) / f"ffmpeg_{uuid.uuid4().hex}.zip"
            extract_dir: Optional[Path] = None

            try:
                config.cache_dir.mkdir(parents=True, exist_ok=True)

                source_url = self._download_first_available(
                    config.download_urls, archive_path, progress_callback
                )
                if source_url is None:
                    error = BinaryUnavailableError(
                        "Failed to download FFmpeg from all sources",
                        attempted_urls=config.download_urls
                    )
                    logger.error(f"[FFmpeg] {error.message}")
                    return Result.error(error)

                self._report(progress_callback, EXTRACT_START_PROGRESS, "Extracting FFmpeg...")
                extract_dir = Path(tempfile.mkdtemp(prefix="ffmpeg_extract_"))
                with zipfile.ZipFile(archive_path) as archive:
                    archive.extractall(extract_dir)
                self._report(progress_callback, EXTRACT_DONE_PROGRESS, "Installing FFmpeg...")

                exe = executable_name("ffmpeg")
                bin_dir = self.find_executable_dir(extract_dir, exe)
                if bin_dir is None:
                    error = ArchiveMissingExecutableError(exe, archive_url=source_url)
                    logger.error(f"[FFmpeg] {error.message}")
                    return Result.error(error)

                installed = self._install_executables(bin_dir, config.cache_dir)

            except zipfile.BadZipFile as e:
                error = BinaryUnavailableError(f"Downloaded FFmpeg archive is corrupt: {e}")
                logger.error(f"[FFmpeg] {error.message}")
                return Result.error(error)
            except OSError as e:
                error = BinaryUnavailableError(f"Failed to install FFmpeg: {e}")
                logger.error(f"[FFmpeg] {error.message}")
                return Result.error(error)
            finally:
                self._remove_temporary(archive_path, extract_dir)

            self._invalidate()

            result = Result.success(config.cache_dir, installed=installed, source_url=source_url)
            self._ffprobe_missing_in = None
            if executable_name("ffprobe") not in installed:
                self._ffprobe_missing_in = config.cache_dir
                result.add_warning("Archive did not contain ffprobe")
                logger.warning("[FFmpeg] Archive did not contain ffprobe")

            self._report(progress_callback, 100.0, "FFmpeg installed")
            logger.info(f"[FFmpeg] Installed {', '.join(installed)} from {source_url}")
            return result

    def _download_first_available(self, urls, archive_path: Path,
                                  progress_callback: Optional[ProgressCallback]) -> Optional[str]:
        """Download from the first URL that works. Returns that URL or None."""
        if self._http_client is not None:
            return self._download_with(self._http_client, urls, archive_path, progress_callback)

        with httpx.Client(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True) as client:
            return self._download_with(client, urls, archive_path, progress_callback)

    def _download_with(self, client: httpx.Client, urls, archive_path: Path,
                       progress_callback: Optional[ProgressCallback]) -> Optional[str]:
        for url in urls:
            logger.info(f"[FFmpeg] Downloading from {url}")
            try:
                self._download_archive(client, url, archive_path, progress_callback)
                return url
            except (httpx.HTTPError, OSError) as e:
                logger.warning(f"[FFmpeg] Download failed from {url}: {e}")
                archive_path.unlink(missing_ok=True)
        return None

    def _download_archive(self, client: httpx.Client, url: str, destination: Path,
                          progress_callback: Optional[ProgressCallback]):
        headers = {"User-Agent": USER_AGENT}
        with client.stream("GET", url, headers=headers, timeout=DOWNLOAD_TIMEOUT,
                           follow_redirects=True) as response:
            response.raise_for_status()

            total = int(response.headers.get("Content-Length") or 0)
            downloaded = 0
            last_log = time.monotonic()

            with open(destination, "wb") as handle:
                for chunk in response.iter_bytes(chunk_size=CHUNK_SIZE):
                    handle.write(chunk)
                    downloaded += len(chunk)

                    if total > 0:
                        percent = downloaded * 100.0 / total
                        self._report(progress_callback, percent * DOWNLOAD_PROGRESS_SHARE,
                                     f"Downloading FFmpeg... {percent:.0f}%")

                    now = time.monotonic()
                    if now - last_log >= DOWNLOAD_LOG_INTERVAL:
                        last_log = now
                        logger.info(f"[FFmpeg] Downloaded {downloaded / 1048576:.1f} MB")

        logger.info(f"[FFmpeg] Download complete ({downloaded / 1048576:.1f} MB)")

    @staticmethod
    def find_executable_dir(root: Path, exe: str) -> Optional[Path]:
        """
        Locate the directory holding ``exe`` inside an extracted archive.

        Checks the archive root, then every subdirectory (shallowest first),
        then directories named 'bin' with a case-insensitive name match.
        """
        if (root / exe).is_file():
            return root

        subdirs = sorted(
            (p for p in root.rglob("*") if p.is_dir()),
            key=lambda p: (len(p.relative_to(root).parts), str(p))
        )
        for directory in subdirs:
            if (directory / exe).is_file():
                return directory

        for directory in subdirs:
            if directory.name.lower() == "bin" and _find_file(directory, exe):
                return directory

        return None

    def _install_executables(self, source_dir: Path, cache_dir: Path) -> List[str]:
        installed = []
        for name in INSTALLED_BINARIES:
            exe = executable_name(name)
            source = _find_file(source_dir, exe)
            if source is None:
                continue
            _atomic_copy(source, cache_dir / exe)
            installed.append(exe)
            logger.debug(f"[FFmpeg] Installed: {exe}")
        return installed

    @staticmethod
    def _remove_temporary(archive_path: Path, extract_dir: Optional[Path]):
        try:
            archive_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"[FFmpeg] Could not remove {archive_path}: {e}")
        if extract_dir is not None:
            shutil.rmtree(extract_dir, ignore_errors=True)

    @staticmethod
    def _report(progress_callback: Optional[ProgressCallback], percentage: float, message: str):
        if progress_callback:
            progress_callback(percentage, message)

    # === Validation & Maintenance ===

    def validate_configuration(self) -> Tuple[bool, str]:
        """
        Describe whether the active source is usable.

        Returns:
            (ok, message). The message is never empty. A bundled source that
            has not been downloaded yet counts as ok since it installs on
            demand.
        """
        config = self._config
        exe = executable_name("ffmpeg")

        if config.source == BinarySource.SYSTEM_PATH:
            found = self.find_system_binary("ffmpeg", config)
            if found is None:
                return False, "FFmpeg not found in system PATH. Please install FFmpeg and add it to your PATH."
            return True, f"Using FFmpeg from system PATH: {found}"

        if config.source == BinarySource.CUSTOM:
            if config.custom_path is None or not str(config.custom_path).strip():
                return False, "Custom path is not specified."
            custom = self._find_custom_binary(exe, config)
            if custom is None:
                return False, f"FFmpeg not found at custom path: {config.custom_path}"
            return True, f"Using FFmpeg from custom path: {custom}"

        cached = config.cache_dir / exe
        if cached.is_file():
            return True, f"Using bundled FFmpeg: {cached}"
        return True, "Bundled FFmpeg not yet downloaded. It will be downloaded automatically when needed."

    def clear_cache(self) -> Result[None]:
        """Delete the cache directory so the next bundled resolve downloads again."""
        with self._install_lock:
            cache_dir = self._config.cache_dir
            try:
                if cache_dir.exists():
                    shutil.rmtree(cache_dir)
                    logger.info(f"[FFmpeg] Cleared cache {cache_dir}")
            except OSError as e:
                error = BinaryUnavailableError(f"Failed to clear FFmpeg cache: {e}")
                logger.error(f"[FFmpeg] {error.message}")
                return Result.error(error)
            finally:
                self._ffprobe_missing_in = None
                self._invalidate()
        return Result.success(None)

    def get_version(self, binary_path: Optional[str] = None) -> Optional[str]:
        """Version token from the first line of ``ffmpeg -version``."""
        binary_path = binary_path or self.get_ffmpeg_path()
        try:
            result = subprocess.run(
                [binary_path, "-version"], capture_output=True, text=True, check=False, timeout=10
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"[FFmpeg] Version check failed for {binary_path}: {e}")
            return None

        if result.returncode == 0 and result.stdout:
            parts = result.stdout.split("\n")[0].split()
            if len(parts) >= 3:
                return parts[2]
        return None


def _find_file(directory: Path, file_name: str) -> Optional[Path]:
    """Find a file directly inside ``directory``, matching the name case-insensitively."""
    exact = directory / file_name
    if exact.is_file():
        return exact
    wanted = file_name.lower()
    for entry in directory.iterdir():
        if entry.is_file() and entry.name.lower() == wanted:
            return entry
    return None


def _atomic_copy(source: Path, target: Path):
    """Copy into a staging file next to ``target`` and rename it into place."""
    staging = target.with_name(f".{target.name}.{uuid.uuid4().hex}.partial")
    try:
        shutil.copy2(source, staging)
        if platform.system() != "Windows":
            mode = staging.stat().st_mode
            staging.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        os.replace(staging, target)
    except OSError:
        staging.unlink(missing_ok=True)
        raise
