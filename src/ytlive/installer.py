"""On-demand download of the standalone yt-dlp release."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
import http.client
import threading
import urllib.request
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .config import AppConfig
from .errors import DownloadFailedError, InstallFailedError, ToolNotFoundError
from .resolver import ExecutableLocation, ExecutableResolver

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

CHUNK_SIZE = 1024 * 64
# ValueError covers malformed download URLs; HTTPException covers truncated bodies
TRANSPORT_ERRORS = (OSError, http.client.HTTPException, ValueError)
EXECUTABLE_MODE = (
    stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH
)


class InstallStatus(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class InstallationRecord:
    status: InstallStatus = InstallStatus.NOT_STARTED
    progress: str = ""
    reason: Optional[str] = None


@dataclass(frozen=True)
class InstallResult:
    """Outcome of one ``install`` call.

    ``reason`` is one of ``network``, ``no_data``, ``directory``, ``replace``
    or ``busy`` when ``success`` is False.
    """

    success: bool
    path: Optional[Path] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class ToolInstaller:
    """Downloads yt-dlp into the per-application install directory.

    A single instance is meant to be shared by everything in the process that
    may trigger an install; the in-flight lock lives on the instance.
    """

    def __init__(
        self,
        config: AppConfig,
        resolver: Optional[ExecutableResolver] = None,
    ) -> None:
        self.download_url = config.download_url
        self.install_path = config.install_path
        self.timeout = config.download_timeout
        self.tool_name = config.tool_name
        self.resolver = resolver or ExecutableResolver(config)
        self.record = InstallationRecord()
        self._install_lock = threading.Lock()

    @property
    def is_installing(self) -> bool:
        return self._install_lock.locked()

    def is_installed(self) -> bool:
        return self.resolver.locate() is not None

    def install(self, progress_callback: Optional[ProgressCallback] = None) -> InstallResult:
        if not self._install_lock.acquire(blocking=False):
            return InstallResult(
                success=False,
                reason="busy",
                message=f"Installation of {self.tool_name} is already in progress.",
            )
        try:
            return self._install(progress_callback)
        finally:
            self._install_lock.release()

    def ensure_installed(
        self, progress_callback: Optional[ProgressCallback] = None
    ) -> ExecutableLocation:
        """Return the usable tool, installing it first when it cannot be found."""
        location = self.resolver.locate()
        if location is not None:
            return location

        with self._install_lock:
            # another caller may have finished installing while we waited
            location = self.resolver.locate()
            if location is not None:
                return location
            logger.info("%s not found; downloading from %s", self.tool_name, self.download_url)
            result = self._install(progress_callback)
        if not result.success:
            if result.reason in ("network", "no_data"):
                raise DownloadFailedError(result.message or "Download failed", reason=result.reason)
            raise InstallFailedError(result.message or "Installation failed", reason=result.reason or "replace")

        location = self.resolver.locate()
        if location is None:
            raise ToolNotFoundError(
                f"{self.tool_name} was installed to {self.install_path} but cannot be executed."
            )
        return location

    def _install(self, progress_callback: Optional[ProgressCallback]) -> InstallResult:
        self._report(f"Downloading {self.tool_name}...", progress_callback)
        temp_path: Optional[Path] = None
        try:
            temp_path = self._download(progress_callback)
            self._report(f"Installing {self.tool_name}...", progress_callback)
            self._place(temp_path)
        except (DownloadFailedError, InstallFailedError) as exc:
            logger.error("Installing %s failed: %s", self.tool_name, exc)
            self.record = InstallationRecord(
                status=InstallStatus.FAILED, progress=self.record.progress, reason=str(exc)
            )
            return InstallResult(success=False, reason=exc.reason, message=str(exc))
        finally:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)

        self.record = InstallationRecord(status=InstallStatus.COMPLETE, progress="Installation complete!")
        if progress_callback:
            progress_callback(self.record.progress)
        logger.info("%s installed at %s", self.tool_name, self.install_path)
        return InstallResult(success=True, path=self.install_path)

    def _report(self, text: str, progress_callback: Optional[ProgressCallback]) -> None:
        self.record = InstallationRecord(status=InstallStatus.IN_PROGRESS, progress=text)
        if progress_callback:
            progress_callback(text)

    def _download(self, progress_callback: Optional[ProgressCallback]) -> Path:
        try:
            temp_file = tempfile.NamedTemporaryFile(delete=False, prefix="ytlive-", suffix=".download")
        except OSError as exc:
            raise InstallFailedError(f"Could not create temporary file: {exc}", reason="directory") from exc
        temp_path = Path(temp_file.name)
        kept = False
        try:
            try:
                with temp_file:
                    bytes_written = self._fetch_into(temp_file, progress_callback)
            except OSError as exc:
                raise InstallFailedError(
                    f"Could not write the download to disk: {exc}", reason="directory"
                ) from exc
            if bytes_written == 0:
                raise DownloadFailedError("Download failed: No file received", reason="no_data")
            kept = True
        finally:
            if not kept:
                temp_path.unlink(missing_ok=True)
        return temp_path

    def _fetch_into(self, out, progress_callback: Optional[ProgressCallback]) -> int:
        """Stream the release into ``out`` and return the number of bytes written."""
        headers = {"User-Agent": "Mozilla/5.0"}
        try:
            request = urllib.request.Request(self.download_url, headers=headers)
            response = urllib.request.urlopen(request, timeout=self.timeout)
        except TRANSPORT_ERRORS as exc:
            raise _network_error(exc) from exc

        bytes_written = 0
        with response:
            total = _content_length(response)
            last_percent = -1
            while True:
                try:
                    chunk = response.read(CHUNK_SIZE)
                except TRANSPORT_ERRORS as exc:
                    raise _network_error(exc) from exc
                if not chunk:
                    break
                out.write(chunk)
                bytes_written += len(chunk)
                if total and progress_callback:
                    percent = min(100, bytes_written * 100 // total)
                    if percent != last_percent:
                        last_percent = percent
                        progress_callback(f"Downloading {self.tool_name}... {percent}%")
        return bytes_written

    def _place(self, downloaded: Path) -> None:
        """Swap the downloaded file into ``install_path`` in one rename.

        The new file is staged next to the target so ``os.replace`` never
        crosses filesystems, and made executable before it becomes visible.
        """
        install_dir = self.install_path.parent
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InstallFailedError(
                f"Could not create directory: {exc}", reason="directory"
            ) from exc

        staging: Optional[Path] = None
        try:
            handle, staging_name = tempfile.mkstemp(
                dir=install_dir, prefix=f".{self.tool_name}-", suffix=".partial"
            )
            os.close(handle)
            staging = Path(staging_name)
            shutil.copyfile(downloaded, staging)
            os.chmod(staging, EXECUTABLE_MODE)
            os.replace(staging, self.install_path)
            staging = None
        except OSError as exc:
            raise InstallFailedError(f"Installation failed: {exc}", reason="replace") from exc
        finally:
            if staging is not None:
                staging.unlink(missing_ok=True)


def _network_error(exc: Exception) -> DownloadFailedError:
    reason = getattr(exc, "reason", None) or exc
    return DownloadFailedError(f"Download failed: {reason}", reason="network")


def _content_length(response) -> Optional[int]:
    value = response.getheader("Content-Length")
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


__all__ = [
    "InstallResult",
    "InstallStatus",
    "InstallationRecord",
    "ToolInstaller",
]
