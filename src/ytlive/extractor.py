"""Resolve a YouTube page URL into a direct audio stream URL with the yt-dlp CLI."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence
from urllib.parse import urlsplit

from .errors import ExtractionFailedError, InvalidStreamURLError

logger = logging.getLogger(__name__)

AUDIO_FORMAT = "bestaudio"


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


class CommandRunner(Protocol):
    def run(self, args: Sequence[str]) -> CommandResult:
        ...


class SubprocessRunner:
    """Runs a command to completion and captures both output streams."""

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def run(self, args: Sequence[str]) -> CommandResult:
        # capture_output drains stdout and stderr together, so a chatty child
        # cannot block on a full pipe before it exits
        completed = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=self.timeout,
            stdin=subprocess.DEVNULL,
            check=False,
        )
        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


def build_arguments(tool_path: str, source_url: str) -> list:
    return [tool_path, "--format", AUDIO_FORMAT, "--get-url", "--no-playlist", source_url]


def parse_stream_url(output: str) -> Optional[str]:
    """Return the first output line when it is an absolute http(s) URL."""
    lines = [line.strip() for line in output.strip().splitlines() if line.strip()]
    if not lines:
        return None
    candidate = lines[0]
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc or " " in candidate:
        return None
    return candidate


class StreamExtractor:
    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        self.runner = runner or SubprocessRunner()

    def extract_stream_url(self, source_url: str, tool_path: str) -> str:
        args = build_arguments(str(tool_path), source_url)
        logger.debug("Running %s", " ".join(args))
        try:
            result = self.runner.run(args)
        except subprocess.TimeoutExpired as exc:
            raise ExtractionFailedError(f"yt-dlp timed out after {exc.timeout:g}s") from exc
        except OSError as exc:
            raise ExtractionFailedError(f"could not run {tool_path}: {exc}") from exc

        if result.returncode != 0:
            logger.warning("yt-dlp exited with status %d", result.returncode)
            raise ExtractionFailedError(result.stderr or "Unknown error")

        stream_url = parse_stream_url(result.stdout)
        if stream_url is None:
            raise InvalidStreamURLError(result.stdout)
        return stream_url
