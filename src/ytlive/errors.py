"""Exception hierarchy shared by the playback core."""

from __future__ import annotations

from typing import Optional


class YtLiveError(Exception):
    """Base class for every error the playback pipeline surfaces to users."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class InvalidURLError(YtLiveError):
    """The source URL is not a supported YouTube address."""


class ToolNotFoundError(YtLiveError):
    """No usable yt-dlp executable was found in any search location."""


class DownloadFailedError(YtLiveError):
    """The yt-dlp release asset could not be downloaded.

    ``reason`` is ``"network"`` for transport errors and ``"no_data"`` when
    the server answered with an empty body.
    """

    def __init__(self, message: str, *, reason: str = "network", hint: Optional[str] = None) -> None:
        super().__init__(message, hint=hint)
        self.reason = reason


class InstallFailedError(YtLiveError):
    """The downloaded asset could not be moved into place.

    ``reason`` is ``"directory"`` when the install directory could not be
    created and ``"replace"`` when the file could not be swapped in.
    """

    def __init__(self, message: str, *, reason: str = "replace", hint: Optional[str] = None) -> None:
        super().__init__(message, hint=hint)
        self.reason = reason


class ExtractionFailedError(YtLiveError):
    """yt-dlp exited with a non-zero status."""

    def __init__(self, diagnostic: str, *, hint: Optional[str] = None) -> None:
        self.diagnostic = diagnostic.strip()
        super().__init__(
            f"Failed to extract audio stream: {self.diagnostic or 'unknown error'}",
            hint=hint,
        )


class InvalidStreamURLError(YtLiveError):
    """yt-dlp succeeded but did not print a usable stream URL."""

    def __init__(self, output: str = "") -> None:
        self.output = output
        super().__init__("Invalid audio stream URL")


class EngineStartFailedError(YtLiveError):
    """The media engine rejected the resolved stream."""
