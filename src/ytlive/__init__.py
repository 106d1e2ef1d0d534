"""Top-level exports for the ytlive playback core."""

from .config import AppConfig, load_config
from .controller import PlaybackController, StreamSession
from .engine import MediaEngine, QtMediaEngine
from .errors import (
    DownloadFailedError,
    EngineStartFailedError,
    ExtractionFailedError,
    InstallFailedError,
    InvalidStreamURLError,
    InvalidURLError,
    ToolNotFoundError,
    YtLiveError,
)
from .extractor import CommandResult, CommandRunner, StreamExtractor, SubprocessRunner
from .installer import InstallationRecord, InstallResult, InstallStatus, ToolInstaller
from .resolver import ExecutableLocation, ExecutableResolver, resolve_symlinks
from .state import PlaybackState, PlaybackStatus, format_time
from .validator import extract_video_id, is_valid_youtube_url

__all__ = [
    "AppConfig",
    "load_config",
    "PlaybackController",
    "StreamSession",
    "MediaEngine",
    "QtMediaEngine",
    "YtLiveError",
    "InvalidURLError",
    "ToolNotFoundError",
    "DownloadFailedError",
    "InstallFailedError",
    "ExtractionFailedError",
    "InvalidStreamURLError",
    "EngineStartFailedError",
    "CommandResult",
    "CommandRunner",
    "StreamExtractor",
    "SubprocessRunner",
    "InstallationRecord",
    "InstallResult",
    "InstallStatus",
    "ToolInstaller",
    "ExecutableLocation",
    "ExecutableResolver",
    "resolve_symlinks",
    "PlaybackState",
    "PlaybackStatus",
    "format_time",
    "extract_video_id",
    "is_valid_youtube_url",
]
