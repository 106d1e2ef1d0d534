"""Playback state values and the guard predicates front ends consult."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PlaybackStatus(Enum):
    STOPPED = "stopped"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ERROR = "error"


@dataclass(frozen=True)
class PlaybackState:
    """One of Stopped, Loading, Playing(url), Paused or Error(message)."""

    status: PlaybackStatus = PlaybackStatus.STOPPED
    stream_url: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def stopped(cls) -> "PlaybackState":
        return cls(PlaybackStatus.STOPPED)

    @classmethod
    def loading(cls) -> "PlaybackState":
        return cls(PlaybackStatus.LOADING)

    @classmethod
    def playing(cls, stream_url: str) -> "PlaybackState":
        return cls(PlaybackStatus.PLAYING, stream_url=stream_url)

    @classmethod
    def paused(cls, stream_url: Optional[str] = None) -> "PlaybackState":
        return cls(PlaybackStatus.PAUSED, stream_url=stream_url)

    @classmethod
    def error(cls, message: str) -> "PlaybackState":
        return cls(PlaybackStatus.ERROR, message=message)

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def can_play(self) -> bool:
        return self.status in (PlaybackStatus.STOPPED, PlaybackStatus.PAUSED, PlaybackStatus.ERROR)

    @property
    def can_pause(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def can_stop(self) -> bool:
        return self.status in (PlaybackStatus.PLAYING, PlaybackStatus.PAUSED, PlaybackStatus.LOADING)

    def describe(self) -> str:
        if self.status is PlaybackStatus.ERROR:
            return f"Error: {self.message}"
        return self.status.value.capitalize()


def format_time(seconds: float) -> str:
    """Format elapsed seconds as MM:SS, or HH:MM:SS once past an hour."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
