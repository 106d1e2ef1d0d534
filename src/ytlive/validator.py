"""YouTube URL validation and video id extraction."""

from __future__ import annotations

from typing import List, Optional
from urllib.parse import SplitResult, unquote_plus, urlencode, urlsplit

SHORT_HOST = "youtu.be"
VALID_HOSTS = frozenset({"youtube.com", "www.youtube.com", "m.youtube.com", SHORT_HOST})


def _split(url: object) -> Optional[SplitResult]:
    if not isinstance(url, str) or not url.strip():
        return None
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
    except ValueError:
        return None
    if not host or host.lower() not in VALID_HOSTS:
        return None
    return parts


def _segments(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


def _query_value(query: str, name: str) -> Optional[str]:
    """Value of the first ``name=...`` pair; a bare ``name`` without ``=`` does not count."""
    for pair in query.split("&"):
        key, sep, value = pair.partition("=")
        if sep and unquote_plus(key) == name:
            return unquote_plus(value)
    return None


def is_valid_youtube_url(url: object) -> bool:
    """Return True for watch, live and youtu.be links on the supported hosts.

    Accepted shapes::

        https://www.youtube.com/watch?v=VIDEO_ID
        https://m.youtube.com/watch?v=VIDEO_ID
        https://www.youtube.com/live/VIDEO_ID
        https://youtu.be/VIDEO_ID
    """
    parts = _split(url)
    if parts is None:
        return False
    if parts.hostname.lower() == SHORT_HOST:
        return bool(_segments(parts.path))
    path = parts.path.lower()
    is_watch = "/watch" in path and _query_value(parts.query, "v") is not None
    return is_watch or "/live/" in path


def extract_video_id(url: object) -> Optional[str]:
    """Return the video id of a valid YouTube URL, or None."""
    if not is_valid_youtube_url(url):
        return None
    parts = _split(url)
    segments = _segments(parts.path)
    if parts.hostname.lower() == SHORT_HOST:
        return segments[0]

    video_id = _query_value(parts.query, "v")
    if video_id:
        return video_id

    lowered = [segment.lower() for segment in segments]
    if "live" in lowered:
        index = lowered.index("live")
        if index + 1 < len(segments):
            return segments[index + 1]
    return None


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?{urlencode({'v': video_id})}"
