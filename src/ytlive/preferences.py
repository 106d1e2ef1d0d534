"""Persisted source URL shared by the front ends."""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import QSettings

from .config import APP_NAME

URL_KEY = "youtubeURL"


class UrlPreference:
    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self.settings = settings or QSettings(APP_NAME, APP_NAME)

    def get(self) -> str:
        value = self.settings.value(URL_KEY, "", type=str)
        return (value or "").strip()

    def set(self, url: str) -> None:
        self.settings.setValue(URL_KEY, url.strip())
        self.settings.sync()
