"""Media engine adapters consumed by the playback controller."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QAudioOutput, QMediaPlayer

from .errors import EngineStartFailedError

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[str], None]


class MediaEngine(Protocol):
    """Plays one stream URL; reports asynchronous failures through ``on_error``."""

    on_error: Optional[ErrorHandler]

    def load(self, url: str) -> None:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def set_muted(self, muted: bool) -> None:
        ...

    def release(self) -> None:
        ...


EngineFactory = Callable[[], MediaEngine]


class QtMediaEngine(QObject):
    """QMediaPlayer with an audio output and no video sink."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.on_error: Optional[ErrorHandler] = None
        self.player: Optional[QMediaPlayer] = QMediaPlayer(self)
        self.audio_output = QAudioOutput(self)
        self.player.setAudioOutput(self.audio_output)
        self.player.errorOccurred.connect(self._on_media_error)

    def load(self, url: str) -> None:
        source = QUrl(url)
        if not source.isValid():
            raise EngineStartFailedError(f"Media engine rejected the stream URL: {url}")
        self._require_player().setSource(source)

    def play(self) -> None:
        player = self._require_player()
        player.play()
        if player.error() != QMediaPlayer.Error.NoError:
            raise EngineStartFailedError(player.errorString() or "Playback failed")

    def pause(self) -> None:
        if self.player is not None:
            self.player.pause()

    def set_muted(self, muted: bool) -> None:
        self.audio_output.setMuted(muted)

    def release(self) -> None:
        if self.player is None:
            return
        self.on_error = None
        self.player.errorOccurred.disconnect(self._on_media_error)
        self.player.stop()
        self.player.setSource(QUrl())
        self.player.deleteLater()
        self.player = None
        self.audio_output.deleteLater()
        self.deleteLater()

    def _require_player(self) -> QMediaPlayer:
        if self.player is None:
            raise EngineStartFailedError("Media engine was already released")
        return self.player

    def _on_media_error(self, error: QMediaPlayer.Error, error_string: str = "") -> None:
        if error == QMediaPlayer.Error.NoError:
            return
        message = error_string or (self.player.errorString() if self.player else "") or "Playback failed"
        logger.warning("Media engine error: %s", message)
        if self.on_error is not None:
            self.on_error(message)
