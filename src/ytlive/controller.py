"""Playback state machine tying URL validation, yt-dlp and the media engine together."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QThreadPool, QTimer, pyqtSignal

from .engine import EngineFactory, MediaEngine, QtMediaEngine
from .errors import DownloadFailedError, InstallFailedError, InvalidURLError, YtLiveError
from .extractor import StreamExtractor
from .installer import ToolInstaller
from .state import PlaybackState, PlaybackStatus
from .validator import is_valid_youtube_url
from .workers import JobFailure, SessionJob

logger = logging.getLogger(__name__)

TICK_INTERVAL_MS = 100
RESTART_DELAY_MS = 100

Clock = Callable[[], float]


@dataclass
class StreamSession:
    session_id: int
    source_url: str
    tool_path: Optional[str] = None
    stream_url: Optional[str] = None


@dataclass(frozen=True)
class ExtractionOutcome:
    tool_path: str
    stream_url: str


class PlaybackController(QObject):
    """Single owner of playback state.

    Every public method must be called on the thread the controller lives
    on. Installation and extraction run in ``thread_pool``; their results
    are routed back through queued signals and dropped when the session
    they belong to is no longer current.
    """

    stateChanged = pyqtSignal(object)
    elapsedChanged = pyqtSignal(float)
    mutedChanged = pyqtSignal(bool)
    urlChanged = pyqtSignal(str)
    errorOccurred = pyqtSignal(str)
    installProgress = pyqtSignal(str)
    installFailed = pyqtSignal(str)

    _engineFailed = pyqtSignal(int, str)

    def __init__(
        self,
        installer: ToolInstaller,
        extractor: Optional[StreamExtractor] = None,
        *,
        engine_factory: Optional[EngineFactory] = None,
        thread_pool=None,
        clock: Clock = time.monotonic,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.installer = installer
        self.extractor = extractor or StreamExtractor()
        self.engine_factory: EngineFactory = engine_factory or QtMediaEngine
        self.thread_pool = thread_pool if thread_pool is not None else QThreadPool.globalInstance()
        self.clock = clock

        self._state = PlaybackState.stopped()
        self._session: Optional[StreamSession] = None
        self._session_counter = 0
        self._engine: Optional[MediaEngine] = None
        self._muted = False
        self._current_url = ""

        self._accumulated = 0.0
        self._interval_start: Optional[float] = None
        self._elapsed = 0.0
        self._timer = QTimer(self)
        self._timer.setInterval(TICK_INTERVAL_MS)
        self._timer.timeout.connect(self._tick)

        self._engineFailed.connect(self._on_engine_failed)

    # ------------------------------------------------------------------
    # Observable properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_muted(self) -> bool:
        return self._muted

    @property
    def current_url(self) -> str:
        return self._current_url

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def session(self) -> Optional[StreamSession]:
        return self._session

    @property
    def has_engine(self) -> bool:
        return self._engine is not None

    @property
    def can_restart(self) -> bool:
        return bool(self._current_url)

    @property
    def can_toggle_mute(self) -> bool:
        return self._state.is_playing

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def play(self, url: str) -> None:
        if not self._state.can_play:
            return
        if not is_valid_youtube_url(url):
            self._fail(InvalidURLError("Invalid YouTube URL"))
            return

        # a paused session is being replaced; its engine goes first
        self._release_engine()
        self._stop_timer()
        self._reset_elapsed()

        self._session_counter += 1
        session = StreamSession(session_id=self._session_counter, source_url=url)
        self._session = session
        self._set_url(url)
        self._set_state(PlaybackState.loading())
        logger.info("Resolving audio stream for %s", url)

        job = SessionJob(session.session_id, self._resolve_stream, url)
        job.signals.succeeded.connect(self._on_extraction_succeeded)
        job.signals.failed.connect(self._on_extraction_failed)
        job.signals.progress.connect(self.installProgress)
        self.thread_pool.start(job)

    def pause(self) -> None:
        if not self._state.can_pause:
            return
        if self._engine is not None:
            self._engine.pause()
        self._pause_timer()
        stream_url = self._session.stream_url if self._session else None
        self._set_state(PlaybackState.paused(stream_url))

    def resume(self) -> None:
        if self._state.status is not PlaybackStatus.PAUSED or self._engine is None:
            return
        self._engine.play()
        self._start_timer()
        self._set_state(PlaybackState.playing(self._session.stream_url))

    def toggle_playback(self) -> None:
        if self._state.can_pause:
            self.pause()
        elif self._state.status is PlaybackStatus.PAUSED:
            self.resume()

    def stop(self) -> None:
        if not self._state.can_stop:
            return
        self._teardown()
        self._set_url("")
        self._set_state(PlaybackState.stopped())

    def restart(self) -> None:
        url = self._current_url
        self.stop()
        if not url:
            return
        # engine teardown finishes on the event loop; replay once it has run
        QTimer.singleShot(RESTART_DELAY_MS, lambda: self.play(url))

    def mute(self) -> None:
        self._set_muted(True)

    def unmute(self) -> None:
        self._set_muted(False)

    def toggle_mute(self) -> None:
        self._set_muted(not self._muted)

    def shutdown(self) -> None:
        """Release everything regardless of state; used when the host exits."""
        if self._state.can_stop:
            self.stop()
        else:
            self._teardown()

    # ------------------------------------------------------------------
    # Background pipeline
    # ------------------------------------------------------------------

    def _resolve_stream(self, url: str, progress_callback=None) -> ExtractionOutcome:
        location = self.installer.ensure_installed(progress_callback)
        stream_url = self.extractor.extract_stream_url(url, location.path)
        return ExtractionOutcome(tool_path=location.path, stream_url=stream_url)

    def _is_current(self, session_id: int) -> bool:
        return (
            self._session is not None
            and self._session.session_id == session_id
            and self._state.status is PlaybackStatus.LOADING
        )

    def _on_extraction_succeeded(self, session_id: int, outcome: ExtractionOutcome) -> None:
        if not self._is_current(session_id):
            logger.debug("Discarding stream for superseded session %d", session_id)
            return
        self._session.tool_path = outcome.tool_path
        self._session.stream_url = outcome.stream_url

        engine = None
        try:
            engine = self.engine_factory()
            engine.on_error = lambda message: self._engineFailed.emit(session_id, message)
            engine.load(outcome.stream_url)
            engine.set_muted(self._muted)
            engine.play()
        except Exception as exc:
            if engine is not None:
                engine.release()
            self._fail(exc)
            return
        if not self._is_current(session_id):
            # the engine reported a failure while starting
            engine.release()
            return

        self._engine = engine
        self._reset_elapsed()
        self._start_timer()
        self._set_state(PlaybackState.playing(outcome.stream_url))
        logger.info("Playing %s", self._session.source_url)

    def _on_extraction_failed(self, failure: JobFailure) -> None:
        if not self._is_current(failure.session_id):
            logger.debug("Discarding failure for superseded session %d", failure.session_id)
            return
        if isinstance(failure.exception, (DownloadFailedError, InstallFailedError)):
            self.installFailed.emit(failure.message)
        self._fail(failure.exception)

    def _on_engine_failed(self, session_id: int, message: str) -> None:
        if self._session is None or self._session.session_id != session_id:
            return
        if self._state.status not in (
            PlaybackStatus.LOADING,
            PlaybackStatus.PLAYING,
            PlaybackStatus.PAUSED,
        ):
            return
        self._fail(YtLiveError(message or "Playback failed"))

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _fail(self, exc: BaseException) -> None:
        message = str(exc) or exc.__class__.__name__
        logger.error("Playback error: %s", message)
        self._teardown()
        self._set_state(PlaybackState.error(message))
        self.errorOccurred.emit(message)

    def _teardown(self) -> None:
        self._stop_timer()
        self._release_engine()
        self._session = None
        self._reset_elapsed()

    def _release_engine(self) -> None:
        engine, self._engine = self._engine, None
        if engine is not None:
            engine.on_error = None
            engine.release()

    def _set_state(self, state: PlaybackState) -> None:
        if state == self._state:
            return
        self._state = state
        self.stateChanged.emit(state)

    def _set_url(self, url: str) -> None:
        if url != self._current_url:
            self._current_url = url
            self.urlChanged.emit(url)

    def _set_muted(self, muted: bool) -> None:
        if self._engine is not None:
            self._engine.set_muted(muted)
        if muted != self._muted:
            self._muted = muted
            self.mutedChanged.emit(muted)

    # ------------------------------------------------------------------
    # Elapsed time
    # ------------------------------------------------------------------

    def _start_timer(self) -> None:
        self._timer.stop()
        self._interval_start = self.clock()
        self._timer.start()

    def _pause_timer(self) -> None:
        if self._interval_start is not None:
            self._accumulated += self.clock() - self._interval_start
        self._stop_timer()
        self._update_elapsed(self._accumulated)

    def _stop_timer(self) -> None:
        self._timer.stop()
        self._interval_start = None

    def _reset_elapsed(self) -> None:
        self._accumulated = 0.0
        self._update_elapsed(0.0)

    def _tick(self) -> None:
        if self._interval_start is None:
            return
        self._update_elapsed(self._accumulated + self.clock() - self._interval_start)

    def _update_elapsed(self, value: float) -> None:
        if value != self._elapsed:
            self._elapsed = value
            self.elapsedChanged.emit(value)
