"""Background jobs whose results are tagged with the playback session that started them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from PyQt6.QtCore import QObject, QRunnable, pyqtSignal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobFailure:
    session_id: int
    exception: Exception

    @property
    def message(self) -> str:
        return str(self.exception) or self.exception.__class__.__name__


class SessionJobSignals(QObject):
    succeeded = pyqtSignal(int, object)
    failed = pyqtSignal(object)
    progress = pyqtSignal(str)


class SessionJob(QRunnable):
    """Runs ``fn(*args, progress_callback=...)`` on a pool thread.

    Exactly one of ``succeeded`` or ``failed`` is emitted. Receivers that are
    bound methods of a QObject get the result on that object's thread.
    """

    def __init__(self, session_id: int, fn: Callable[..., object], *args) -> None:
        super().__init__()
        self.session_id = session_id
        self.fn = fn
        self.args = args
        self.signals = SessionJobSignals()

    def run(self) -> None:
        try:
            result = self.fn(*self.args, progress_callback=self.signals.progress.emit)
        except Exception as exc:
            logger.debug("Job for session %d failed", self.session_id, exc_info=True)
            self.signals.failed.emit(JobFailure(self.session_id, exc))
            return
        self.signals.succeeded.emit(self.session_id, result)
