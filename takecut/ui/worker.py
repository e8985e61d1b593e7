"""
Background worker for long-running tasks (waveform extraction, export).
"""

from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QRunnable, QObject, Signal, Slot

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    """Worker sinyalleri."""
    started = Signal()
    finished = Signal()
    error = Signal(object)      # exception instance
    result = Signal(object)
    progress = Signal(int, str)  # value (0-100), message


class Worker(QRunnable):
    """
    Run ``fn(progress_callback, *args, **kwargs)`` on the thread pool.

    Exceptions are emitted as objects so the window can tell a media engine
    failure from a rejected request.

    Usage:
        def do_work(progress_callback):
            progress_callback(50, "Encoding...")
            return result

        worker = Worker(do_work)
        worker.signals.result.connect(on_complete, Qt.QueuedConnection)
        worker.signals.error.connect(on_error, Qt.QueuedConnection)
        thread_pool.start(worker)
    """

    def __init__(self, fn: Callable, *args, **kwargs):
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = WorkerSignals()
        self.setAutoDelete(False)

    @Slot()
    def run(self):
        self.signals.started.emit()
        try:
            result = self.fn(self._progress_callback, *self.args, **self.kwargs)
        except Exception as e:
            logger.exception(f"Worker error: {e}")
            self.signals.error.emit(e)
        else:
            self.signals.result.emit(result)
        finally:
            self.signals.finished.emit()

    def _progress_callback(self, value: int, message: str = ""):
        self.signals.progress.emit(value, message)
