"""Runs the submission request off the GUI thread."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Qt, Signal, Slot


class _JobSignals(QObject):
    finished = Signal(object)


class _SubmissionTask(QRunnable):
    def __init__(self, job: Callable[[], object], on_success, on_error) -> None:
        super().__init__()
        self.signals = _JobSignals()
        self._job = job
        self._on_success = on_success
        self._on_error = on_error

    def run(self) -> None:
        try:
            result = self._job()
        except Exception as exc:  # handed back to the GUI thread below
            self.signals.finished.emit((self, lambda error=exc: self._on_error(error)))
            return
        self.signals.finished.emit((self, lambda: self._on_success(result)))


class QtSubmissionRunner(QObject):
    """:class:`SubmissionRunner` that posts results back to the GUI thread."""

    def __init__(self, parent: QObject | None = None, pool: QThreadPool | None = None) -> None:
        super().__init__(parent)
        self._pool = pool or QThreadPool.globalInstance()
        self._tasks: set[_SubmissionTask] = set()

    def run(self, job, on_success, on_error) -> None:
        task = _SubmissionTask(job, on_success, on_error)
        task.setAutoDelete(False)
        task.signals.finished.connect(self._deliver, Qt.ConnectionType.QueuedConnection)
        self._tasks.add(task)
        self._pool.start(task)

    @Slot(object)
    def _deliver(self, message: tuple[_SubmissionTask, Callable[[], None]]) -> None:
        task, callback = message
        self._tasks.discard(task)
        callback()
