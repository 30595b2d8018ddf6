"""
Background task workers.

Network calls (viewport fetches, area create/update) run off the UI thread.
Each submitted task gets its own QThread; its outcome comes back to the GUI
thread as a queued signal, so state transitions stay single-threaded.
"""

import traceback

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from areamap.core.constants import logger


class TaskWorker(QObject):
    """
    Run one callable off the UI thread.

    Signals:
        finished: the callable's return value
        error: the exception it raised
    """

    finished = pyqtSignal(object)
    error = pyqtSignal(object)

    def __init__(self, fn, name="task", parent=None):
        super().__init__(parent)
        self._fn = fn
        self.name = name

    def run(self):
        try:
            result = self._fn()
        except Exception as exc:
            logger.debug(f"Task '{self.name}' failed:\n{traceback.format_exc()}")
            self.error.emit(exc)
            return
        self.finished.emit(result)


class ThreadedTaskRunner(QObject):
    """
    Starts TaskWorkers on their own threads and keeps them alive until done.

    `on_finished` / `on_error` should be bound methods (or partials of bound
    methods) of QObjects living in the GUI thread, so PyQt queues the call
    onto that thread.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._jobs = []

    def submit(self, fn, on_finished, on_error, name="task"):
        worker_thread = QThread()
        worker = TaskWorker(fn, name)
        worker.moveToThread(worker_thread)

        worker_thread.started.connect(worker.run)
        worker.finished.connect(on_finished)
        worker.error.connect(on_error)
        worker.finished.connect(worker_thread.quit)
        worker.error.connect(worker_thread.quit)

        job = (worker_thread, worker)
        worker_thread.finished.connect(lambda: self._cleanup(job))
        self._jobs.append(job)
        worker_thread.start()

    def _cleanup(self, job):
        worker_thread, worker = job
        if job in self._jobs:
            self._jobs.remove(job)
        worker.deleteLater()
        worker_thread.deleteLater()

    def pending(self) -> int:
        return len(self._jobs)

    def shutdown(self):
        """Wait for running tasks; their results are still delivered."""
        for worker_thread, _ in list(self._jobs):
            try:
                if worker_thread.isRunning():
                    worker_thread.quit()
                    worker_thread.wait()
            except RuntimeError:
                pass  # thread already deleted
