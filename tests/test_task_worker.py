"""Tests for the QThread task runner."""

import threading
import time

import pytest
from PyQt6.QtCore import QObject, pyqtSlot

from areamap.workers.task_worker import ThreadedTaskRunner

from conftest import wait_until


class Receiver(QObject):
    """GUI-thread object collecting task outcomes."""

    def __init__(self):
        super().__init__()
        self.results = []
        self.errors = []
        self.threads = []

    @pyqtSlot(object)
    def on_finished(self, result):
        self.threads.append(threading.get_ident())
        self.results.append(result)

    @pyqtSlot(object)
    def on_error(self, exc):
        self.threads.append(threading.get_ident())
        self.errors.append(exc)


@pytest.fixture
def threaded(qapp):
    r = ThreadedTaskRunner()
    yield r
    r.shutdown()
    wait_until(qapp, lambda: r.pending() == 0)


@pytest.fixture
def receiver(qapp):
    return Receiver()


class TestThreadedTaskRunner:
    def test_results_delivered_on_gui_thread(self, qapp, threaded, receiver):
        """Tasks run off the GUI thread; both outcomes come back on it."""
        worker_threads = []

        def work():
            worker_threads.append(threading.get_ident())
            return 42

        def broken():
            raise ValueError("bad payload")

        threaded.submit(work, receiver.on_finished, receiver.on_error, "work")
        threaded.submit(broken, receiver.on_finished, receiver.on_error, "broken")

        assert wait_until(qapp, lambda: receiver.results and receiver.errors)
        main = threading.get_ident()
        assert receiver.results == [42]
        assert isinstance(receiver.errors[0], ValueError)
        assert receiver.threads == [main, main]
        assert worker_threads and worker_threads[0] != main

    def test_pending_drains(self, qapp, threaded, receiver):
        gate = threading.Event()
        threaded.submit(lambda: gate.wait(5) and "done", receiver.on_finished, receiver.on_error)
        assert threaded.pending() == 1
        gate.set()
        assert wait_until(qapp, lambda: threaded.pending() == 0 and receiver.results)
        assert receiver.results == ["done"]

    def test_shutdown_waits_for_running_tasks(self, qapp, threaded, receiver):
        """A task still running at shutdown finishes and its result is delivered."""
        def slow():
            time.sleep(0.2)
            return "slow"

        threaded.submit(slow, receiver.on_finished, receiver.on_error, "slow")
        threaded.shutdown()

        assert wait_until(qapp, lambda: receiver.results == ["slow"])
