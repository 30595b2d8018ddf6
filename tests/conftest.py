"""
Shared fixtures for the area map tests.

Network work is routed through a ManualRunner so tests decide when, and in
which order, background jobs resolve.
"""

import itertools
import os
import time

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication  # noqa: E402

from areamap.core.areas_api import CreateAreaResponse  # noqa: E402
from areamap.core.layers import LayerArena, RenderSurface  # noqa: E402
from areamap.core.geometry import make_polygon_feature  # noqa: E402
from areamap.core.models.area import Area  # noqa: E402
from areamap.core.selection import SelectionSet  # noqa: E402
from areamap.core.store import AreaStore  # noqa: E402


class Job:
    def __init__(self, fn, on_finished, on_error, name):
        self.fn = fn
        self.on_finished = on_finished
        self.on_error = on_error
        self.name = name

    def run(self):
        try:
            result = self.fn()
        except Exception as exc:
            self.on_error(exc)
            return
        self.on_finished(result)

    def finish(self, result):
        self.on_finished(result)

    def fail(self, exc):
        self.on_error(exc)


class ManualRunner:
    """Task runner that queues jobs until the test resolves them."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, on_finished, on_error, name="task"):
        self.jobs.append(Job(fn, on_finished, on_error, name))

    def pop(self, index=0) -> Job:
        return self.jobs.pop(index)

    def run_all(self):
        while self.jobs:
            self.jobs.pop(0).run()


class FakeSurface(RenderSurface):
    def __init__(self):
        self.layers = []
        self.removed = []
        self.rendered = []

    def add_layer(self, name):
        self.layers.append(name)
        return name

    def remove_layer(self, handle):
        self.removed.append(handle)
        if handle in self.layers:
            self.layers.remove(handle)

    def render_areas(self, items):
        self.rendered.append(list(items))


class FakeApi:
    """Stands in for AreasApiClient."""

    def __init__(self):
        self.responses = []
        self.get_calls = []
        self.saved = []
        self._ids = itertools.count(100)

    def get_areas(self, bounds=None, area_type=None):
        self.get_calls.append((bounds, area_type))
        return self.responses.pop(0) if self.responses else []

    def create_area(self, area):
        self.saved.append(("create", area))
        return CreateAreaResponse(area_id=next(self._ids), message="created")

    def update_area(self, area):
        self.saved.append(("update", area))
        return CreateAreaResponse(area_id=area.id, message="updated")


def square_ring(lon=0.0, lat=0.0, size=1.0):
    return [[lon, lat], [lon + size, lat], [lon + size, lat + size], [lon, lat + size], [lon, lat]]


def make_area(area_id=None, name=None, is_custom=False, ring=None, area_type="poi"):
    ring = ring or square_ring()
    name = name or f"Area {area_id}"
    return Area(
        name=name,
        geometry=make_polygon_feature(ring, {"name": name}),
        id=area_id,
        type=area_type,
        is_custom=is_custom,
    )


def wait_until(app, predicate, timeout=5.0):
    """Process Qt events until predicate() holds; False on timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        app.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    app.processEvents()
    return predicate()


class SignalRecorder:
    """Collects signal emissions as tuples of their arguments."""

    def __init__(self, signal):
        self.calls = []
        signal.connect(self._record)

    def _record(self, *args):
        self.calls.append(args)

    def __len__(self):
        return len(self.calls)

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def runner():
    return ManualRunner()


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def store(qapp):
    return AreaStore()


@pytest.fixture
def selection(qapp, store):
    return SelectionSet(is_drawn=store.contains_drawn)


@pytest.fixture
def arena():
    return LayerArena()
