"""Tests for the map widget as a render surface and event source."""

import pytest
from PyQt6.QtCore import QEvent, QPointF, Qt
from PyQt6.QtGui import QMouseEvent
from PyQt6.QtWidgets import QGraphicsPathItem, QGraphicsPolygonItem, QGraphicsScene

from areamap.core.controller import AreaMapController
from areamap.core.draw_session import DrawSession
from areamap.core.events import BoundsChanged, DrawAborted, GeometryDeleted, GeometryDrawn, MapEventChannel
from areamap.core.models.area import build_submitted_area
from areamap.core.models.map_info import MapInfo
from areamap.core.projection import project
from areamap.ui.map.map_view import MODE_ADD_AREA, MODE_RESHAPE, MODE_SELECT, RENDER_ITEM_ROLE, MapView

from conftest import SignalRecorder, make_area


@pytest.fixture
def channel(qapp):
    return MapEventChannel()


@pytest.fixture
def posted(channel):
    return SignalRecorder(channel.event_posted)


@pytest.fixture
def view(qapp, channel):
    scene = QGraphicsScene()
    v = MapView(scene, channel, MapInfo(0.0, 0.0, 100.0), vertex_count=8)
    yield v
    v.deleteLater()


def polygons(view):
    return [i for i in view._area_items if isinstance(i, QGraphicsPolygonItem)]


class TestRenderAreas:
    def test_one_polygon_per_item(self, view):
        items = project([make_area(1), make_area(2)], [], None, None)
        view.render_areas(items)

        polys = polygons(view)
        assert [p.data(RENDER_ITEM_ROLE).area.id for p in polys] == [1, 2]

    def test_rerender_replaces_items(self, view):
        """Rendering again leaves only the new projection in the scene."""
        view.render_areas(project([make_area(1), make_area(2)], [], None, None))
        view.render_areas(project([make_area(3)], [], None, None))

        assert len(polygons(view)) == 1
        in_scene = [i for i in view.scene().items() if i.data(RENDER_ITEM_ROLE) is not None]
        assert [i.data(RENDER_ITEM_ROLE).area.id for i in in_scene] == [3]

    def test_vertex_handles_in_reshape_mode(self, view):
        view.set_mode(MODE_RESHAPE)
        view.render_areas(project([make_area(1)], [make_area(None, "mine", is_custom=True)], None, None))

        # four corners of the custom square; the server area has none
        assert len(view._area_items) == 2 + 4


class TestModes:
    def test_unknown_mode(self, view):
        with pytest.raises(ValueError):
            view.set_mode("PAINT")

    def test_mode_switch_aborts_gesture(self, view, posted):
        """Leaving draw mode mid-gesture removes its layer and reports the abort."""
        view.set_mode(MODE_ADD_AREA)
        layer = QGraphicsPathItem()
        view.scene().addItem(layer)
        view.temp_item = layer
        view.drawing_poly = [QPointF(0, 0)]

        view.set_mode(MODE_SELECT)

        assert view.temp_item is None
        assert layer.scene() is None
        assert isinstance(posted.last[0], DrawAborted)


class TestGesture:
    def test_finished_gesture_posts_ring(self, view, posted):
        """A gesture is thinned and reported as [lon, lat] pairs with its layer."""
        layer = QGraphicsPathItem()
        view.scene().addItem(layer)
        view.temp_item = layer
        view.drawing_poly = [QPointF(0, 0), QPointF(100, 0), QPointF(100, -100), QPointF(0, -100)]

        view._finish_gesture()

        event = posted.last[0]
        assert isinstance(event, GeometryDrawn)
        assert event.layer is layer
        assert len(event.ring) == 8
        assert event.ring[0] == [0.0, 0.0]
        assert all(0.0 <= lon <= 1.0 and 0.0 <= lat <= 1.0 for lon, lat in event.ring)
        assert view.temp_item is None

    def test_remove_layer(self, view):
        layer = QGraphicsPathItem()
        view.scene().addItem(layer)
        view.remove_layer(layer)
        assert layer.scene() is None


class TestBounds:
    def test_post_bounds(self, view, posted):
        view.post_bounds()
        event = posted.last[0]
        assert isinstance(event, BoundsChanged)
        assert event.bounds.lat_min <= event.bounds.lat_max


SQUARE_PTS = [QPointF(0, 0), QPointF(100, 0), QPointF(100, -100), QPointF(0, -100)]


def mouse(kind, x, y):
    pos = QPointF(x, y)
    return QMouseEvent(kind, pos, pos, Qt.MouseButton.LeftButton, Qt.MouseButton.LeftButton,
                       Qt.KeyboardModifier.NoModifier)


def press(view, x, y):
    view.mousePressEvent(mouse(QEvent.Type.MouseButtonPress, x, y))


def release(view, x, y):
    view.mouseReleaseEvent(mouse(QEvent.Type.MouseButtonRelease, x, y))


@pytest.fixture
def wired(qapp, api, runner):
    """A controller rendering into a real map view."""
    controller = AreaMapController(api, runner)
    v = MapView(QGraphicsScene(), controller.channel, MapInfo(0.0, 0.0, 100.0), vertex_count=8)
    controller.surface = v
    controller.draw.state_changed.connect(v.set_draw_state)
    controller.render_changed.connect(lambda: v.render_areas(controller.render_items()))
    yield controller, v
    v.deleteLater()


def path_items(view):
    return [i for i in view.scene().items() if isinstance(i, QGraphicsPathItem)]


class TestGestureLifecycle:
    def test_press_without_release_is_aborted(self, wired):
        """A second press drops the unreleased gesture so drawing keeps working."""
        controller, view = wired
        view.set_mode(MODE_ADD_AREA)

        press(view, 10, 10)
        first = view.temp_item
        press(view, 20, 20)

        assert first.scene() is None
        assert view.temp_item is not first
        assert controller.draw.state == DrawSession.STATE_DRAWING
        assert len(controller.arena) == 1

        view.drawing_poly = list(SQUARE_PTS)
        release(view, 20, 20)

        assert controller.draw.state == DrawSession.STATE_PENDING
        assert path_items(view) == [controller.arena.get(controller.draw.session_id)]

    def test_committed_gesture_replaced_by_polygon(self, wired):
        """After commit the area exists once in the scene, as a rendered polygon."""
        controller, view = wired
        view.set_mode(MODE_ADD_AREA)
        press(view, 0, 0)
        view.drawing_poly = list(SQUARE_PTS)
        release(view, 0, 0)

        area = controller.submit(build_submitted_area(controller.draw.pending, "Zone A", "a@x.com"))

        assert path_items(view) == []
        assert view._gesture_layers == []
        assert [p.data(RENDER_ITEM_ROLE).area for p in polygons(view)] == [area]

        controller.channel.post(GeometryDeleted(area))
        assert polygons(view) == []
