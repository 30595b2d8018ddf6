"""
Map view module

The map widget of the area authoring subsystem. It draws a lat/lon grid,
renders the area projection and turns mouse gestures into map events posted
on the controller's MapEventChannel. It never mutates area state itself.

Classes:
    MapView: map widget and render surface

Modes:
    SELECT: click toggles selection, drag pans
    ADD_AREA: freehand polygon gesture
    RESHAPE: drag a vertex of a custom area
    DELETE_AREA: click removes a custom area
"""

import math

from PyQt6.QtCore import QPointF, QRectF, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QPainter, QPainterPath, QPen, QPolygonF
from PyQt6.QtWidgets import (
    QGraphicsEllipseItem, QGraphicsItem, QGraphicsPathItem, QGraphicsPolygonItem, QGraphicsView, QMenu
)

from areamap.core.constants import AREA_STYLE_DRAWN, logger
from areamap.core.events import (
    AreaClicked, BoundsChanged, DrawAborted, DrawStarted, GeometryDeleted, GeometryDrawn, GeometryEdited
)
from areamap.core.geometry import (
    clamp_lat, coords_to_pixel, get_optimal_grid_step, pixel_to_coords, resample_polygon_equidistant
)
from areamap.core.layers import RenderSurface
from areamap.core.models.bounds import Bounds
from areamap.core.models.map_info import MapInfo
from areamap.ui.map.ruler_overlay import RulerOverlay

MODE_SELECT = "SELECT"
MODE_ADD_AREA = "ADD_AREA"
MODE_RESHAPE = "RESHAPE"
MODE_DELETE_AREA = "DELETE_AREA"
MODES = (MODE_SELECT, MODE_ADD_AREA, MODE_RESHAPE, MODE_DELETE_AREA)

RENDER_ITEM_ROLE = 0  # QGraphicsItem data key holding the RenderItem
CLICK_SLOP_PX = 4  # press/release distance still counted as a click
MASK_COLOR = "#d3d3d3"


class MapView(QGraphicsView, RenderSurface):
    """
    Map widget.

    Signals:
        coord_changed(float, float): (lat, lon) under the mouse
        view_changed(): zoom or pan; bounds are reported once it settles
        mode_changed(str): editing mode switched

    Attributes:
        channel: MapEventChannel receiving the map events
        map_info: scene projection parameters
        mode: current editing mode
        drawing_poly: scene points of the gesture in progress
        temp_item: gesture layer of the gesture in progress
        reshape_target: (polygon item, RenderItem, vertex index, ring) while dragging
    """

    coord_changed = pyqtSignal(float, float)
    view_changed = pyqtSignal()
    mode_changed = pyqtSignal(str)

    def __init__(self, scene, channel, map_info=None, settle_ms=300, vertex_count=24, parent=None):
        super().__init__(scene, parent)
        self.channel = channel
        self.map_info = map_info or MapInfo()
        self.vertex_count = vertex_count
        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setMouseTracking(True)
        self.ruler_overlay = RulerOverlay(self)

        self.mode = MODE_SELECT
        self.drawing_poly = []
        self.temp_item = None
        self.reshape_target = None

        self.is_panning = False
        self.last_pan_pos = None
        self.press_pos = None
        self._shown = False

        self._area_items = []
        self._gesture_layers = []

        # bounds are reported once zoom/pan has been quiet for settle_ms
        self._settle_timer = QTimer(self)
        self._settle_timer.setSingleShot(True)
        self._settle_timer.setInterval(settle_ms)
        self._settle_timer.timeout.connect(self.post_bounds)
        self.view_changed.connect(self._schedule_bounds)

        huge_val = 200000.0 * 2000.0
        self.setSceneRect(-huge_val, -huge_val, huge_val * 2, huge_val * 2)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

    # ----- viewport -----

    def center_on(self, lat, lon):
        px, py = coords_to_pixel(lat, lon, self.map_info)
        self.centerOn(px, py)
        self.view_changed.emit()

    def visible_bounds(self) -> Bounds:
        rect = self.mapToScene(self.viewport().rect()).boundingRect()
        lat_a, lon_a = pixel_to_coords(rect.left(), rect.top(), self.map_info)
        lat_b, lon_b = pixel_to_coords(rect.right(), rect.bottom(), self.map_info)
        lon_a = max(-180.0, min(180.0, lon_a))
        lon_b = max(-180.0, min(180.0, lon_b))
        return Bounds.from_corners(clamp_lat(lat_a), lon_a, clamp_lat(lat_b), lon_b)

    def _schedule_bounds(self):
        self._settle_timer.start()

    def post_bounds(self):
        self._settle_timer.stop()
        self.channel.post(BoundsChanged(self.visible_bounds()))

    def showEvent(self, event):
        super().showEvent(event)
        if not self._shown:
            self._shown = True
            self.center_on(self.map_info.center_lat, self.map_info.center_lon)

    def resizeEvent(self, event):
        self.ruler_overlay.resize(event.size())
        super().resizeEvent(event)
        self.view_changed.emit()

    def get_hit_tolerance(self):
        """Scene distance matching 10 screen pixels at the current zoom."""
        current_scale = self.transform().m11()
        if current_scale == 0:
            return 10.0
        return 10.0 / current_scale

    def drawBackground(self, painter, rect):
        painter.fillRect(rect, Qt.GlobalColor.white)

        scale = self.map_info.pixels_per_degree
        if scale <= 0:
            return

        deg_step = get_optimal_grid_step(scale * self.transform().m11())
        pixel_step = deg_step * scale
        left, right, top, bottom = rect.left(), rect.right(), rect.top(), rect.bottom()

        pen_default = QPen(QColor(220, 220, 220), 0)
        pen_greenwich = QPen(QColor("blue"), 2)
        pen_greenwich.setStyle(Qt.PenStyle.DotLine)
        pen_greenwich.setCosmetic(True)
        pen_dateline = QPen(QColor("red"), 2)
        pen_dateline.setStyle(Qt.PenStyle.DotLine)
        pen_dateline.setCosmetic(True)

        for i in range(math.floor(left / pixel_step), math.ceil(right / pixel_step) + 1):
            lon_deg = i * deg_step
            k = round(lon_deg / 180.0)
            if abs(lon_deg - k * 180.0) < 1e-5:
                painter.setPen(pen_greenwich if k % 2 == 0 else pen_dateline)
            else:
                painter.setPen(pen_default)
            x = i * pixel_step
            painter.drawLine(QPointF(x, top), QPointF(x, bottom))

        pen_equator = QPen(QColor(100, 100, 100), 2)
        pen_equator.setCosmetic(True)
        for i in range(math.floor(top / pixel_step), math.ceil(bottom / pixel_step) + 1):
            y = i * pixel_step
            painter.setPen(pen_equator if abs(y / scale) < 1e-5 else pen_default)
            painter.drawLine(QPointF(left, y), QPointF(right, y))

        # beyond the poles
        mask = QColor(MASK_COLOR)
        y_north, y_south = -90.0 * scale, 90.0 * scale
        if top < y_north:
            painter.fillRect(QRectF(left, top, right - left, y_north - top), mask)
        if bottom > y_south:
            painter.fillRect(QRectF(left, y_south, right - left, bottom - y_south), mask)

    def wheelEvent(self, event):
        factor = 1.1 if event.angleDelta().y() > 0 else 0.9

        # never zoom out past the whole world
        if factor < 1.0:
            scene_ppd = self.map_info.pixels_per_degree if self.map_info.pixels_per_degree > 0 else 1.0
            min_scale = 0.9 * self.viewport().height() / (180.0 * scene_ppd)
            current_scale = self.transform().m11()
            if current_scale * factor < min_scale:
                factor = min_scale / current_scale

        self.scale(factor, factor)
        self.ruler_overlay.update()
        self.view_changed.emit()

    # ----- render surface -----

    def remove_layer(self, handle):
        if handle in self._gesture_layers:
            self._gesture_layers.remove(handle)
        if handle is self.temp_item:
            self.temp_item = None
            self.drawing_poly = []
        if handle.scene() is self.scene():
            self.scene().removeItem(handle)

    def render_areas(self, items):
        """Replace the area layers with the given RenderItems."""
        if self.reshape_target is not None:
            # a redraw mid-drag would orphan the dragged item
            return
        for it in self._area_items:
            self.scene().removeItem(it)
        self._area_items = []

        for ri in items:
            ring = ri.area.ring
            if len(ring) < 3:
                continue
            poly = QPolygonF([QPointF(*coords_to_pixel(lat, lon, self.map_info)) for lon, lat in ring])
            item = QGraphicsPolygonItem(poly)
            style = ri.style
            pen = QPen(QColor(style["color"]), float(style["weight"]))
            pen.setCosmetic(True)
            item.setPen(pen)
            fill = QColor(style["fillColor"])
            fill.setAlphaF(float(style["fillOpacity"]))
            item.setBrush(QBrush(fill))
            item.setData(RENDER_ITEM_ROLE, ri)
            item.setZValue(3 if ri.clicked else 2 if ri.selected else 1)
            self.scene().addItem(item)
            self._area_items.append(item)

            if self.mode == MODE_RESHAPE and ri.area.is_custom:
                self._add_vertex_handles(poly)
        logger.debug(f"Rendered {len(items)} areas")

    def _add_vertex_handles(self, poly):
        r = 6
        for i in range(poly.count() - 1):
            p = poly.at(i)
            el = QGraphicsEllipseItem(-r / 2, -r / 2, r, r)
            el.setBrush(QBrush(QColor("#FF8C00")))
            el.setPen(QPen(Qt.PenStyle.NoPen))
            el.setPos(p)
            el.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIgnoresTransformations)
            el.setZValue(4)
            self.scene().addItem(el)
            self._area_items.append(el)

    def set_draw_state(self, state):
        """Drop resolved gesture layers once the draw session is idle again."""
        if state != "IDLE":
            return
        # committed areas are drawn by render_areas from here on
        for layer in self._gesture_layers:
            if layer.scene() is self.scene():
                self.scene().removeItem(layer)
        self._gesture_layers = []

    # ----- hit testing -----

    def render_item_at(self, pos):
        """Topmost RenderItem under a viewport position, or None."""
        for item in self.scene().items(self.mapToScene(pos)):
            ri = item.data(RENDER_ITEM_ROLE)
            if ri is not None:
                return ri
        return None

    def _vertex_at(self, scene_pt):
        tol = self.get_hit_tolerance()
        for item in reversed(self._area_items):
            ri = item.data(RENDER_ITEM_ROLE)
            if ri is None or not ri.area.is_custom:
                continue
            poly = item.polygon()
            for i in range(poly.count() - 1):
                p = poly.at(i)
                if abs(p.x() - scene_pt.x()) < tol and abs(p.y() - scene_pt.y()) < tol:
                    return item, ri, i
        return None

    # ----- modes -----

    def set_mode(self, mode):
        if mode not in MODES:
            raise ValueError(f"unknown map mode: {mode}")
        if self.temp_item is not None:
            self._abort_gesture()
        self.mode = mode
        self.update_cursor()
        self.mode_changed.emit(mode)

    def update_cursor(self):
        if self.mode == MODE_ADD_AREA:
            self.setCursor(Qt.CursorShape.CrossCursor)
        elif self.mode == MODE_RESHAPE:
            self.setCursor(Qt.CursorShape.OpenHandCursor)
        elif self.mode == MODE_DELETE_AREA:
            self.setCursor(Qt.CursorShape.PointingHandCursor)
        else:
            self.setCursor(Qt.CursorShape.ArrowCursor)

    # ----- mouse -----

    def start_pan(self, event):
        self.is_panning = True
        self.last_pan_pos = event.pos()
        self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.MiddleButton:
            self.start_pan(event)
            return
        if event.button() == Qt.MouseButton.RightButton:
            self.showContextMenu(event.pos())
            return
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return

        pt = self.mapToScene(event.pos())
        self.press_pos = event.pos()

        if self.mode == MODE_ADD_AREA:
            if self.temp_item is not None:
                # the previous gesture never got its release
                self._abort_gesture()
            self.drawing_poly = [pt]
            self.temp_item = QGraphicsPathItem()
            pen = QPen(QColor(AREA_STYLE_DRAWN["color"]), AREA_STYLE_DRAWN["weight"])
            pen.setCosmetic(True)
            self.temp_item.setPen(pen)
            self.temp_item.setZValue(5)
            self.scene().addItem(self.temp_item)
            self._gesture_layers.append(self.temp_item)
            self.channel.post(DrawStarted(self.temp_item))
        elif self.mode == MODE_RESHAPE:
            hit = self._vertex_at(pt)
            if hit is None:
                self.start_pan(event)
                return
            item, ri, idx = hit
            self.reshape_target = (item, ri, idx, [list(c) for c in ri.area.ring])
        elif self.mode == MODE_DELETE_AREA:
            ri = self.render_item_at(event.pos())
            if ri is not None:
                self.channel.post(GeometryDeleted(ri.area))
        else:
            self.start_pan(event)

    def mouseMoveEvent(self, event):
        if self.is_panning and self.last_pan_pos:
            delta = event.pos() - self.last_pan_pos
            self.last_pan_pos = event.pos()
            hs = self.horizontalScrollBar()
            vs = self.verticalScrollBar()
            hs.setValue(hs.value() - delta.x())
            vs.setValue(vs.value() - delta.y())
            self.view_changed.emit()
            return

        pt = self.mapToScene(event.pos())
        lat, lon = pixel_to_coords(pt.x(), pt.y(), self.map_info)
        self.coord_changed.emit(lat, lon)

        if self.mode == MODE_ADD_AREA and self.drawing_poly and self.temp_item is not None:
            self.drawing_poly.append(pt)
            path = self.temp_item.path()
            if path.elementCount() == 0:
                path.moveTo(self.drawing_poly[0])
            path.lineTo(pt)
            self.temp_item.setPath(path)
        elif self.mode == MODE_RESHAPE and self.reshape_target:
            item, ri, idx, ring = self.reshape_target
            ring[idx] = [lon, clamp_lat(lat)]
            if idx == 0:
                ring[-1] = list(ring[0])
            poly = item.polygon()
            poly.replace(idx, pt)
            if idx == 0:
                poly.replace(poly.count() - 1, pt)
            item.setPolygon(poly)

        super().mouseMoveEvent(event)
        self.ruler_overlay.update()

    def mouseReleaseEvent(self, event):
        if self.is_panning:
            self.is_panning = False
            self.update_cursor()
            if self.mode == MODE_SELECT and self._is_click(event.pos()):
                ri = self.render_item_at(event.pos())
                self.channel.post(AreaClicked(ri.area if ri is not None else None))
            self.press_pos = None
            return

        if self.mode == MODE_ADD_AREA and self.temp_item is not None:
            self._finish_gesture()
        elif self.mode == MODE_RESHAPE and self.reshape_target:
            _, ri, _, ring = self.reshape_target
            self.reshape_target = None
            self.channel.post(GeometryEdited(ri.area, ring))

        self.press_pos = None
        super().mouseReleaseEvent(event)

    def _is_click(self, pos):
        if self.press_pos is None:
            return False
        d = pos - self.press_pos
        return abs(d.x()) <= CLICK_SLOP_PX and abs(d.y()) <= CLICK_SLOP_PX

    def _finish_gesture(self):
        layer = self.temp_item
        pts = [(p.x(), p.y()) for p in self.drawing_poly]
        self.temp_item = None
        self.drawing_poly = []

        if len(pts) >= 3:
            pts = resample_polygon_equidistant(pts, self.vertex_count)
        ring = []
        for x, y in pts:
            lat, lon = pixel_to_coords(x, y, self.map_info)
            ring.append([lon, clamp_lat(lat)])

        # the thinned, closed outline stays visible while the dialog is open
        path = QPainterPath()
        path.addPolygon(QPolygonF([QPointF(x, y) for x, y in pts]))
        path.closeSubpath()
        layer.setPath(path)
        self.channel.post(GeometryDrawn(ring, layer))

    def _abort_gesture(self):
        layer = self.temp_item
        self.temp_item = None
        self.drawing_poly = []
        if layer is not None:
            self.remove_layer(layer)
        self.channel.post(DrawAborted())

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape and self.temp_item is not None:
            self._abort_gesture()
            return
        super().keyPressEvent(event)

    def showContextMenu(self, pos):
        ri = self.render_item_at(pos)
        menu = QMenu(self)

        if ri is not None:
            a_sel = menu.addAction("Deselect Area" if ri.selected else "Select Area")
            a_sel.triggered.connect(lambda: self.channel.post(AreaClicked(ri.area)))
            if ri.area.is_custom:
                a_reshape = menu.addAction("Reshape Area")
                a_reshape.triggered.connect(lambda: self.set_mode(MODE_RESHAPE))
                a_del = menu.addAction("Delete Area")
                a_del.triggered.connect(lambda: self.channel.post(GeometryDeleted(ri.area)))
            menu.addSeparator()

        a_draw = menu.addAction("Draw Area")
        a_draw.triggered.connect(lambda: self.set_mode(MODE_ADD_AREA))
        a_refresh = menu.addAction("Refresh Areas")
        a_refresh.triggered.connect(self.post_bounds)
        menu.exec(self.mapToGlobal(pos))
