"""
Ruler overlay module

Latitude / longitude rulers painted over the map view.

Classes:
    RulerOverlay: ruler overlay widget
"""

import math

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor, QFont, QPainter, QPen
from PyQt6.QtWidgets import QWidget

from areamap.core.geometry import get_optimal_grid_step, normalize_lon

RULER_SIZE = 25  # ruler band thickness in pixels


def _tick_format(deg_step):
    if deg_step < 0.1:
        decimals = 2
    elif deg_step < 1:
        decimals = 1
    else:
        decimals = 0

    def fmt(val):
        if decimals == 0:
            return f"{int(round(val))}"
        return f"{val:.{decimals}f}"
    return fmt


class RulerOverlay(QWidget):
    """
    Transparent widget drawing longitude ticks on top and latitude ticks on
    the left edge of the map view. Mouse events pass through to the view.
    """

    def __init__(self, view):
        super().__init__(view)
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.setAttribute(Qt.WidgetAttribute.WA_NoSystemBackground)
        self.view = view
        self.setStyleSheet("background-color: transparent; color: black;")

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(0, 0, self.width(), RULER_SIZE, QColor(245, 245, 245, 230))
        painter.fillRect(0, 0, RULER_SIZE, self.height(), QColor(245, 245, 245, 230))
        painter.setPen(QPen(Qt.GlobalColor.gray, 1))
        painter.drawLine(0, RULER_SIZE, self.width(), RULER_SIZE)
        painter.drawLine(RULER_SIZE, 0, RULER_SIZE, self.height())

        mi = self.view.map_info
        scale = mi.pixels_per_degree
        total_scale = scale * self.view.transform().m11()
        if scale <= 0 or total_scale <= 0:
            return

        scene_rect = self.view.mapToScene(self.view.viewport().rect()).boundingRect()
        deg_step = get_optimal_grid_step(total_scale)
        fmt = _tick_format(deg_step)
        painter.setFont(QFont("Arial", 8))
        tick_pen = QPen(Qt.GlobalColor.black, 1)

        # longitude, top edge
        start = math.floor((scene_rect.left() / scale) / deg_step)
        end = math.ceil((scene_rect.right() / scale) / deg_step)
        for i in range(start, end + 1):
            lon_deg = i * deg_step
            vx = self.view.mapFromScene(lon_deg * scale, scene_rect.top()).x()
            if not (RULER_SIZE <= vx <= self.width()):
                continue
            painter.setPen(tick_pen)
            painter.drawLine(vx, 0, vx, 5)
            font = painter.font()
            font.setBold(abs(lon_deg % 180) < 1e-9)
            painter.setFont(font)
            # wrapped value first, unwrapped scene longitude in brackets
            painter.drawText(vx + 4, 15, f"{fmt(normalize_lon(lon_deg))}({fmt(lon_deg)})")

        # latitude, left edge (scene y grows southwards)
        start = math.floor((-scene_rect.bottom() / scale) / deg_step)
        end = math.ceil((-scene_rect.top() / scale) / deg_step)
        for i in range(start, end + 1):
            lat_deg = i * deg_step
            vy = self.view.mapFromScene(scene_rect.left(), -lat_deg * scale).y()
            if not (RULER_SIZE <= vy <= self.height()):
                continue
            painter.setPen(tick_pen)
            painter.drawLine(0, vy, 5, vy)
            painter.save()
            painter.translate(15, vy + 4)
            font = painter.font()
            font.setBold(abs(lat_deg) < 0.001)
            painter.setFont(font)
            painter.drawText(0, 0, fmt(lat_deg))
            painter.restore()
