"""
Inbound map events.

The map widget never calls into the state machine directly: it posts one of
the events below on a MapEventChannel and the controller dispatches it.
Layer handles carried by the events are opaque; only the render surface that
produced them knows what they are.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from areamap.core.models.area import Area
from areamap.core.models.bounds import Bounds


@dataclass
class DrawStarted:
    layer: Any = None  # in-progress gesture layer, if the widget made one


@dataclass
class GeometryDrawn:
    ring: List[List[float]]
    layer: Any = None


@dataclass
class DrawAborted:
    pass


@dataclass
class GeometryEdited:
    area: Area
    ring: List[List[float]]


@dataclass
class GeometryDeleted:
    area: Area


@dataclass
class BoundsChanged:
    bounds: Bounds


@dataclass
class AreaClicked:
    area: Optional[Area]  # None clears the clicked highlight


class MapEventChannel(QObject):
    """
    Single inbound channel between the map widget and the controller.

    Signals:
        event_posted(object): one of the event dataclasses in this module
    """

    event_posted = pyqtSignal(object)

    def post(self, event):
        self.event_posted.emit(event)
