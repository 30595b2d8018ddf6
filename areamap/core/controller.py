"""
Area map controller.

Wires the subsystem together behind the single inbound event channel:

    map widget --events--> controller --> DrawSession / ViewportFetchController
                                      --> AreaStore <-> SelectionSet
    controller --render_changed--> map widget draws project(...)

Classes:
    AreaMapController: facade owning every piece of area state
"""

from typing import List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from areamap.core.constants import AREA_TYPE_POI, logger
from areamap.core.draw_session import DrawSession
from areamap.core.events import (
    AreaClicked, BoundsChanged, DrawAborted, DrawStarted, GeometryDeleted, GeometryDrawn,
    GeometryEdited, MapEventChannel
)
from areamap.core.fetch_controller import ViewportFetchController
from areamap.core.layers import LayerArena
from areamap.core.models.area import Area, area_key
from areamap.core.persistence import AreaPersistence
from areamap.core.projection import RenderItem, project
from areamap.core.selection import SelectionSet
from areamap.core.store import AreaStore


class AreaMapController(QObject):
    """
    Facade for the host UI.

    Signals:
        render_changed(): render_items() output may differ
        confirmation_requested(object): draft Area; open the dialog
        status_message(str): short human readable status
        error_reported(object): AreaMapError instance worth surfacing

    Attributes:
        channel: inbound MapEventChannel for the map widget
        store, selection, arena, draw, fetcher, persistence: the components
        clicked_id: id of the area clicked in the current interaction
    """

    render_changed = pyqtSignal()
    confirmation_requested = pyqtSignal(object)
    status_message = pyqtSignal(str)
    error_reported = pyqtSignal(object)

    def __init__(self, api, runner, surface=None, area_type=AREA_TYPE_POI, parent=None):
        super().__init__(parent)
        self.channel = MapEventChannel(self)
        self.store = AreaStore(self)
        self.selection = SelectionSet(is_drawn=self.store.contains_drawn, parent=self)
        self.arena = LayerArena()
        self.draw = DrawSession(self.store, self.selection, self.arena, surface, self)
        self.fetcher = ViewportFetchController(api, self.store, runner, area_type, self)
        self.persistence = AreaPersistence(api, runner, self)
        self.clicked_id: Optional[int] = None

        self._creating = {}  # key of placeholder being created -> needs a follow-up update
        self._handlers = {
            DrawStarted: lambda e: self.draw.begin(e.layer),
            GeometryDrawn: lambda e: self.draw.complete(e.ring, e.layer),
            DrawAborted: lambda e: self.draw.abort(),
            GeometryEdited: lambda e: self.draw.edit(e.area, e.ring),
            GeometryDeleted: lambda e: self.draw.delete(e.area),
            BoundsChanged: lambda e: self.fetcher.on_bounds_changed(e.bounds),
            AreaClicked: lambda e: self.area_clicked(e.area),
        }

        self.channel.event_posted.connect(self.dispatch)
        self.store.changed.connect(self.render_changed)
        self.selection.changed.connect(self.render_changed)

        self.draw.confirmation_requested.connect(self.confirmation_requested)
        self.draw.area_committed.connect(self._on_area_committed)
        self.draw.area_edited.connect(self._on_area_edited)
        self.draw.area_deleted.connect(self._on_area_deleted)
        self.draw.geometry_invalid.connect(self._report)
        self.draw.transition_rejected.connect(self._report)

        self.fetcher.fetch_failed.connect(self._report)
        self.fetcher.loading_changed.connect(self._on_loading_changed)

        self.persistence.area_created.connect(self._on_area_created)
        self.persistence.area_updated.connect(lambda a: self.status_message.emit(f"Saved '{a.name}'"))
        self.persistence.persistence_failed.connect(self._on_persistence_failed)

    @property
    def surface(self):
        return self.draw.surface

    @surface.setter
    def surface(self, surface):
        self.draw.surface = surface

    # ----- inbound -----

    def dispatch(self, event):
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning(f"Unhandled map event: {event!r}")
            return
        handler(event)

    def area_clicked(self, area: Optional[Area]):
        """Highlight the clicked area and toggle its selection."""
        if area is None:
            self.clicked_id = None
            self.render_changed.emit()
            return
        self.clicked_id = area.id
        # toggle emits through selection.changed
        self.selection.toggle(area)

    def submit(self, area: Area) -> Optional[Area]:
        """Confirmation dialog accepted."""
        return self.draw.submit(area)

    def cancel(self):
        """Confirmation dialog closed."""
        self.draw.cancel()

    def deselect(self, area: Area):
        if self.selection.contains(area):
            self.selection.toggle(area)

    def set_public(self, area: Area, is_public: bool) -> bool:
        return self.selection.set_public(area, is_public)

    def retry_fetch(self):
        return self.fetcher.retry()

    # ----- outbound -----

    def render_items(self) -> List[RenderItem]:
        return project(self.store.fetched, self.store.drawn, self.selection, self.clicked_id)

    # ----- internal -----

    def _report(self, err):
        self.status_message.emit(str(err))
        self.error_reported.emit(err)

    def _on_loading_changed(self, loading):
        self.status_message.emit("Loading areas..." if loading else "")

    def _save(self, area: Area):
        key = area_key(area)
        if area.id is None and key in self._creating:
            # create still in flight; send the edit once the id is known
            self._creating[key] = True
            return
        if area.id is None:
            self._creating[key] = False
        self.persistence.save(area)

    def _on_area_committed(self, area):
        self.status_message.emit(f"Created '{area.name}'")
        self._save(area)

    def _on_area_edited(self, area):
        self._save(area)

    def _on_area_deleted(self, area):
        if self.clicked_id is not None and area.id == self.clicked_id:
            self.clicked_id = None
            self.render_changed.emit()
        self.status_message.emit(f"Deleted '{area.name}'")

    def _on_persistence_failed(self, err):
        if err.operation == self.persistence.OP_CREATE and err.area is not None:
            # the next edit retries the create
            self._creating.pop(area_key(err.area), None)
        self._report(err)

    def _on_area_created(self, placeholder, created):
        needs_update = self._creating.pop(area_key(placeholder), False)
        with self.store.batch(), self.selection.batch():
            replaced = self.store.replace_drawn(placeholder, created)
            if replaced:
                self.selection.rekey(placeholder, created)
        if not replaced:
            logger.info(f"Area '{placeholder.name}' was removed before its id arrived")
            return
        if needs_update:
            self.persistence.save(created)
