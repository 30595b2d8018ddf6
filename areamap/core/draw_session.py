"""
Draw session state machine.

Drives one area at a time from gesture to committed area:

    IDLE -> DRAWING -> PENDING_CONFIRMATION -> (committed | discarded) -> IDLE

plus edit and delete of committed custom areas.

The gesture layer the widget draws stays on the surface while the
confirmation dialog is open. It is bound in the LayerArena under the session
id; a discard removes it from the surface, a commit keeps it as the area's
layer. Geometry is validated before a draft exists, so a rejected gesture
never reaches PENDING_CONFIRMATION.

Server areas (`is_custom` false) are read-only here.
"""

import itertools
from dataclasses import replace
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from areamap.core.constants import logger
from areamap.core.errors import AreaMapError, DrawSessionBusy, GeometryInvalid, ReadOnlyArea
from areamap.core.geometry import validate_ring
from areamap.core.models.area import Area, utc_now


class DrawSession(QObject):
    """
    Area authoring state machine.

    Signals:
        state_changed(str): new state
        confirmation_requested(object): draft Area awaiting the dialog
        area_committed(object): committed Area
        area_discarded(object): discarded draft
        area_edited(object): Area whose geometry was replaced
        area_deleted(object): removed Area
        geometry_invalid(object): GeometryInvalid for a rejected ring
        transition_rejected(object): DrawSessionBusy / ReadOnlyArea / AreaMapError

    Attributes:
        state: current state
        pending: draft awaiting confirmation, or None
    """

    STATE_IDLE = "IDLE"
    STATE_DRAWING = "DRAWING"
    STATE_PENDING = "PENDING_CONFIRMATION"

    state_changed = pyqtSignal(str)
    confirmation_requested = pyqtSignal(object)
    area_committed = pyqtSignal(object)
    area_discarded = pyqtSignal(object)
    area_edited = pyqtSignal(object)
    area_deleted = pyqtSignal(object)
    geometry_invalid = pyqtSignal(object)
    transition_rejected = pyqtSignal(object)

    def __init__(self, store, selection, arena, surface=None, parent=None):
        super().__init__(parent)
        self._store = store
        self._selection = selection
        self._arena = arena
        self.surface = surface

        self._ids = itertools.count(1)
        self.state = self.STATE_IDLE
        self.session_id: Optional[int] = None
        self.pending: Optional[Area] = None

    def _set_state(self, state):
        if state == self.state:
            return
        logger.debug(f"Draw session {self.state} -> {state}")
        self.state = state
        self.state_changed.emit(state)

    def _reject(self, err: AreaMapError):
        logger.warning(f"Draw transition rejected: {err}")
        self.transition_rejected.emit(err)

    def _reset(self):
        self.session_id = None
        self.pending = None
        self._set_state(self.STATE_IDLE)

    # ----- drawing -----

    def begin(self, layer=None) -> bool:
        """Widget reports the start of a polygon gesture."""
        if self.state != self.STATE_IDLE:
            # the unresolved gesture wins; this one must not leave a layer behind
            if layer is not None and self.surface is not None:
                self.surface.remove_layer(layer)
            self._reject(DrawSessionBusy(f"cannot start drawing while {self.state}"))
            return False

        self.session_id = next(self._ids)
        self._arena.bind(self.session_id, layer)
        self._set_state(self.STATE_DRAWING)
        return True

    def abort(self):
        """Widget abandoned the gesture before completing it."""
        if self.state != self.STATE_DRAWING:
            return
        self._arena.remove_from(self.surface, self.session_id)
        self._reset()

    def complete(self, ring, layer=None) -> Optional[Area]:
        """
        Widget reports a finished ring.

        Returns:
            the draft awaiting confirmation, or None when rejected
        """
        if self.state == self.STATE_PENDING:
            if layer is not None and self.surface is not None:
                self.surface.remove_layer(layer)
            self._reject(DrawSessionBusy("an area is already awaiting confirmation"))
            return None
        if self.state == self.STATE_IDLE:
            # widgets without a start notification report only completion
            self.begin(layer)
        elif layer is not None:
            self._arena.bind(self.session_id, layer)

        try:
            closed = validate_ring(ring)
        except GeometryInvalid as e:
            logger.warning(f"Drawn geometry rejected: {e}")
            self._arena.remove_from(self.surface, self.session_id)
            self._reset()
            self.geometry_invalid.emit(e)
            return None

        self.pending = Area.draft(closed, session_id=self.session_id)
        self._set_state(self.STATE_PENDING)
        logger.info(f"Draft '{self.pending.name}' awaiting confirmation")
        self.confirmation_requested.emit(self.pending)
        return self.pending

    def submit(self, submitted: Area) -> Optional[Area]:
        """
        Dialog submitted; merge its fields into the draft and commit.

        The draft's geometry, type and custom flag are kept; an empty name
        keeps the draft placeholder and the description is never None.
        """
        if self.state != self.STATE_PENDING or self.pending is None:
            self._reject(AreaMapError("no area is awaiting confirmation"))
            return None

        draft = self.pending
        name = (submitted.name or "").strip() or draft.name
        area = replace(
            draft,
            name=name,
            description=submitted.description or draft.description or "",
            contact_name=submitted.contact_name or draft.contact_name or "",
            contact_emails=list(submitted.contact_emails),
            updated_at=utc_now(),
        )
        area.session_id = self.session_id
        area.geometry.setdefault("properties", {})["name"] = area.name
        area.geometry["properties"]["description"] = area.description

        try:
            area.commit_check()
        except AreaMapError as e:
            self._reject(e)
            return None

        self._store.add_drawn(area)
        self._reset()
        logger.info(f"Committed area '{area.name}'")
        self.area_committed.emit(area)
        return area

    def cancel(self):
        """Dialog closed without submitting: drop the draft and its layer."""
        if self.state == self.STATE_DRAWING:
            self.abort()
            return
        if self.state != self.STATE_PENDING:
            return

        draft = self.pending
        self._arena.remove_from(self.surface, self.session_id)
        self._reset()
        logger.info(f"Discarded draft '{draft.name}'")
        self.area_discarded.emit(draft)

    # ----- committed areas -----

    def _check_mutable(self, area: Area) -> bool:
        if not area.is_custom:
            self._reject(ReadOnlyArea(f"area '{area.name}' is not a custom area"))
            return False
        if not self._store.contains(area):
            self._reject(ReadOnlyArea(f"area '{area.name}' is not a committed area"))
            return False
        return True

    def edit(self, area: Area, ring) -> bool:
        """Replace the geometry of a committed custom area in place."""
        if not self._check_mutable(area):
            return False
        try:
            closed = validate_ring(ring)
        except GeometryInvalid as e:
            logger.warning(f"Edited geometry rejected: {e}")
            self.geometry_invalid.emit(e)
            return False

        area.replace_ring(closed)
        self._store.touch()
        logger.info(f"Edited area '{area.name}'")
        self.area_edited.emit(area)
        return True

    def delete(self, area: Area) -> bool:
        """Remove a committed custom area from render set and selection at once."""
        if not area.is_custom:
            self._reject(ReadOnlyArea(f"area '{area.name}' is not a custom area"))
            return False

        with self._store.batch(), self._selection.batch():
            removed = self._store.remove(area)
            self._selection.remove(area)
        if area.session_id is not None:
            self._arena.remove_from(self.surface, area.session_id)
        if not removed:
            logger.warning(f"Deleted area '{area.name}' was not in the render set")
        logger.info(f"Deleted area '{area.name}'")
        self.area_deleted.emit(area)
        return True
