"""
Shared area store.

Holds the two area sources the render projection merges: the areas fetched
for the current viewport and the areas drawn in this session.

Classes:
    DeferredNotifyMixin: batch change notifications of a QObject
    AreaStore: fetched and drawn area lists
"""

from contextlib import contextmanager
from typing import List

from PyQt6.QtCore import QObject, pyqtSignal

from areamap.core.constants import logger
from areamap.core.models.area import Area, area_key


class DeferredNotifyMixin:
    """
    Coalesces `changed` emissions inside `with obj.batch():` blocks.

    Nested batches across several objects let a caller mutate all of them and
    have listeners observe only the final, consistent state.
    """

    def _notify(self):
        if getattr(self, "_batch_depth", 0):
            self._dirty = True
            return
        self.changed.emit()

    @contextmanager
    def batch(self):
        self._batch_depth = getattr(self, "_batch_depth", 0) + 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and getattr(self, "_dirty", False):
                self._dirty = False
                self.changed.emit()


class AreaStore(QObject, DeferredNotifyMixin):
    """
    Fetched and drawn areas.

    Signals:
        changed(): either list changed
    """

    changed = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._fetched: List[Area] = []
        self._drawn: List[Area] = []

    @property
    def fetched(self) -> List[Area]:
        return list(self._fetched)

    @property
    def drawn(self) -> List[Area]:
        return list(self._drawn)

    def set_fetched(self, areas):
        self._fetched = list(areas)
        logger.debug(f"Fetched set replaced ({len(self._fetched)} areas)")
        self._notify()

    def clear_fetched(self):
        self.set_fetched([])

    def add_drawn(self, area: Area):
        self._drawn.append(area)
        self._notify()

    def _drawn_index(self, area: Area) -> int:
        for i, a in enumerate(self._drawn):
            if a is area:
                return i
        key = area_key(area)
        for i, a in enumerate(self._drawn):
            if area_key(a) == key:
                return i
        return -1

    def contains_drawn(self, area: Area) -> bool:
        return self._drawn_index(area) >= 0

    def contains(self, area: Area) -> bool:
        """True if the area is drawn, or fetched under the same id."""
        if self.contains_drawn(area):
            return True
        if area.id is None:
            return any(a is area for a in self._fetched)
        return any(a.id == area.id for a in self._fetched)

    def replace_drawn(self, old: Area, new: Area) -> bool:
        """Swap a drawn area for another in place (e.g. after it got an id)."""
        idx = self._drawn_index(old)
        if idx < 0:
            return False
        self._drawn[idx] = new
        self._notify()
        return True

    def remove(self, area: Area) -> bool:
        """
        Remove an area from the render set.

        Drawn entries match by identity or key; fetched entries match by id.
        """
        removed = False
        idx = self._drawn_index(area)
        if idx >= 0:
            del self._drawn[idx]
            removed = True
        if area.id is not None:
            kept = [a for a in self._fetched if a.id != area.id]
            if len(kept) != len(self._fetched):
                self._fetched = kept
                removed = True
        if removed:
            self._notify()
        return removed

    def touch(self):
        """Report an in-place change of a stored area."""
        self._notify()
