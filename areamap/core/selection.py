"""
Selection set manager.

Keeps the user's selected areas independent of where they came from (viewport
fetch or draw session) and of whether they are still in view. Membership is
keyed by `area_key`: persisted areas by id, unsaved drawings by identity.

The manager also owns the session-scoped public flag. A flag may only be set
on an area that is selected or drawn, and a deselected area that is not drawn
keeps no residual flag.

The selection never touches the render surface; styling is derived from it by
the render projection.
"""

from collections import OrderedDict
from typing import Callable, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from areamap.core.constants import logger
from areamap.core.models.area import Area, area_key
from areamap.core.store import DeferredNotifyMixin


class SelectionSet(QObject, DeferredNotifyMixin):
    """
    Ordered, duplicate-free set of selected areas plus public flags.

    Signals:
        changed(): membership or a public flag changed
    """

    changed = pyqtSignal()

    def __init__(self, is_drawn: Optional[Callable[[Area], bool]] = None, parent=None):
        super().__init__(parent)
        self._entries = OrderedDict()
        self._public = OrderedDict()
        self._is_drawn = is_drawn or (lambda area: False)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, area):
        return self.contains(area)

    def contains(self, area: Area) -> bool:
        return area_key(area) in self._entries

    def contains_id(self, area_id) -> bool:
        return ("id", area_id) in self._entries

    def areas(self) -> List[Area]:
        """Selected areas in insertion order."""
        return list(self._entries.values())

    def toggle(self, area: Area) -> bool:
        """
        Add the area, or remove it if an area with the same key is selected.

        Returns:
            True if the area is selected afterwards
        """
        key = area_key(area)
        if key in self._entries:
            del self._entries[key]
            if not self._is_drawn(area):
                self._public.pop(key, None)
            logger.info(f"Deselected area '{area.name}'")
            self._notify()
            return False

        self._entries[key] = area
        logger.info(f"Selected area '{area.name}'")
        self._notify()
        return True

    def remove(self, area: Area) -> bool:
        """Unconditionally drop the area and its public flag."""
        key = area_key(area)
        had_entry = self._entries.pop(key, None) is not None
        had_flag = self._public.pop(key, None) is not None
        if had_entry or had_flag:
            self._notify()
        return had_entry

    def rekey(self, old: Area, new: Area):
        """
        Replace `old` by `new` wherever it appears, keeping its position.

        Used when a placeholder area is persisted and comes back with an id.
        """
        old_key, new_key = area_key(old), area_key(new)
        changed = False

        if old_key in self._entries:
            items = []
            for k, a in self._entries.items():
                if k == old_key:
                    items.append((new_key, new))
                elif k != new_key:
                    # an entry already holding the new id would be a duplicate
                    items.append((k, a))
            self._entries = OrderedDict(items)
            changed = True

        if old_key in self._public:
            del self._public[old_key]
            self._public[new_key] = new
            changed = True

        if changed:
            self._notify()

    def is_public(self, area: Area) -> bool:
        return area_key(area) in self._public

    def set_public(self, area: Area, is_public: bool) -> bool:
        """
        Set the public flag of a selected or drawn area.

        Returns:
            False when the area is neither selected nor drawn (flag untouched)
        """
        key = area_key(area)
        if key not in self._entries and not self._is_drawn(area):
            logger.warning(f"Public flag ignored for '{area.name}': not selected or drawn")
            return False

        if is_public:
            if key in self._public:
                return True
            self._public[key] = area
        else:
            if self._public.pop(key, None) is None:
                return True
        self._notify()
        return True

    def public_areas(self) -> List[Area]:
        return list(self._public.values())

    def clear(self):
        if not self._entries and not self._public:
            return
        self._entries.clear()
        self._public = OrderedDict((k, a) for k, a in self._public.items() if self._is_drawn(a))
        self._notify()
