"""
Area persistence.

Sends committed and edited custom areas to the backend through the task
runner. Local state is optimistic: a failed call never rolls back the drawn
layer or the selection, it is reported for the caller to retry or toast.
"""

from functools import partial

from PyQt6.QtCore import QObject, pyqtSignal

from areamap.core.constants import logger
from areamap.core.errors import PersistenceFailed
from areamap.core.models.area import Area


class AreaPersistence(QObject):
    """
    Create / update custom areas on the backend.

    Signals:
        area_created(object, object): (placeholder Area, Area carrying the new id)
        area_updated(object): Area acknowledged by the backend
        persistence_failed(object): PersistenceFailed
    """

    area_created = pyqtSignal(object, object)
    area_updated = pyqtSignal(object)
    persistence_failed = pyqtSignal(object)

    OP_CREATE = "create"
    OP_UPDATE = "update"

    def __init__(self, api, runner, parent=None):
        super().__init__(parent)
        self._api = api
        self._runner = runner

    def save(self, area: Area) -> str:
        """Create the area if it has no id, update it otherwise."""
        if area.id is None:
            op, fn = self.OP_CREATE, partial(self._api.create_area, area)
        else:
            op, fn = self.OP_UPDATE, partial(self._api.update_area, area)

        self._runner.submit(
            fn,
            partial(self._on_saved, op, area),
            partial(self._on_failed, op, area),
            name=f"{op}-{area.name}",
        )
        return op

    def _on_saved(self, op, area, response):
        if op == self.OP_UPDATE:
            logger.info(f"Area '{area.name}' updated")
            self.area_updated.emit(area)
            return

        area_id = getattr(response, "area_id", None)
        if area_id is None:
            self._on_failed(op, area, PersistenceFailed("backend returned no area id", area, op))
            return
        logger.info(f"Area '{area.name}' created with id {area_id}")
        self.area_created.emit(area, area.with_id(area_id))

    def _on_failed(self, op, area, exc):
        err = exc if isinstance(exc, PersistenceFailed) else PersistenceFailed(
            f"Could not {op} area '{area.name}': {exc}", area, op)
        logger.warning(str(err))
        self.persistence_failed.emit(err)
