"""
Viewport fetch controller.

Keeps the fetched-area set consistent with the map viewport. Every settled
bounds change issues exactly one query tagged with a monotonically increasing
sequence number. Any number of queries may be in flight; when one resolves,
its result is applied only if its number is still the latest issued
(last-issued-wins). Older results are dropped on arrival, so a slow response
for an old viewport can never overwrite a newer one.

Cancellation is logical only: the stale HTTP request still runs to
completion, its outcome is simply ignored.
"""

from functools import partial
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from areamap.core.constants import AREA_TYPE_POI, logger
from areamap.core.errors import FetchFailed
from areamap.core.models.bounds import Bounds


class ViewportFetchController(QObject):
    """
    Issue and gate viewport area queries.

    Signals:
        loading_changed(bool): True while at least one query is in flight
        fetch_failed(object): FetchFailed for the latest query
        fetch_applied(int): sequence number of the result just applied

    Args:
        api: object with get_areas(bounds, area_type) -> list[Area]
        store: AreaStore receiving the fetched set
        runner: task runner with submit(fn, on_finished, on_error, name)
        area_type: area type requested for the viewport
    """

    loading_changed = pyqtSignal(bool)
    fetch_failed = pyqtSignal(object)
    fetch_applied = pyqtSignal(int)

    def __init__(self, api, store, runner, area_type=AREA_TYPE_POI, parent=None):
        super().__init__(parent)
        self._api = api
        self._store = store
        self._runner = runner
        self.area_type = area_type

        self._seq = 0
        self._in_flight = 0
        self.last_bounds: Optional[Bounds] = None
        self.last_error: Optional[FetchFailed] = None

    @property
    def latest_seq(self) -> int:
        return self._seq

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def on_bounds_changed(self, bounds: Bounds) -> int:
        """
        Issue one query for `bounds`.

        Returns:
            sequence number assigned to the query
        """
        self._seq += 1
        seq = self._seq
        self.last_bounds = bounds
        self._set_in_flight(self._in_flight + 1)

        logger.debug(f"Fetch #{seq} issued for {bounds}")
        self._runner.submit(
            partial(self._api.get_areas, bounds, self.area_type),
            partial(self._on_fetch_finished, seq),
            partial(self._on_fetch_error, seq),
            name=f"fetch-{seq}",
        )
        return seq

    def retry(self) -> Optional[int]:
        """Re-issue the query for the last reported bounds."""
        if self.last_bounds is None:
            return None
        return self.on_bounds_changed(self.last_bounds)

    def _set_in_flight(self, n):
        was_loading = self._in_flight > 0
        self._in_flight = max(0, n)
        if was_loading != (self._in_flight > 0):
            self.loading_changed.emit(self._in_flight > 0)

    def _on_fetch_finished(self, seq, areas):
        self._set_in_flight(self._in_flight - 1)
        if seq != self._seq:
            logger.debug(f"Fetch #{seq} suppressed, latest is #{self._seq}")
            return

        self.last_error = None
        self._store.set_fetched(areas or [])
        logger.info(f"Fetch #{seq} applied ({len(areas or [])} areas)")
        self.fetch_applied.emit(seq)

    def _on_fetch_error(self, seq, exc):
        self._set_in_flight(self._in_flight - 1)
        if seq != self._seq:
            logger.debug(f"Failure of stale fetch #{seq} ignored: {exc}")
            return

        # an empty set beats a stale one that no longer matches the viewport
        self._store.clear_fetched()
        err = exc if isinstance(exc, FetchFailed) else FetchFailed(f"Fetching areas failed: {exc}", self.last_bounds)
        self.last_error = err
        logger.warning(f"Fetch #{seq} failed: {exc}")
        self.fetch_failed.emit(err)
