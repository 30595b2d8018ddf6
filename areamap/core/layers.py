"""
Render layer bookkeeping.

A draw gesture leaves a layer on the render surface that has to survive the
confirmation dialog. Instead of holding that handle in a closure, it is bound
in a LayerArena under the draw session id, and releasing it is a lookup
followed by a removal on the surface.
"""

from typing import Any, Dict, Optional

from areamap.core.constants import logger


class RenderSurface:
    """
    Interface of the map widget's drawing surface.

    The draw session and the render projection are the only writers.
    """

    def remove_layer(self, handle):
        raise NotImplementedError

    def render_areas(self, items):
        """Redraw the area layers from a list of RenderItem."""
        raise NotImplementedError


class LayerArena:
    """Opaque layer handles keyed by draw session id."""

    def __init__(self):
        self._layers: Dict[int, Any] = {}

    def bind(self, session_id: int, handle):
        if handle is None:
            return
        if session_id in self._layers and self._layers[session_id] is not handle:
            logger.warning(f"Layer for draw session {session_id} rebound")
        self._layers[session_id] = handle

    def get(self, session_id) -> Optional[Any]:
        return self._layers.get(session_id)

    def release(self, session_id) -> Optional[Any]:
        """Forget and return the handle bound to session_id, if any."""
        return self._layers.pop(session_id, None)

    def __contains__(self, session_id):
        return session_id in self._layers

    def __len__(self):
        return len(self._layers)

    def remove_from(self, surface: Optional[RenderSurface], session_id) -> bool:
        """Release the handle and remove it from the surface. Returns True if a layer was removed."""
        handle = self.release(session_id)
        if handle is None:
            return False
        if surface is not None:
            surface.remove_layer(handle)
        logger.debug(f"Removed layer of draw session {session_id}")
        return True
