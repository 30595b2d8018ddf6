"""
Error types raised or reported by the area authoring subsystem.

Network-facing errors (FetchFailed, PersistenceFailed) are never raised into
the state machine: the fetch and persistence boundaries convert them into
state and hand the exception instance to listeners through a signal.
"""


class AreaMapError(Exception):
    """Base class for all area map errors."""


class ConfigError(AreaMapError):
    """Missing or malformed configuration."""


class GeometryInvalid(AreaMapError):
    """A drawn or reshaped ring is degenerate or self-intersecting."""


class ReadOnlyArea(AreaMapError):
    """An edit or delete was attempted on an area this subsystem may not mutate."""


class DrawSessionBusy(AreaMapError):
    """A draw gesture started while another one is still unresolved."""


class FetchFailed(AreaMapError):
    """
    The viewport bounds query failed.

    Retryable: the caller may re-issue the query for the current bounds.
    """

    retryable = True

    def __init__(self, message, bounds=None):
        super().__init__(message)
        self.bounds = bounds


class PersistenceFailed(AreaMapError):
    """A create or update call to the backend failed; local state is kept."""

    def __init__(self, message, area=None, operation=""):
        super().__init__(message)
        self.area = area
        self.operation = operation
