from dataclasses import dataclass

from areamap.core.errors import AreaMapError
from areamap.core.geometry import is_finite_number


@dataclass(frozen=True)
class Bounds:
    lat_min: float
    lon_min: float
    lat_max: float
    lon_max: float

    def __post_init__(self):
        for v in (self.lat_min, self.lon_min, self.lat_max, self.lon_max):
            if not is_finite_number(v):
                raise AreaMapError(f"bounds must be finite numbers: {self}")
        if self.lat_min > self.lat_max or self.lon_min > self.lon_max:
            raise AreaMapError(f"bounds minimum exceeds maximum: {self}")

    @staticmethod
    def from_corners(lat_a, lon_a, lat_b, lon_b) -> "Bounds":
        return Bounds(min(lat_a, lat_b), min(lon_a, lon_b), max(lat_a, lat_b), max(lon_a, lon_b))

    def to_params(self):
        # backend names the corners south-west / north-east
        return {
            "sw_lat": str(self.lat_min),
            "sw_lon": str(self.lon_min),
            "ne_lat": str(self.lat_max),
            "ne_lon": str(self.lon_max),
        }
