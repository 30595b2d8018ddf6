from dataclasses import dataclass


@dataclass
class MapInfo:
    center_lat: float = 40.7128
    center_lon: float = -74.0060
    pixels_per_degree: float = 2000.0
