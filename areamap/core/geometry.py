"""
Geometry module

Ring validation for drawn polygons, GeoJSON feature helpers and the
pixel <-> geographic conversions used by the map view.

Coordinate conventions:
- Rings are GeoJSON positions: [lon, lat]
- Scene pixels: x grows east, y grows south, `pixels_per_degree` scale
"""

import math
import numpy as np
from typing import List, Sequence, Tuple, TYPE_CHECKING

from areamap.core.errors import GeometryInvalid

if TYPE_CHECKING:
    from areamap.core.models.map_info import MapInfo

# Tolerance for coincident vertices and zero-area rings
EPS = 1e-12


def normalize_lon(lon):
    """
    Normalize a longitude into -180 ~ +180.

    Args:
        lon: longitude in degrees

    Returns:
        normalized longitude
    """
    return (lon + 180) % 360 - 180


def _as_points(points) -> np.ndarray:
    try:
        pts = np.asarray(points, dtype=float)
    except (TypeError, ValueError) as exc:
        raise GeometryInvalid(f"ring is not a list of coordinate pairs: {exc}") from exc
    if pts.ndim != 2 or pts.shape[0] == 0 or pts.shape[1] < 2:
        raise GeometryInvalid("ring is not a list of coordinate pairs")
    pts = pts[:, :2]
    if not np.all(np.isfinite(pts)):
        raise GeometryInvalid("ring contains non-finite coordinates")
    return pts


def open_ring(points) -> np.ndarray:
    """
    Return the ring as an (n, 2) array without the closing vertex and
    without consecutive repeated vertices.
    """
    pts = _as_points(points)
    keep = [0]
    for i in range(1, len(pts)):
        if np.max(np.abs(pts[i] - pts[keep[-1]])) > EPS:
            keep.append(i)
    pts = pts[keep]
    while len(pts) > 1 and np.max(np.abs(pts[-1] - pts[0])) <= EPS:
        pts = pts[:-1]
    return pts


def signed_area(pts: np.ndarray) -> float:
    """Shoelace area of an open ring (positive when counter-clockwise)."""
    x = pts[:, 0]
    y = pts[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def _orientation(p, q, r) -> int:
    val = (q[1] - p[1]) * (r[0] - q[0]) - (q[0] - p[0]) * (r[1] - q[1])
    if abs(val) <= EPS:
        return 0
    return 1 if val > 0 else 2


def _on_segment(p, q, r) -> bool:
    # q lies on segment pr, given the three are collinear
    return (min(p[0], r[0]) - EPS <= q[0] <= max(p[0], r[0]) + EPS and
            min(p[1], r[1]) - EPS <= q[1] <= max(p[1], r[1]) + EPS)


def segments_intersect(p1, p2, p3, p4) -> bool:
    """True if segment p1p2 touches or crosses segment p3p4."""
    o1 = _orientation(p1, p2, p3)
    o2 = _orientation(p1, p2, p4)
    o3 = _orientation(p3, p4, p1)
    o4 = _orientation(p3, p4, p2)

    if o1 != o2 and o3 != o4:
        return True
    if o1 == 0 and _on_segment(p1, p3, p2):
        return True
    if o2 == 0 and _on_segment(p1, p4, p2):
        return True
    if o3 == 0 and _on_segment(p3, p1, p4):
        return True
    if o4 == 0 and _on_segment(p3, p2, p4):
        return True
    return False


def is_self_intersecting(pts: np.ndarray) -> bool:
    """
    Check every pair of non-adjacent edges of an open ring.

    Adjacent edges share a vertex by construction and are skipped, as is the
    pair formed by the first and the closing edge.
    """
    n = len(pts)
    edges = [(pts[i], pts[(i + 1) % n]) for i in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            if j == i + 1 or (i == 0 and j == n - 1):
                continue
            if segments_intersect(edges[i][0], edges[i][1], edges[j][0], edges[j][1]):
                return True
    return False


def validate_ring(points) -> List[List[float]]:
    """
    Validate a drawn outer ring and return it closed.

    A ring is rejected when it has fewer than 3 distinct vertices, encloses
    no area (all vertices collinear) or crosses itself.

    Args:
        points: sequence of [lon, lat] positions, closed or not

    Returns:
        closed ring as a list of [lon, lat] lists

    Raises:
        GeometryInvalid: the ring is degenerate
    """
    pts = open_ring(points)

    distinct = np.unique(pts, axis=0)
    if len(distinct) < 3:
        raise GeometryInvalid(f"ring has {len(distinct)} distinct vertices, at least 3 are required")
    if len(distinct) != len(pts):
        raise GeometryInvalid("ring revisits a vertex")
    if abs(signed_area(pts)) <= EPS:
        raise GeometryInvalid("ring encloses no area")
    if is_self_intersecting(pts):
        raise GeometryInvalid("ring is self-intersecting")

    ring = [[float(x), float(y)] for x, y in pts]
    ring.append(list(ring[0]))
    return ring


def make_polygon_feature(ring, properties=None, holes=None) -> dict:
    """Build a GeoJSON Feature<Polygon> from an outer ring and optional holes."""
    coordinates = [ring]
    if holes:
        coordinates.extend(holes)
    return {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": coordinates},
        "properties": dict(properties or {}),
    }


def outer_ring(feature: dict) -> List[List[float]]:
    """Return the outer ring of a Feature<Polygon>, or [] when absent."""
    geom = (feature or {}).get("geometry") or {}
    coords = geom.get("coordinates") or []
    return coords[0] if coords else []


def ring_bounds(ring: Sequence[Sequence[float]]) -> Tuple[float, float, float, float]:
    """Return (lon_min, lat_min, lon_max, lat_max) of a ring."""
    pts = _as_points(ring)
    return (float(pts[:, 0].min()), float(pts[:, 1].min()),
            float(pts[:, 0].max()), float(pts[:, 1].max()))


def resample_polygon_equidistant(points: List[Tuple[float, float]], n_out: int):
    """
    Resample a closed polygon into n_out equally spaced vertices.

    The map view uses this to thin freehand gestures, which report one vertex
    per mouse move.

    Args:
        points: polygon vertices [(x, y), ...]
        n_out: number of vertices to produce

    Returns:
        resampled vertex list
    """
    if len(points) < 2:
        return points

    # close the polygon by repeating the first vertex
    pts = np.array(list(points) + [points[0]], dtype=float)
    d = np.diff(pts, axis=0)

    seg_lens = np.sqrt((d ** 2).sum(axis=1))
    cum_dist = np.concatenate(([0], np.cumsum(seg_lens)))
    total_len = cum_dist[-1]
    if total_len <= EPS:
        return [tuple(pts[0])]

    # drop the last sample, it coincides with the first
    target_dists = np.linspace(0, total_len, n_out + 1)[:-1]
    new_x = np.interp(target_dists, cum_dist, pts[:, 0])
    new_y = np.interp(target_dists, cum_dist, pts[:, 1])

    return [(float(x), float(y)) for x, y in zip(new_x, new_y)]


def pixel_to_coords(px, py, mi: "MapInfo"):
    """
    Convert scene pixels into geographic coordinates.

    Returns:
        (lat, lon)
    """
    scale = mi.pixels_per_degree
    if scale <= 0:
        scale = 1.0

    lon = px / scale
    lat = -py / scale

    return lat, lon


def coords_to_pixel(lat, lon, mi: "MapInfo"):
    """
    Convert geographic coordinates into scene pixels.

    Returns:
        (px, py)
    """
    scale = mi.pixels_per_degree
    px = lon * scale
    py = -lat * scale

    return px, py


def get_optimal_grid_step(scale):
    """
    Pick the lat/lon grid spacing so lines land about 100 screen pixels apart.

    Args:
        scale: screen pixels per degree

    Returns:
        grid spacing in degrees
    """
    if scale <= 0:
        return 90

    target_pixel_spacing = 100

    deg_step_candidates = [0.001, 0.002, 0.005, 0.01, 0.02, 0.05, 0.1, 0.2, 0.5, 1, 2, 5, 10, 20, 30, 45, 90]

    for cand in deg_step_candidates:
        if cand * scale >= target_pixel_spacing:
            return cand

    return 90


def clamp_lat(lat):
    """Clamp a latitude into the valid -90 ~ +90 range."""
    return max(-90.0, min(90.0, lat))


def is_finite_number(value) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False
