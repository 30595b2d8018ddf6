"""Tests for ring validation and coordinate helpers."""

import math

import pytest

from areamap.core.errors import GeometryInvalid
from areamap.core.geometry import (
    coords_to_pixel, make_polygon_feature, normalize_lon, outer_ring, pixel_to_coords,
    resample_polygon_equidistant, ring_bounds, validate_ring
)
from areamap.core.models.map_info import MapInfo


class TestValidateRing:
    """Drawn rings are closed on success and rejected when degenerate."""

    def test_open_triangle_is_closed(self):
        """An open triangle comes back with the first vertex repeated."""
        ring = validate_ring([[0, 0], [0, 1], [1, 0]])
        assert ring == [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [0.0, 0.0]]

    def test_closed_ring_not_closed_twice(self):
        """A ring that is already closed keeps a single closing vertex."""
        ring = validate_ring([[0, 0], [2, 0], [2, 2], [0, 2], [0, 0]])
        assert len(ring) == 5
        assert ring[0] == ring[-1]

    def test_consecutive_duplicates_collapsed(self):
        """Mouse jitter repeating a vertex does not make the ring invalid."""
        ring = validate_ring([[0, 0], [0, 0], [2, 0], [2, 2], [2, 2], [0, 2]])
        assert len(ring) == 5

    @pytest.mark.parametrize("points", [
        [],
        [[0, 0]],
        [[0, 0], [1, 1]],
        [[0, 0], [1, 1], [0, 0]],
    ])
    def test_fewer_than_three_vertices_rejected(self, points):
        """Rings with fewer than three distinct vertices are rejected."""
        with pytest.raises(GeometryInvalid):
            validate_ring(points)

    def test_collinear_ring_rejected(self):
        """A ring enclosing no area is rejected."""
        with pytest.raises(GeometryInvalid, match="no area"):
            validate_ring([[0, 0], [1, 1], [2, 2]])

    def test_bowtie_rejected(self):
        """A self-crossing ring is rejected."""
        with pytest.raises(GeometryInvalid, match="self-intersecting"):
            validate_ring([[0, 0], [4, 4], [4, 0], [0, 2]])

    def test_revisited_vertex_rejected(self):
        """A ring passing twice through the same vertex is rejected."""
        with pytest.raises(GeometryInvalid):
            validate_ring([[0, 0], [2, 0], [1, 1], [2, 2], [0, 2], [1, 1]])

    def test_non_finite_rejected(self):
        """NaN and infinite coordinates are rejected."""
        with pytest.raises(GeometryInvalid):
            validate_ring([[0, 0], [math.nan, 1], [1, 0]])
        with pytest.raises(GeometryInvalid):
            validate_ring([[0, 0], [math.inf, 1], [1, 0]])

    def test_garbage_rejected(self):
        """Input that is not a coordinate list raises GeometryInvalid."""
        with pytest.raises(GeometryInvalid):
            validate_ring("not a ring")


class TestFeatureHelpers:
    """GeoJSON feature construction."""

    def test_make_polygon_feature(self):
        """The feature carries the ring, holes and a copy of the properties."""
        props = {"name": "A"}
        hole = [[0.2, 0.2], [0.4, 0.2], [0.4, 0.4], [0.2, 0.2]]
        f = make_polygon_feature([[0, 0], [1, 0], [1, 1], [0, 0]], props, holes=[hole])
        assert f["type"] == "Feature"
        assert f["geometry"]["type"] == "Polygon"
        assert f["geometry"]["coordinates"][1] == hole
        props["name"] = "changed"
        assert f["properties"]["name"] == "A"

    def test_outer_ring_of_empty_feature(self):
        """Features without coordinates have an empty outer ring."""
        assert outer_ring({}) == []
        assert outer_ring({"geometry": {"type": "Polygon", "coordinates": []}}) == []

    def test_ring_bounds(self):
        assert ring_bounds([[-1, 2], [3, -4], [0, 0]]) == (-1.0, -4.0, 3.0, 2.0)


class TestCoordinates:
    """Pixel <-> geographic conversion used by the map view."""

    def test_round_trip(self):
        """coords_to_pixel inverts pixel_to_coords."""
        mi = MapInfo(pixels_per_degree=1500.0)
        px, py = coords_to_pixel(40.5, -73.25, mi)
        lat, lon = pixel_to_coords(px, py, mi)
        assert lat == pytest.approx(40.5)
        assert lon == pytest.approx(-73.25)

    def test_north_is_up(self):
        """Positive latitudes map to negative scene y."""
        _, py = coords_to_pixel(10.0, 0.0, MapInfo())
        assert py < 0

    @pytest.mark.parametrize("lon, expected", [(0, 0), (190, -170), (-190, 170), (540, -180)])
    def test_normalize_lon(self, lon, expected):
        assert normalize_lon(lon) == pytest.approx(expected)


class TestResample:
    """Freehand gestures are thinned to a fixed vertex count."""

    def test_vertex_count(self):
        """The result has exactly the requested number of vertices."""
        square = [(0, 0), (10, 0), (10, 10), (0, 10)]
        out = resample_polygon_equidistant(square, 8)
        assert len(out) == 8
        assert out[0] == (0.0, 0.0)

    def test_resampled_square_is_valid(self):
        """Resampling a simple outline keeps it a valid ring."""
        square = [(0, 0), (10, 0), (10, 10), (0, 10)]
        validate_ring([list(p) for p in resample_polygon_equidistant(square, 12)])
