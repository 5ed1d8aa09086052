"""
Unit tests for the tile -> Web Mercator bbox transform
"""

import math
import os
import sys

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from flood_tiles.mercator import (
    ORIGIN_SHIFT,
    TileAddress,
    compute_projected_bbox,
    lonlat_to_web_mercator,
    tile_to_geo_bbox,
    tile_to_lat,
    tile_to_lon,
)

WORLD = 20037508.342789244


class TestTileEdges:
    """Tile index -> lon/lat edges"""

    def test_lon_edges(self):
        assert tile_to_lon(0, 0) == -180.0
        assert tile_to_lon(1, 0) == 180.0
        assert tile_to_lon(1, 1) == 0.0

    def test_lat_world_edges(self):
        assert tile_to_lat(0, 0) == pytest.approx(85.0511287798066, abs=1e-12)
        assert tile_to_lat(1, 0) == pytest.approx(-85.0511287798066, abs=1e-12)
        assert tile_to_lat(1, 1) == pytest.approx(0.0, abs=1e-12)

    def test_geo_bbox_north_from_smaller_row(self):
        g = tile_to_geo_bbox(10, 100, 200)
        assert g.north > g.south
        assert g.east > g.west
        assert g.north == tile_to_lat(200, 10)
        assert g.south == tile_to_lat(201, 10)


class TestProjection:
    def test_origin(self):
        x, y = lonlat_to_web_mercator(0.0, 0.0)
        assert x == 0.0
        assert y == pytest.approx(0.0, abs=1e-9)

    def test_antimeridian(self):
        x, _ = lonlat_to_web_mercator(180.0, 0.0)
        assert x == ORIGIN_SHIFT

    def test_pole_is_clamped(self):
        _, y_pole = lonlat_to_web_mercator(0.0, 90.0)
        _, y_clamp = lonlat_to_web_mercator(0.0, 89.9999)
        assert math.isfinite(y_pole)
        assert y_pole == y_clamp
        _, y_south = lonlat_to_web_mercator(0.0, -90.0)
        assert y_south == pytest.approx(-y_pole, rel=1e-9)


class TestComputeProjectedBBox:
    """Full transform, including the properties the map relies on"""

    def test_world_tile(self):
        b = compute_projected_bbox(0, 0, 0)
        assert b.min_x == pytest.approx(-WORLD, rel=1e-12)
        assert b.max_x == pytest.approx(WORLD, rel=1e-12)
        assert b.min_y == pytest.approx(-WORLD, rel=1e-9)
        assert b.max_y == pytest.approx(WORLD, rel=1e-9)

    @pytest.mark.parametrize("z", [0, 1, 5, 12, 19])
    def test_non_degenerate(self, z):
        n = 2 ** z
        for x, y in [(0, 0), (n - 1, n - 1), (n // 2, n // 3)]:
            b = compute_projected_bbox(z, x, y)
            assert b.min_x < b.max_x
            assert b.min_y < b.max_y

    def test_known_tile_exact(self):
        # Written out in the order the web map computes it; must agree to the last bit.
        def lon(c, z):
            return (c / 2 ** z) * 360 - 180

        def lat(r, z):
            n = math.pi - (2 * math.pi * r) / 2 ** z
            return (180 / math.pi) * math.atan(0.5 * (math.exp(n) - math.exp(-n)))

        def merc(lo, la):
            la = max(min(la, 89.9999), -89.9999)
            return (
                (lo * (math.pi * 6378137)) / 180,
                math.log(math.tan(((90 + la) * math.pi) / 360)) * 6378137,
            )

        min_x, min_y = merc(lon(100, 10), lat(201, 10))
        max_x, max_y = merc(lon(101, 10), lat(200, 10))

        b = compute_projected_bbox(10, 100, 200)
        assert b.as_tuple() == (min_x, min_y, max_x, max_y)
        assert b.to_query() == ",".join(repr(v) for v in (min_x, min_y, max_x, max_y))
        assert b.min_x == pytest.approx(-16123932.49, abs=1.0)
        assert b.max_x == pytest.approx(-16084796.74, abs=1.0)

    def test_adjacent_tiles_share_edges(self):
        z, x, y = 14, 3741, 6780
        here = compute_projected_bbox(z, x, y)
        east = compute_projected_bbox(z, x + 1, y)
        south = compute_projected_bbox(z, x, y + 1)
        assert here.max_x == east.min_x
        assert here.min_y == south.max_y

    def test_idempotent(self):
        a = compute_projected_bbox(17, 30012, 54321)
        b = compute_projected_bbox(17, 30012, 54321)
        assert a.as_tuple() == b.as_tuple()

    @pytest.mark.parametrize("z", [0, 5, 18, 24])
    def test_row_zero_stays_finite(self, z):
        b = compute_projected_bbox(z, 0, 0)
        assert all(math.isfinite(v) for v in b.as_tuple())
        assert b.max_y == pytest.approx(WORLD, rel=1e-9)

    def test_extreme_inputs_do_not_raise(self):
        b = compute_projected_bbox(1e6, 0, 0)
        assert all(math.isfinite(v) for v in b.as_tuple())
        b = compute_projected_bbox(1, 0, 1e300)
        assert math.isfinite(b.min_y) and math.isfinite(b.max_y)

    def test_query_string(self):
        b = compute_projected_bbox(1, 1, 0)
        parts = b.to_query().split(",")
        assert len(parts) == 4
        assert parts[0] == "0"
        assert float(parts[2]) == pytest.approx(WORLD, rel=1e-12)

    def test_kerrville_tile(self):
        # z=12 tile covering Kerrville, TX (approx 30.05N, 99.14W)
        b = compute_projected_bbox(12, 919, 1689)
        x, y = lonlat_to_web_mercator(-99.14, 30.05)
        assert b.min_x <= x <= b.max_x
        assert b.min_y <= y <= b.max_y


class TestTileAddress:
    def test_in_range(self):
        assert TileAddress(0, 0, 0).in_range()
        assert TileAddress(3, 7, 7).in_range()

    @pytest.mark.parametrize(
        "z,x,y",
        [(3, 8, 0), (3, 0, 8), (3, -1, 0), (-1, 0, 0), (2.5, 0, 0), (3, 1.5, 0)],
    )
    def test_out_of_range(self, z, x, y):
        assert not TileAddress(z, x, y).in_range()
