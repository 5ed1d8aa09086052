from __future__ import annotations

"""
Slippy-map tile address -> Web Mercator bounding box.

The arithmetic mirrors what the web map client does when it places a
256x256 tile, so the order of operations is kept as-is: reordering the
products (e.g. lon * (pi*R/180) vs lon * pi*R / 180) changes the last bits
and the exported image drifts against the basemap at high zoom.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from common.utils import clamp, compact_number


TILE_SIZE = 256
EARTH_RADIUS = 6378137.0
ORIGIN_SHIFT = math.pi * EARTH_RADIUS   # half the Mercator world width, meters
MAX_LAT = 89.9999                       # tan() blows up at the poles

# ArcGIS well-known ID for Web Mercator (auxiliary sphere), == EPSG:3857
WEB_MERCATOR_WKID = 102100


@dataclass(frozen=True, slots=True)
class TileAddress:
    zoom: float
    column: float
    row: float

    def in_range(self) -> bool:
        """True for a standard XYZ tile: integer zoom >= 0 and 0 <= col,row < 2^zoom."""
        if self.zoom < 0 or self.zoom != int(self.zoom):
            return False
        n = _tile_count(self.zoom)
        return all(v == int(v) and 0 <= v < n for v in (self.column, self.row))


@dataclass(frozen=True, slots=True)
class GeoBBox:
    west: float
    south: float
    east: float
    north: float


@dataclass(frozen=True, slots=True)
class ProjectedBBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def to_query(self) -> str:
        """'minX,minY,maxX,maxY' as sent in the export request's bbox parameter."""
        return ",".join(compact_number(v) for v in self.as_tuple())


# -------------------------
# Tile edges (degrees)
# -------------------------
def _tile_count(zoom: float) -> float:
    try:
        return 2.0 ** zoom
    except OverflowError:
        # zoom beyond float range: every finite column/row collapses to the origin
        return math.inf


def _sinh(n: float) -> float:
    try:
        return 0.5 * (math.exp(n) - math.exp(-n))
    except OverflowError:
        return math.copysign(math.inf, n)


def tile_to_lon(column: float, zoom: float) -> float:
    return (column / _tile_count(zoom)) * 360.0 - 180.0


def tile_to_lat(row: float, zoom: float) -> float:
    n = math.pi - (2.0 * math.pi * row) / _tile_count(zoom)
    return (180.0 / math.pi) * math.atan(_sinh(n))


def tile_to_geo_bbox(zoom: float, column: float, row: float) -> GeoBBox:
    # rows grow southwards, so the smaller row index is the north edge
    return GeoBBox(
        west=tile_to_lon(column, zoom),
        south=tile_to_lat(row + 1, zoom),
        east=tile_to_lon(column + 1, zoom),
        north=tile_to_lat(row, zoom),
    )


# -------------------------
# Projection
# -------------------------
def lonlat_to_web_mercator(lon: float, lat: float) -> Tuple[float, float]:
    """WGS84 degrees -> spherical Web Mercator meters. Latitude is clamped to +-MAX_LAT."""
    x = (lon * ORIGIN_SHIFT) / 180.0
    lat_c = clamp(lat, -MAX_LAT, MAX_LAT)
    y = math.log(math.tan(((90.0 + lat_c) * math.pi) / 360.0)) * EARTH_RADIUS
    return x, y


def compute_projected_bbox(zoom: float, column: float, row: float) -> ProjectedBBox:
    """
    Tile (z, x, y) -> bounding box in Web Mercator meters.

    The box is spanned by the tile's south-west and north-east corners.
    No range check is done on column/row; see TileAddress.in_range().
    """
    g = tile_to_geo_bbox(zoom, column, row)
    min_x, min_y = lonlat_to_web_mercator(g.west, g.south)
    max_x, max_y = lonlat_to_web_mercator(g.east, g.north)
    return ProjectedBBox(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)
