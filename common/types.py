from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Optional, Tuple, Any, Dict


SHELTER = "shelter"
LOW_WATER = "lowWater"
CATEGORIES = (SHELTER, LOW_WATER)

CATEGORY_LABEL = {
    SHELTER: "Shelter",
    LOW_WATER: "Low-water crossing",
}


@dataclass(frozen=True, slots=True)
class Site:
    """
    A destination shown on the map: an emergency shelter or a monitored
    low-water crossing.

    Attributes:
        coords: (lat, lon) WGS84 degrees.
        category: "shelter" or "lowWater".
        phone: only shelters publish one.
    """
    id: str
    name: str
    address: str
    status: str
    note: str
    coords: Tuple[float, float]
    source: str
    category: str
    phone: Optional[str] = None

    def __post_init__(self) -> None:
        if self.category not in CATEGORIES:
            raise ValueError(f"unknown site category: {self.category!r}")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["coords"] = list(self.coords)
        if self.phone is None:
            d.pop("phone")
        return d


@dataclass(slots=True)
class GeocodeResult:
    lat: float
    lon: float
    display_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Route:
    """
    One driving route from the routing service.

    Attributes:
        geometry: GeoJSON LineString or MultiLineString (lon, lat order).
        distance_m, duration_s: None when the service omitted them.
    """
    geometry: Dict[str, Any] = field(repr=False)
    distance_m: Optional[float] = None
    duration_s: Optional[float] = None


@dataclass(slots=True)
class RouteOption:
    site: Site
    crow_distance_m: float
    route: Optional[Route] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site": self.site.to_dict(),
            "crow_distance_m": self.crow_distance_m,
            "route_distance_m": self.route.distance_m if self.route else None,
            "duration_s": self.route.duration_s if self.route else None,
            "geometry": self.route.geometry if self.route else None,
        }
