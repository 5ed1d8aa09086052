from __future__ import annotations

"""
Candidate evacuation routes: nearest sites by straight-line distance, then
driving routes from an OSRM server for each of them.

Routing is not flood-aware. A route that crosses a flooded road is still
returned; the map shows the flood layer so the user can judge.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np
import requests

from common.config import DEFAULT_OSRM_URL
from common.geo import haversine_many_m
from common.types import Route, RouteOption, Site


log = logging.getLogger(__name__)

LatLon = Tuple[float, float]

_LINE_TYPES = ("LineString", "MultiLineString")


class OsrmClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        profile: str = "driving",
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or DEFAULT_OSRM_URL).rstrip("/")
        self.profile = profile
        self.session = session or requests.Session()

    def build_url(self, start: LatLon, dest: LatLon) -> str:
        # OSRM wants lon,lat
        return (
            f"{self.base_url}/route/v1/{self.profile}/"
            f"{start[1]},{start[0]};{dest[1]},{dest[0]}"
            "?overview=full&geometries=geojson"
        )

    def route(self, start: LatLon, dest: LatLon, timeout: float = 8.0) -> Optional[Route]:
        """
        First route between two (lat, lon) points, or None if the service
        fails, reports a non-"Ok" code, or returns no usable line geometry.
        """
        url = self.build_url(start, dest)
        try:
            r = self.session.get(url, timeout=timeout)
            if r.status_code != 200:
                log.warning("OSRM request failed: %s", r.status_code, extra={"url": url})
                return None
            payload = r.json()
        except (requests.RequestException, ValueError) as e:
            log.warning("OSRM request error: %s", e, extra={"url": url})
            return None

        if not isinstance(payload, dict):
            return None
        if payload.get("code") and payload["code"] != "Ok":
            log.info("OSRM returned code %s", payload["code"], extra={"url": url})
            return None
        routes = payload.get("routes") or []
        if not routes:
            return None
        first = routes[0]
        geometry = first.get("geometry")
        if not isinstance(geometry, dict) or geometry.get("type") not in _LINE_TYPES:
            return None

        distance = first.get("distance")
        duration = first.get("duration")
        return Route(
            geometry=geometry,
            distance_m=float(distance) if isinstance(distance, (int, float)) else None,
            duration_s=float(duration) if isinstance(duration, (int, float)) else None,
        )


def rank_targets(start: LatLon, targets: Sequence[Site], limit: int = 3) -> List[RouteOption]:
    """Nearest `limit` targets by great-circle distance, closest first (stable on ties)."""
    if not targets or limit <= 0:
        return []
    d = haversine_many_m(start, [t.coords for t in targets])
    order = np.argsort(d, kind="stable")[:limit]
    return [RouteOption(site=targets[i], crow_distance_m=float(d[i])) for i in order]


def plan_routes(
    start: LatLon,
    client: OsrmClient,
    targets: Sequence[Site],
    limit: int = 3,
    max_workers: int = 3,
    timeout: float = 8.0,
) -> List[RouteOption]:
    """
    Rank targets, then fetch a driving route for each in parallel.
    Order follows the straight-line ranking; options whose route lookup
    failed are kept with route=None.
    """
    options = rank_targets(start, targets, limit)
    if not options:
        return options

    workers = max(1, min(int(max_workers), len(options)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        routes = list(pool.map(lambda o: client.route(start, o.site.coords, timeout=timeout), options))

    for opt, rt in zip(options, routes):
        opt.route = rt
    return options
