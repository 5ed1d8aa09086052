from __future__ import annotations

"""
Nominatim address lookup, scoped to the Kerrville area.

Usage:
    geo = NominatimGeocoder(user_agent="my-app/1.0")
    hit = geo.geocode("700 Main St")
    if hit:
        hit.lat, hit.lon
"""

import logging
from typing import Optional

import requests

from common.config import DEFAULT_NOMINATIM_URL
from common.types import GeocodeResult


log = logging.getLogger(__name__)


class GeocodingError(Exception):
    """The geocoding service could not be reached or answered with garbage."""


class NominatimGeocoder:
    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: str = "kerr-floodmap",
        area_suffix: str = ", Kerrville, TX",
        session: Optional[requests.Session] = None,
    ):
        """
        Params:
            base_url: Nominatim root, e.g. https://nominatim.openstreetmap.org
            user_agent: sent on every request (Nominatim usage policy requires one)
            area_suffix: appended to every query to bias results to the county
            session: optional requests.Session for connection reuse
        """
        self.base_url = (base_url or DEFAULT_NOMINATIM_URL).rstrip("/")
        self.user_agent = user_agent
        self.area_suffix = area_suffix
        self.session = session or requests.Session()

    def search_params(self, query: str) -> dict:
        return {
            "format": "json",
            "limit": 1,
            "addressdetails": 1,
            "q": f"{query.strip()}{self.area_suffix}",
        }

    def geocode(self, query: str, timeout: float = 8.0) -> Optional[GeocodeResult]:
        """
        Resolve one address to its best match.

        Returns None when the service has no match.
        Raises ValueError on a blank query and GeocodingError on transport/HTTP failure.
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")

        try:
            r = self.session.get(
                f"{self.base_url}/search",
                params=self.search_params(query),
                headers={"Accept-Language": "en", "User-Agent": self.user_agent},
                timeout=timeout,
            )
            r.raise_for_status()
            hits = r.json()
        except (requests.RequestException, ValueError) as e:
            log.warning("Geocoding request failed: %s", e, extra={"query": query})
            raise GeocodingError(str(e)) from e

        if not isinstance(hits, list):
            raise GeocodingError(f"unexpected geocoder payload: {type(hits).__name__}")
        if not hits:
            return None
        top = hits[0]
        try:
            return GeocodeResult(
                lat=float(top["lat"]),
                lon=float(top["lon"]),
                display_name=str(top.get("display_name", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(f"malformed geocoder result: {top!r}") from e
