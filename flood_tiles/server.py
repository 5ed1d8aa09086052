from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from common.config import load_config
from common.geo import valid_latlon
from common.logging_setup import setup_logging
from common.utils import parse_finite
from evacuation import sites
from evacuation.geocode import GeocodingError, NominatimGeocoder
from evacuation.report import build_pdf, build_summary_lines
from evacuation.routing import OsrmClient, plan_routes
from flood_tiles.mercator import TileAddress, compute_projected_bbox
from flood_tiles.upstream import UpstreamError, UpstreamTile, UpstreamTileClient


log = logging.getLogger(__name__)


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


def _relay(tile: UpstreamTile):
    try:
        yield from tile.iter_bytes()
    finally:
        tile.close()


def create_app(
    config: Optional[Dict] = None,
    *,
    tile_client: Optional[UpstreamTileClient] = None,
    geocoder: Optional[NominatimGeocoder] = None,
    router: Optional[OsrmClient] = None,
) -> FastAPI:
    """
    Build the API from an explicit config dict (see common.config.DEFAULTS).
    Clients can be injected; otherwise they are built from the config.
    """
    cfg = config if config is not None else load_config()
    setup_logging()

    tiles_cfg = cfg["tiles"]
    geo_cfg = cfg["geocoder"]
    route_cfg = cfg["routing"]

    tile_client = tile_client or UpstreamTileClient(
        tiles_cfg["service_url"], timeout=float(tiles_cfg["timeout_s"])
    )
    geocoder = geocoder or NominatimGeocoder(
        geo_cfg["base_url"], user_agent=geo_cfg["user_agent"], area_suffix=geo_cfg["area_suffix"]
    )
    router = router or OsrmClient(route_cfg["base_url"], profile=route_cfg["profile"])

    cache_control = f"public, max-age={int(tiles_cfg['cache_max_age'])}"
    strict_range = bool(tiles_cfg.get("strict_range", False))
    max_results = int(route_cfg["max_results"])

    app = FastAPI(title="Kerr County Flood Evacuation API", version="0.3.0")
    app.state.config = cfg
    app.state.tile_client = tile_client
    app.state.geocoder = geocoder
    app.state.router = router

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.get("server", {}).get("cors_origins", ["*"])),
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "uavsar": {"service_url": tile_client.service_url, "strict_range": strict_range},
            "geocoder": geocoder.base_url,
            "routing": router.base_url,
        }

    # -------- UAVSAR tile proxy --------

    @app.get("/uavsar/tiles")
    @app.get("/uavsar/tiles/{z}")
    @app.get("/uavsar/tiles/{z}/{x}")
    def uavsar_tile_incomplete():
        return _error(400, "Missing tile coordinates")

    @app.get("/uavsar/tiles/{z}/{x}/{y}")
    def uavsar_tile(z: str, x: str, y: str):
        """
        Rasterise one 256x256 XYZ tile of the UAVSAR flood layer.
        The PNG is relayed from the MapServer export endpoint as it arrives.
        """
        zoom, col, row = parse_finite(z), parse_finite(x), parse_finite(y)
        if zoom is None or col is None or row is None:
            return _error(400, "Invalid tile coordinates")
        if strict_range and not TileAddress(zoom, col, row).in_range():
            return _error(400, "Tile coordinates out of range")

        bbox = compute_projected_bbox(zoom, col, row)
        try:
            tile = tile_client.fetch(bbox)
        except UpstreamError as e:
            return _error(e.status, e.message)

        return StreamingResponse(
            _relay(tile),
            status_code=tile.status,
            media_type="image/png",
            headers={"Cache-Control": cache_control},
        )

    # -------- hazard layers --------

    @app.get("/sites")
    def list_sites(category: Optional[str] = Query(None)):
        try:
            found = sites.sites_by_category(category)
        except ValueError:
            return _error(400, f"Unknown category: {category}")
        return {"sites": [s.to_dict() for s in found]}

    @app.get("/flood-zones")
    def flood_zones():
        return sites.flood_zones()

    # -------- geocoding --------

    @app.get("/geocode")
    def geocode(q: str = Query("")):
        if not q.strip():
            return _error(400, "Empty address")
        try:
            hit = geocoder.geocode(q, timeout=float(geo_cfg["timeout_s"]))
        except GeocodingError:
            return _error(502, "Geocoding error")
        if hit is None:
            return _error(404, "Address not found")
        return hit.to_dict()

    # -------- evacuation routes --------

    def _plan(lat: float, lon: float, limit: Optional[int]):
        return plan_routes(
            (lat, lon),
            router,
            sites.all_targets(),
            limit=limit if limit is not None else max_results,
            max_workers=int(route_cfg["max_workers"]),
            timeout=float(route_cfg["timeout_s"]),
        )

    @app.get("/routes")
    def routes(
        lat: float = Query(...),
        lon: float = Query(...),
        limit: Optional[int] = Query(None, ge=1, le=20),
    ):
        if not valid_latlon(lat, lon):
            return _error(400, "Invalid coordinates")
        options = _plan(lat, lon, limit)
        return {"start": [lat, lon], "options": [o.to_dict() for o in options]}

    @app.get("/routes/report")
    def routes_report(
        lat: float = Query(...),
        lon: float = Query(...),
        selected: Optional[str] = Query(None),
        limit: Optional[int] = Query(None, ge=1, le=20),
    ):
        """Route sheet as a one-page PDF download."""
        if not valid_latlon(lat, lon):
            return _error(400, "Invalid coordinates")
        options = _plan(lat, lon, limit)
        if not options:
            return _error(404, "No evacuation sites")
        if selected is None:
            # default to the first option that actually has a route
            selected = next((o.site.id for o in options if o.route is not None), None)

        now = datetime.now(timezone.utc)
        pdf = build_pdf(build_summary_lines((lat, lon), options, selected, now.astimezone()))
        filename = f"evacuation-routes-{now.date().isoformat()}.pdf"
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    log.info("app ready", extra={"uavsar_service": tile_client.service_url})
    return app


P = load_config()
app = create_app(P)


# -------- local dev entrypoint --------
if __name__ == "__main__":
    uvicorn.run(app, host=P["server"]["host"], port=int(P["server"]["port"]))
