"""
UAVSAR tile proxy and the HTTP API

- mercator: XYZ tile address -> Web Mercator bbox (pure math)
- upstream: ArcGIS MapServer /export client (one 256x256 PNG per tile)
- server:   FastAPI app; /uavsar/tiles/{z}/{x}/{y}, /sites, /flood-zones,
            /geocode, /routes, /routes/report, /health

Run:
    uvicorn flood_tiles.server:app --port 8000
"""
