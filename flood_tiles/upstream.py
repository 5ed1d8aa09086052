from __future__ import annotations

"""
ArcGIS MapServer `export` client for the UAVSAR flood-classification layer.

The service rasterises an arbitrary bbox; we always ask for one 256x256
transparent PNG in Web Mercator, so the result lines up with XYZ basemap tiles.

Usage:
    client = UpstreamTileClient(service_url)
    tile = client.fetch(compute_projected_bbox(z, x, y))
    try:
        for chunk in tile.iter_bytes():
            ...
    finally:
        tile.close()
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional
from urllib.parse import urlencode

import requests

from common.config import DEFAULT_UAVSAR_SERVICE_URL
from flood_tiles.mercator import TILE_SIZE, WEB_MERCATOR_WKID, ProjectedBBox


log = logging.getLogger(__name__)

CHUNK_SIZE = 16 * 1024


class UpstreamError(Exception):
    """Export request failed: non-2xx, empty body, or a transport error (status 502)."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class UpstreamTile:
    """
    An open upstream response. `first_chunk` was read from `chunks` to prove
    the body is non-empty; the rest is still on the wire. `chunks` must be
    the same iterator the first chunk came from: a second `iter_content`
    call on a chunked body sees a closed connection.
    """
    status: int
    response: requests.Response
    first_chunk: bytes = b""
    chunks: Iterator[bytes] = field(default_factory=lambda: iter(()))

    def iter_bytes(self) -> Iterator[bytes]:
        if self.first_chunk:
            yield self.first_chunk
        yield from self.chunks

    def close(self) -> None:
        self.response.close()


class UpstreamTileClient:
    def __init__(
        self,
        service_url: Optional[str] = None,
        timeout: float = 8.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Params:
            service_url: MapServer root (no trailing /export)
            timeout: connect/read timeout in seconds for the single attempt
            session: optional requests.Session for connection reuse
        """
        self.service_url = (service_url or DEFAULT_UAVSAR_SERVICE_URL).rstrip("/")
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    # ----------------------------
    # Public API
    # ----------------------------
    def export_params(self, bbox: ProjectedBBox) -> Dict[str, str]:
        return {
            "bbox": bbox.to_query(),
            "bboxSR": str(WEB_MERCATOR_WKID),
            "imageSR": str(WEB_MERCATOR_WKID),
            "size": f"{TILE_SIZE},{TILE_SIZE}",
            "format": "png32",
            "transparent": "true",
            "f": "image",
        }

    def build_url(self, bbox: ProjectedBBox) -> str:
        """Fully-qualified export URL (no request performed)."""
        return f"{self.service_url}/export?{urlencode(self.export_params(bbox))}"

    def fetch(self, bbox: ProjectedBBox) -> UpstreamTile:
        """
        Issue the export request once and return the open response on success.

        Raises:
            UpstreamError: status/body problems keep the upstream status (502 if
            it is unusable); transport errors and timeouts are always 502.
        """
        url = self.build_url(bbox)
        try:
            r = self.session.get(
                url,
                headers={"Accept": "image/png", "Cache-Control": "no-cache"},
                timeout=self.timeout,
                stream=True,
            )
        except requests.RequestException as e:
            log.warning("UAVSAR export request failed: %s", e, extra={"bbox": bbox.to_query()})
            raise UpstreamError(502, f"Upstream request failed: {e}") from e

        if 200 <= r.status_code < 300:
            chunks = r.iter_content(chunk_size=CHUNK_SIZE)
            first = self._peek(r, chunks)
            if first:
                return UpstreamTile(status=r.status_code, response=r, first_chunk=first, chunks=chunks)
            r.close()
            log.warning("UAVSAR export returned an empty body", extra={"bbox": bbox.to_query()})
            # a success status cannot carry an error payload
            raise UpstreamError(502, f"Upstream error {r.status_code}")

        message = self._error_text(r)
        status = r.status_code if 400 <= (r.status_code or 0) <= 599 else 502
        log.warning(
            "UAVSAR export returned %s",
            r.status_code,
            extra={"bbox": bbox.to_query(), "upstream_error": message[:200]},
        )
        raise UpstreamError(status, message or f"Upstream error {r.status_code}")

    # ----------------------------
    # Internals
    # ----------------------------
    @staticmethod
    def _peek(r: requests.Response, chunks: Iterator[bytes]) -> bytes:
        # An empty 2xx body counts as a failure, so read the first chunk before committing.
        try:
            return next(chunks, b"")
        except requests.RequestException as e:
            r.close()
            raise UpstreamError(502, f"Upstream request failed: {e}") from e

    @staticmethod
    def _error_text(r: requests.Response) -> str:
        try:
            return r.text.strip()
        except Exception:  # best-effort only; caller substitutes a generic message
            return ""
        finally:
            r.close()
