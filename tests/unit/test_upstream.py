"""
Unit tests for the UAVSAR MapServer export client
"""

import os
import sys
from unittest.mock import Mock
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.config import DEFAULT_UAVSAR_SERVICE_URL
from flood_tiles.mercator import compute_projected_bbox
from flood_tiles.upstream import UpstreamError, UpstreamTileClient

SERVICE = "http://upstream.test/arcgis/rest/services/uavsar/MapServer"


def _response(status, chunks=(), text=""):
    # Like a chunked body on a live socket: only the first iter_content()
    # call sees the data, later calls get an exhausted stream.
    r = Mock()
    r.status_code = status
    bodies = [list(chunks)]
    r.iter_content.side_effect = lambda chunk_size=None: iter(bodies.pop() if bodies else [])
    r.text = text
    return r


class TestBuildUrl:
    def test_default_service(self):
        client = UpstreamTileClient(session=Mock())
        assert client.service_url == DEFAULT_UAVSAR_SERVICE_URL

    def test_export_query(self):
        client = UpstreamTileClient(SERVICE + "/", session=Mock())
        bbox = compute_projected_bbox(10, 100, 200)
        url = client.build_url(bbox)

        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == SERVICE + "/export"
        q = {k: v[0] for k, v in parse_qs(parts.query).items()}
        assert q["bbox"] == bbox.to_query()
        assert [float(v) for v in q["bbox"].split(",")] == list(bbox.as_tuple())
        assert q["bboxSR"] == "102100"
        assert q["imageSR"] == "102100"
        assert q["size"] == "256,256"
        assert q["format"] == "png32"
        assert q["transparent"] == "true"
        assert q["f"] == "image"


class TestFetch:
    def test_success_streams_all_chunks(self):
        session = Mock()
        session.get.return_value = _response(200, [b"\x89PNG", b"rest"])
        client = UpstreamTileClient(SERVICE, timeout=3.0, session=session)

        tile = client.fetch(compute_projected_bbox(10, 100, 200))
        assert tile.status == 200
        assert b"".join(tile.iter_bytes()) == b"\x89PNGrest"

        _, kwargs = session.get.call_args
        assert kwargs["timeout"] == 3.0
        assert kwargs["stream"] is True
        assert kwargs["headers"]["Accept"] == "image/png"

    def test_body_read_through_one_iterator(self):
        chunks = [bytes([i]) * 8192 for i in range(12)]
        session = Mock()
        resp = _response(200, chunks)
        session.get.return_value = resp
        client = UpstreamTileClient(SERVICE, session=session)

        tile = client.fetch(compute_projected_bbox(10, 100, 200))
        assert b"".join(tile.iter_bytes()) == b"".join(chunks)
        assert resp.iter_content.call_count == 1

    def test_single_attempt(self):
        session = Mock()
        session.get.return_value = _response(500, text="boom")
        client = UpstreamTileClient(SERVICE, session=session)
        with pytest.raises(UpstreamError):
            client.fetch(compute_projected_bbox(3, 1, 1))
        assert session.get.call_count == 1

    def test_error_status_and_text(self):
        session = Mock()
        resp = _response(404, text="tile not found")
        session.get.return_value = resp
        client = UpstreamTileClient(SERVICE, session=session)

        with pytest.raises(UpstreamError) as exc:
            client.fetch(compute_projected_bbox(10, 100, 200))
        assert exc.value.status == 404
        assert exc.value.message == "tile not found"
        resp.close.assert_called_once()

    def test_error_without_text(self):
        session = Mock()
        session.get.return_value = _response(503, text="")
        client = UpstreamTileClient(SERVICE, session=session)

        with pytest.raises(UpstreamError) as exc:
            client.fetch(compute_projected_bbox(1, 0, 0))
        assert exc.value.status == 503
        assert exc.value.message == "Upstream error 503"

    def test_empty_body_is_failure(self):
        session = Mock()
        session.get.return_value = _response(200, [])
        client = UpstreamTileClient(SERVICE, session=session)

        with pytest.raises(UpstreamError) as exc:
            client.fetch(compute_projected_bbox(1, 0, 0))
        assert exc.value.status == 502
        assert exc.value.message == "Upstream error 200"

    @pytest.mark.parametrize(
        "err", [requests.ConnectionError("refused"), requests.Timeout("slow")]
    )
    def test_network_failure(self, err):
        session = Mock()
        session.get.side_effect = err
        client = UpstreamTileClient(SERVICE, session=session)

        with pytest.raises(UpstreamError) as exc:
            client.fetch(compute_projected_bbox(1, 0, 0))
        assert exc.value.status == 502
        assert "Upstream request failed" in exc.value.message
