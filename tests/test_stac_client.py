"""
Tests for the STAC search HTTP client, using httpx.MockTransport as the catalog.
"""
import json
import logging

import httpx
import pytest

from config import AppConfig
from services.stac_client import STACClient
from stac_search.errors import (
    MalformedBody,
    TransportError,
    UnexpectedResponse,
    UnsupportedCombination,
)
from stac_search.query import build_search, ext_query
from stac_search.response import Catalog, ItemCollection

BDC_URL = "https://brazildatacube.dpi.inpe.br/stac"


@pytest.fixture
def recorded():
    """Requests seen by the mock catalog."""
    return []


@pytest.fixture
def catalog_server(recorded, sample_item_collection, make_response):
    """Mock transport answering search and landing page requests."""
    def handler(request: httpx.Request) -> httpx.Response:
        recorded.append(request)
        if request.url.path.endswith("/search"):
            return make_response(200, sample_item_collection)
        if request.url.path in ("/stac", "/stac/"):
            return make_response(200, {"id": "bdc", "type": "Catalog", "links": []}, "application/json")
        return make_response(404, {"code": "NotFound"}, "application/json")

    return httpx.MockTransport(handler)


@pytest.fixture
def client(catalog_server):
    """Client for a STAC API 0.9.0 catalog."""
    with STACClient(base_url=BDC_URL, api_version="0.9.0", transport=catalog_server) as c:
        yield c


class TestConstruction:
    """Tests for STACClient construction."""

    def test_requires_base_url(self, monkeypatch):
        """Test that a base URL is required."""
        monkeypatch.delenv("STAC_API_BASE_URL", raising=False)
        with pytest.raises(ValueError):
            STACClient()

    def test_environment_fallback(self, monkeypatch):
        """Test STAC_API_BASE_URL and STAC_API_VERSION fallbacks."""
        monkeypatch.setenv("STAC_API_BASE_URL", "https://env.example.com/")
        monkeypatch.setenv("STAC_API_VERSION", "0.8.1")
        client = STACClient()
        assert client.base_url == "https://env.example.com"
        assert str(client.catalog.api_version) == "0.8.1"

    def test_from_config(self, catalog_server, recorded):
        """Test building a client from AppConfig."""
        config = AppConfig(
            stac_api_base_url=BDC_URL,
            stac_api_version="0.8.1",
            stac_http_timeout=12,
            stac_user_agent="bdc-tests"
        )
        with STACClient.from_config(config, transport=catalog_server) as c:
            assert c.timeout == 12
            c.search(limit=1)
        assert recorded[0].url.path == "/stac/stac/search"
        assert recorded[0].headers["User-Agent"] == "bdc-tests"

    def test_close_is_idempotent(self, catalog_server):
        """Test closing twice, and before any request."""
        client = STACClient(base_url=BDC_URL, transport=catalog_server)
        client.close()
        client._get_client()
        client.close()
        client.close()


class TestSearch:
    """Tests for search dispatch."""

    def test_get_search(self, client, recorded):
        """Test the documented GET search end to end."""
        q = build_search(
            client.catalog,
            collections=["CB4_64_16D_STK-1"],
            limit=10,
            datetime="2017-08-01/2018-03-01"
        )
        document = client.get_request(q)

        assert isinstance(document, ItemCollection)
        assert document.items_matched() == 23
        assert document.query.verb == "GET"

        request = recorded[0]
        assert request.method == "GET"
        assert request.url.path == "/stac/search"
        assert request.url.params["collections"] == "CB4_64_16D_STK-1"
        assert request.url.params["limit"] == "10"
        assert request.url.params["datetime"] == "2017-08-01/2018-03-01"

    def test_post_search(self, client, recorded, sample_polygon):
        """Test a POST search sends a JSON body."""
        q = build_search(client.catalog, collections=["CB4_64_16D_STK-1"], intersects=sample_polygon)
        client.post_request(q)

        request = recorded[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {
            "collections": ["CB4_64_16D_STK-1"],
            "intersects": sample_polygon,
        }

    def test_search_shortcut_picks_post_for_intersects(self, client, recorded, sample_polygon):
        """Test that search() switches to POST for geometry filters."""
        client.search(intersects=sample_polygon, limit=5)
        assert recorded[0].method == "POST"

    def test_search_shortcut_get(self, client, recorded):
        """Test that search() uses GET otherwise."""
        page = client.search(collections=["CB4_64_16D_STK-1"], limit=1)
        assert page.items_length() == 1
        assert recorded[0].method == "GET"

    def test_ext_query_post(self, client, recorded):
        """Test that query extension conditions travel in the POST body."""
        q = ext_query(build_search(client.catalog, limit=3), {"eo:cloud_cover": {"lt": 10}})
        client.post_request(q)
        assert json.loads(recorded[0].content) == {"limit": 3, "query": {"eo:cloud_cover": {"lt": 10}}}

    def test_guard_blocks_dispatch(self, client, recorded, sample_polygon):
        """Test that nothing is sent when the guard fails."""
        q = build_search(client.catalog, intersects=sample_polygon)
        with pytest.raises(UnsupportedCombination):
            client.get_request(q)
        assert recorded == []

    def test_legacy_search_path(self, catalog_server, recorded):
        """Test that a 0.8.1 catalog is searched at /stac/search."""
        with STACClient(base_url="https://legacy.example.com", api_version="0.8.1", transport=catalog_server) as c:
            c.search(limit=1)
        assert recorded[0].url.path == "/stac/search"


class TestCatalog:
    """Tests for the landing page."""

    def test_get_catalog(self, client, recorded):
        """Test fetching the landing page."""
        document = client.get_catalog()
        assert isinstance(document, Catalog)
        assert document.id == "bdc"
        assert recorded[0].url.path == "/stac/"


class TestFailures:
    """Tests for failure propagation."""

    def test_404(self, make_response):
        """Test that a 404 raises UnexpectedResponse."""
        transport = httpx.MockTransport(lambda request: make_response(404, {"code": "NotFound"}, "application/json"))
        with STACClient(base_url=BDC_URL, api_version="1.0.0", transport=transport) as c:
            with pytest.raises(UnexpectedResponse) as exc_info:
                c.search(limit=1)
        assert exc_info.value.status == 404

    def test_malformed_body(self):
        """Test that invalid JSON raises MalformedBody."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=b"{oops", headers={"Content-Type": "application/geo+json"})
        )
        with STACClient(base_url=BDC_URL, transport=transport) as c:
            with pytest.raises(MalformedBody):
                c.search(limit=1)

    def test_timeout(self):
        """Test that timeouts are wrapped in TransportError."""
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with STACClient(base_url=BDC_URL, timeout=1.0, transport=httpx.MockTransport(handler)) as c:
            with pytest.raises(TransportError) as exc_info:
                c.search(limit=1)
        assert "timeout" in str(exc_info.value)
        assert exc_info.value.url == f"{BDC_URL}/search"

    def test_connection_error(self):
        """Test that connection errors are wrapped in TransportError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with STACClient(base_url=BDC_URL, transport=httpx.MockTransport(handler)) as c:
            with pytest.raises(TransportError) as exc_info:
                c.search(limit=1)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestLogging:
    """Tests for request and failure logging."""

    def test_request_line_carries_context(self, sample_item_collection, caplog):
        """Test that request logs carry catalog URL, correlation and request IDs."""
        def handler(request):
            return httpx.Response(200, json=sample_item_collection, headers={
                "Content-Type": "application/geo+json", "X-Request-ID": "req-42"
            })

        with STACClient(base_url=BDC_URL, transport=httpx.MockTransport(handler), correlation_id="run-7") as c:
            with caplog.at_level(logging.INFO, logger="stac_search.adapter.STACClient"):
                c.search(limit=1)

        record = [r for r in caplog.records if r.name == "stac_search.adapter.STACClient"][-1]
        assert record.custom_dimensions["catalog_url"] == BDC_URL
        assert record.custom_dimensions["correlation_id"] == "run-7"
        assert record.custom_dimensions["request_id"] == "req-42"
        assert record.custom_dimensions["status_code"] == 200

    def test_caller_errors_logged_as_warning(self, client, sample_polygon, caplog):
        """Test that rejected requests are logged at WARNING without a traceback."""
        q = build_search(client.catalog, intersects=sample_polygon)
        with caplog.at_level(logging.INFO, logger="stac_search.adapter.STACClient"):
            with pytest.raises(UnsupportedCombination):
                client.get_request(q)

        records = [r for r in caplog.records if r.name == "stac_search.adapter.STACClient"]
        assert [r.levelno for r in records] == [logging.WARNING]
        assert records[0].exc_info is None
        assert records[0].custom_dimensions["exception_type"] == "UnsupportedCombination"
