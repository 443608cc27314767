"""
Pytest configuration and fixtures for the STAC search client tests.
"""
import json

import httpx
import pytest

from config import get_app_config
from stac_search import stac

BDC_URL = "https://brazildatacube.dpi.inpe.br/stac"


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Make every test read the environment afresh."""
    get_app_config.cache_clear()
    yield
    get_app_config.cache_clear()


@pytest.fixture
def catalog_v08():
    """Catalog query speaking STAC API 0.8.1."""
    return stac(BDC_URL, api_version="0.8.1", verb="GET")


@pytest.fixture
def catalog_v09():
    """Catalog query speaking STAC API 0.9.0."""
    return stac(BDC_URL, api_version="0.9.0", verb="GET")


@pytest.fixture
def catalog_v1():
    """Catalog query speaking STAC API 1.0.0."""
    return stac(BDC_URL, api_version="1.0.0", verb="GET")


@pytest.fixture
def sample_polygon():
    """A small GeoJSON polygon."""
    return {
        "type": "Polygon",
        "coordinates": [[
            [-47.02148, -17.35063],
            [-42.53906, -17.35063],
            [-42.53906, -12.98314],
            [-47.02148, -12.98314],
            [-47.02148, -17.35063]
        ]]
    }


@pytest.fixture
def sample_item_collection():
    """A one-item STAC ItemCollection document."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "id": "CB4_64_16D_STK_v1_022024_2018-02-18_2018-03-05",
                "type": "Feature",
                "stac_version": "0.9.0",
                "collection": "CB4_64_16D_STK-1",
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[-47.0, -17.3], [-42.5, -17.3], [-42.5, -12.9], [-47.0, -12.9], [-47.0, -17.3]]]
                },
                "bbox": [-47.0, -17.3, -42.5, -12.9],
                "properties": {"datetime": "2018-02-18T00:00:00Z"},
                "assets": {},
                "links": []
            }
        ],
        "links": [
            {"rel": "next", "href": f"{BDC_URL}/search?page=2", "type": "application/geo+json"}
        ],
        "context": {"page": 1, "limit": 1, "matched": 23, "returned": 1}
    }


def json_response(status_code, payload, content_type="application/geo+json"):
    """Build an httpx.Response with an explicit content type."""
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": content_type}
    )


@pytest.fixture
def make_response():
    """Factory fixture for JSON httpx responses."""
    return json_response
