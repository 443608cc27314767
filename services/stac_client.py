# ============================================================================
# CONTEXT - STAC SEARCH HTTP CLIENT
# ============================================================================
# STATUS: Service Layer - HTTP transport for the STAC search pipeline
# PURPOSE: Dispatch guarded queries with httpx and parse the responses
# EXPORTS: STACClient
# DEPENDENCIES: httpx (sync)
# PORTABLE: Yes - config only imported lazily by from_config(), otherwise params or env vars
# ============================================================================
"""
STAC Search HTTP Client (SYNC VERSION).

Runs the request pipeline against a live catalog:

    Built -> before_request -> httpx dispatch -> after_response -> document

The query builders in ``stac_search`` never touch the network; this
client is the only place a request is sent. No retries are performed.

PORTABILITY:
    Does NOT import from config at module level - accepts base_url /
    api_version as constructor params or falls back to STAC_API_BASE_URL
    and STAC_API_VERSION environment variables. STACClient.from_config()
    reads AppConfig instead.
"""

import os
import time
import httpx
from dataclasses import replace
from typing import Any, Optional

from stac_search.errors import STACSearchError, TransportError
from stac_search.guard import prepare_request
from stac_search.query import Query, build_search, stac
from stac_search.response import Catalog, ItemCollection, RawResponse, STACDocument, after_response
from util_logger import LoggerFactory, ComponentType, LogContext, log_exceptions

logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "STACClient")


class STACClient:
    """
    STAC API search client (SYNC VERSION).

    Usage:
        # Option 1: Explicit base_url
        client = STACClient(base_url="https://brazildatacube.dpi.inpe.br/stac", api_version="0.9.0")

        # Option 2: From environment variables STAC_API_BASE_URL / STAC_API_VERSION
        client = STACClient()

        # One-call search
        page = client.search(collections=["CB4_64_16D_STK-1"], limit=10)
        print(page.items_length(), page.items_matched())

        # Or build the query yourself
        q = build_search(client.catalog, bbox=[-47.0, -17.3, -42.5, -12.9])
        page = client.post_request(q)

        # Always close when done (or use as a context manager)
        client.close()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: float = 30.0,
        user_agent: str = "stac-search-client",
        transport: Optional[httpx.BaseTransport] = None,
        correlation_id: Optional[str] = None
    ):
        """
        Initialize STAC client.

        Args:
            base_url: Catalog root URL. If not provided, uses STAC_API_BASE_URL env var.
            api_version: STAC API version. If not provided, uses STAC_API_VERSION env var or "1.0.0".
            timeout: Request timeout in seconds.
            user_agent: User-Agent header value.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
            correlation_id: Optional ID attached to every request log line.

        Raises:
            ValueError: If no base_url provided and STAC_API_BASE_URL not set.
        """
        self.base_url = (base_url or os.getenv("STAC_API_BASE_URL", "")).rstrip('/')
        if not self.base_url:
            raise ValueError(
                "STACClient requires base_url parameter or STAC_API_BASE_URL environment variable"
            )
        self.api_version = api_version or os.getenv("STAC_API_VERSION", "1.0.0")
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self.log_context = LogContext(correlation_id=correlation_id, catalog_url=self.base_url)

        self.catalog: Query = stac(self.base_url, api_version=self.api_version, verb="GET")

    @classmethod
    def from_config(cls, config=None, transport: Optional[httpx.BaseTransport] = None) -> "STACClient":
        """
        Build a client from the application configuration.

        Args:
            config: AppConfig instance; defaults to get_app_config()
            transport: Optional httpx transport
        """
        if config is None:
            from config import get_app_config
            config = get_app_config()

        return cls(
            base_url=config.stac_api_base_url,
            api_version=config.stac_api_version,
            timeout=config.stac_http_timeout,
            user_agent=config.stac_user_agent,
            transport=transport
        )

    def _get_client(self) -> httpx.Client:
        """Get or create sync HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport
            )
        return self._client

    def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> "STACClient":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @log_exceptions(logger=logger, expected=(STACSearchError,))
    def execute(self, query: Query) -> STACDocument:
        """
        Guard, dispatch and parse a query.

        Args:
            query: Catalog or search query

        Returns:
            ItemCollection (search) or Catalog (catalog) document

        Raises:
            UnsupportedVerb, UnsupportedCombination: Before any request is sent
            TransportError: On timeout or connection failure
            UnexpectedResponse, MalformedBody: On a bad response
        """
        prepared = prepare_request(query)
        client = self._get_client()

        start = time.perf_counter()
        try:
            response = client.request(
                prepared.method,
                prepared.url,
                params=prepared.params,
                json=prepared.json,
                headers=prepared.headers
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"STAC API timeout after {self.timeout}s", url=prepared.url) from e
        except httpx.RequestError as e:
            raise TransportError(f"STAC API request error: {str(e)}", url=prepared.url) from e

        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        context = replace(self.log_context, request_id=response.headers.get("x-request-id"))
        logger.info(
            f"{prepared.method} {prepared.url} -> {response.status_code}",
            extra={'custom_dimensions': {
                **context.to_dict(),
                'method': prepared.method,
                'url': prepared.url,
                'status_code': response.status_code,
                'duration_ms': duration_ms
            }}
        )

        return after_response(query, RawResponse.from_httpx(response))

    def get_request(self, query: Query) -> STACDocument:
        """Dispatch a query with HTTP GET."""
        return self.execute(query.with_verb("GET"))

    def post_request(self, query: Query) -> STACDocument:
        """Dispatch a query with HTTP POST."""
        return self.execute(query.with_verb("POST"))

    def get_catalog(self) -> Catalog:
        """Fetch the catalog landing page."""
        return self.execute(self.catalog)

    def search(self, verb: Optional[str] = None, **filters: Any) -> ItemCollection:
        """
        Search items in this client's catalog.

        Args:
            verb: "GET" or "POST"; defaults to POST when ``intersects`` is given, GET otherwise
            **filters: collections, ids, datetime, bbox, intersects, limit

        Returns:
            First page of results
        """
        query = build_search(self.catalog, **filters)
        if verb is None:
            verb = "POST" if "intersects" in query.params else "GET"
        return self.execute(query.with_verb(verb))
