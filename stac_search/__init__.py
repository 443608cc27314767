# ============================================================================
# CONTEXT - STAC SEARCH MODULE
# ============================================================================
# STATUS: Standalone Module - STAC API search query pipeline
# PURPOSE: Build, validate, guard and parse STAC API item searches
# EXPORTS: stac, build_search, ext_query, resolve_endpoint, before_request,
#          prepare_request, after_response, Query, SearchFilters, errors
# DEPENDENCIES: pydantic, httpx
# PATTERNS: Immutable value objects, pure pipeline stages
# ENTRY_POINTS: from stac_search import stac, build_search
# ============================================================================

"""
STAC Search - query construction and validation for STAC API clients

Pipeline:
    stac()            open a catalog (CATALOG query)
    build_search()    validate filters, merge them (SEARCH query)
    ext_query()       optional query extension (EXT_QUERY query, POST only)
    resolve_endpoint  /stac/search before API 0.9.0, /search from 0.9.0
    before_request    reject verb / parameter conflicts before dispatch
    after_response    check status and media type, decode the document

Architecture:
    stac_search/
    ├── version.py     # APIVersion with semantic ordering
    ├── errors.py      # Exception hierarchy
    ├── params.py      # ParamValue variants and wire encoding
    ├── validators.py  # One validator per filter
    ├── query.py       # Query, SearchFilters, builders
    ├── endpoints.py   # Endpoint resolution
    ├── guard.py       # Request guard and request preparation
    └── response.py    # Response parsing and documents

Usage:
    from stac_search import stac, build_search, prepare_request

    q = build_search(
        stac("https://brazildatacube.dpi.inpe.br/stac/", api_version="0.9.0"),
        collections=["CB4_64_16D_STK-1"], limit=10, datetime="2017-08-01/2018-03-01"
    )
    request = prepare_request(q)   # GET .../search?collections=...&limit=10&datetime=...
"""

from .endpoints import build_url, resolve_endpoint
from .errors import (
    InvalidParameter,
    InvalidQueryType,
    MalformedBody,
    STACSearchError,
    TransportError,
    UnexpectedResponse,
    UnsupportedCombination,
    UnsupportedVerb,
)
from .guard import PreparedRequest, before_request, prepare_request
from .params import Bbox, Collections, DateTime, Ids, Intersects, Limit, ParamValue, QueryFilter
from .query import Query, QueryType, SearchFilters, build_search, ext_query, stac
from .response import Catalog, DocumentKind, ItemCollection, RawResponse, STACDocument, after_response
from .version import APIVersion

__version__ = "1.0.0"
__all__ = [
    "APIVersion",
    "Bbox",
    "Catalog",
    "Collections",
    "DateTime",
    "DocumentKind",
    "Ids",
    "Intersects",
    "InvalidParameter",
    "InvalidQueryType",
    "ItemCollection",
    "Limit",
    "MalformedBody",
    "ParamValue",
    "PreparedRequest",
    "Query",
    "QueryFilter",
    "QueryType",
    "RawResponse",
    "STACDocument",
    "STACSearchError",
    "SearchFilters",
    "TransportError",
    "UnexpectedResponse",
    "UnsupportedCombination",
    "UnsupportedVerb",
    "after_response",
    "before_request",
    "build_search",
    "build_url",
    "ext_query",
    "prepare_request",
    "resolve_endpoint",
    "stac",
]
