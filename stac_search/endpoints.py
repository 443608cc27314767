"""
Endpoint resolution.

STAC API 0.9.0 moved the catalog root from ``/stac`` to ``/`` and item
search from ``/stac/search`` to ``/search``. Resolution compares the
query's structured ``APIVersion`` against that boundary.
"""

from .errors import InvalidQueryType
from .query import Query, QueryType
from .version import SEARCH_PATH_CHANGE


def resolve_endpoint(query: Query) -> str:
    """
    Map a query to its request path.

    Returns:
        "/stac/search" or "/search" for search queries,
        "/stac" or "/" for catalog queries

    Raises:
        InvalidQueryType: If the query has no known endpoint
    """
    if not isinstance(query, Query):
        raise InvalidQueryType(f"Cannot resolve an endpoint for {type(query).__name__}")

    legacy = query.api_version < SEARCH_PATH_CHANGE

    if query.query_type in (QueryType.SEARCH, QueryType.EXT_QUERY):
        return "/stac/search" if legacy else "/search"

    if query.query_type == QueryType.CATALOG:
        return "/stac" if legacy else "/"

    raise InvalidQueryType(f"No endpoint for query type '{query.query_type}'")


def build_url(query: Query) -> str:
    """Absolute request URL: base URL joined with the resolved endpoint."""
    return f"{query.base_url}{resolve_endpoint(query)}"
