# ============================================================================
# CONTEXT - REQUEST GUARD
# ============================================================================
# STATUS: Service layer - pre-dispatch checks
# PURPOSE: Reject verb and verb/parameter combinations before any network I/O
# EXPORTS: before_request, prepare_request, PreparedRequest
# DEPENDENCIES: dataclasses, typing
# ============================================================================

"""
Request Guard

``before_request`` is the last stop before the transport: it returns the
query unchanged when it can be sent, and raises otherwise. Nothing is
dispatched for a query the guard rejects.

Rules:
- search queries: verb must be GET or POST
- ``intersects`` requires POST (a geometry does not fit a query string)
- query extension searches require POST
- catalog queries: GET only
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from util_logger import LoggerFactory, ComponentType

from .endpoints import build_url
from .errors import UnsupportedCombination, UnsupportedVerb
from .params import encode_json_body, encode_query_string
from .query import Query, QueryType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "RequestGuard")

SEARCH_VERBS = ("GET", "POST")
CATALOG_VERBS = ("GET",)

# Parameters that can only travel in a POST body
POST_ONLY_PARAMS = {
    "intersects": "geometry intersection filter requires POST",
    "query": "query extension filter requires POST",
}


@dataclass(frozen=True)
class PreparedRequest:
    """A guarded query rendered for the HTTP transport."""
    method: str
    url: str
    params: Optional[Dict[str, str]] = None
    json: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)


def before_request(query: Query) -> Query:
    """
    Check that a query can be dispatched with its verb.

    Args:
        query: Query about to be sent

    Returns:
        The same query, unchanged

    Raises:
        UnsupportedVerb: If the verb is not accepted by the endpoint
        UnsupportedCombination: If a parameter cannot be sent with the verb
    """
    allowed = CATALOG_VERBS if query.query_type == QueryType.CATALOG else SEARCH_VERBS
    if query.verb not in allowed:
        logger.warning(f"Rejected verb {query.verb} for {query.query_type.value} query")
        raise UnsupportedVerb(str(query.verb), allowed)

    if query.verb == "GET":
        for name, message in POST_ONLY_PARAMS.items():
            if name in query.params:
                logger.warning(f"Rejected GET search carrying `{name}`")
                raise UnsupportedCombination(message, parameter=name, verb=query.verb)

    return query


def prepare_request(query: Query) -> PreparedRequest:
    """
    Guard a query and render it for the transport.

    GET sends parameters as a query string, POST as a JSON body.
    """
    query = before_request(query)
    url = build_url(query)

    if query.verb == "POST":
        return PreparedRequest(
            method="POST",
            url=url,
            json=encode_json_body(query.params),
            headers={"Content-Type": "application/json", "Accept": "application/geo+json, application/json"}
        )

    return PreparedRequest(
        method="GET",
        url=url,
        params=encode_query_string(query.params) or None,
        headers={"Accept": "application/geo+json, application/json"}
    )
