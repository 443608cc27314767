# ============================================================================
# CONTEXT - QUERY BUILDER
# ============================================================================
# STATUS: Factory layer - immutable query construction
# PURPOSE: Open a catalog query and merge validated search filters into it
# EXPORTS: QueryType, Query, SearchFilters, stac, build_search, ext_query
# INTERFACES: Query is a frozen dataclass; SearchFilters is a Pydantic BaseModel
# DEPENDENCIES: pydantic, dataclasses, types
# PATTERNS: Copy-on-modify value objects, fail-fast validation
# ENTRY_POINTS: stac(url) -> build_search(q, ...) -> ext_query(q, ...)
# ============================================================================

"""
Query Builder

A ``Query`` carries everything needed to issue a request against a STAC
API: the API version, the catalog base URL, the accumulated search
parameters, the HTTP verb and a ``QueryType`` tag saying what the query
is for. Queries are never mutated; every builder returns a new one.

Typical flow:
    q = stac("https://brazildatacube.dpi.inpe.br/stac/", api_version="0.9.0")
    q = build_search(q, collections=["CB4_64_16D_STK-1"], limit=10,
                     datetime="2017-08-01/2018-03-01")
    q = ext_query(q.with_verb("POST"), {"eo:cloud_cover": {"lt": 10}})
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from util_logger import LoggerFactory, ComponentType

from .errors import InvalidParameter, InvalidQueryType
from .params import ParamValue, QueryFilter, encode_json_body
from .validators import (
    validate_bbox,
    validate_collections,
    validate_datetime,
    validate_ids,
    validate_intersects,
    validate_limit,
    validate_query_conditions,
)
from .version import APIVersion

logger = LoggerFactory.create_logger(ComponentType.FACTORY, "QueryBuilder")


class QueryType(Enum):
    """What a query targets."""
    CATALOG = "catalog"      # Landing page of a catalog, produced by stac()
    SEARCH = "search"        # Item search, produced by build_search()
    EXT_QUERY = "ext_query"  # Item search with query extension, produced by ext_query()


# Query types the search builder accepts as input
SEARCHABLE_TYPES = frozenset({QueryType.CATALOG, QueryType.SEARCH})

# Query types the query extension accepts as input
EXTENDABLE_TYPES = frozenset({QueryType.SEARCH, QueryType.EXT_QUERY})


def _freeze(params: Mapping[str, ParamValue]) -> Mapping[str, ParamValue]:
    return MappingProxyType(dict(params))


@dataclass(frozen=True)
class Query:
    """
    Immutable STAC API request description.

    Attributes:
        api_version: Version of the STAC API spoken by the catalog
        base_url: Catalog root URL without trailing slash
        params: Validated search parameters in insertion order (read-only)
        verb: HTTP verb used to dispatch the query
        query_type: Tag identifying what the query targets
    """
    api_version: APIVersion
    base_url: str
    params: Mapping[str, ParamValue] = field(default_factory=dict)
    verb: str = "GET"
    query_type: QueryType = QueryType.CATALOG

    def __post_init__(self):
        object.__setattr__(self, "params", _freeze(self.params))

    def __hash__(self):
        return hash((self.api_version, self.base_url, self.verb, self.query_type,
                     tuple(self.params.items())))

    def __eq__(self, other):
        if not isinstance(other, Query):
            return NotImplemented
        return (
            self.api_version == other.api_version
            and self.base_url == other.base_url
            and self.verb == other.verb
            and self.query_type == other.query_type
            and list(self.params.items()) == list(other.params.items())
        )

    def with_verb(self, verb: str) -> "Query":
        """Return a copy dispatched with another HTTP verb (checked by the guard)."""
        return replace(self, verb=verb.upper() if isinstance(verb, str) else verb)

    def merge_params(self, params: Mapping[str, ParamValue], query_type: Optional[QueryType] = None) -> "Query":
        """Return a copy with ``params`` merged in; later values win on repeated keys."""
        merged = dict(self.params)
        merged.update(params)
        return replace(self, params=merged, query_type=query_type or self.query_type)

    def params_as_json(self) -> Dict[str, Any]:
        """Parameters as plain JSON values, in insertion order."""
        return encode_json_body(self.params)


# ============================================================================
# FILTER RECORD
# ============================================================================

class SearchFilters(BaseModel):
    """
    Optional search filters, passed to ``build_search``.

    Values are loosely typed on purpose: each field is checked by its own
    validator when the search is built, so the error names the field.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    collections: Optional[Any] = None
    ids: Optional[Any] = None
    datetime: Optional[Any] = None
    bbox: Optional[Any] = None
    intersects: Optional[Any] = None
    limit: Optional[Any] = None


# Fixed validation order: the first failing field is the one reported
FILTER_VALIDATORS: Tuple[Tuple[str, Callable[[Any], ParamValue]], ...] = (
    ("collections", validate_collections),
    ("ids", validate_ids),
    ("datetime", validate_datetime),
    ("bbox", validate_bbox),
    ("intersects", validate_intersects),
    ("limit", validate_limit),
)


# ============================================================================
# BUILDERS
# ============================================================================

def stac(
    base_url: Optional[str] = None,
    api_version: Optional[Union[str, APIVersion]] = None,
    verb: Optional[str] = None
) -> Query:
    """
    Open a catalog: create the base ``CATALOG`` query.

    Missing arguments fall back to the application configuration
    (STAC_API_BASE_URL, STAC_API_VERSION, STAC_DEFAULT_VERB).

    Args:
        base_url: Catalog root URL
        api_version: STAC API version of the catalog
        verb: HTTP verb for requests built from this query

    Returns:
        Query tagged CATALOG with no parameters

    Raises:
        InvalidParameter: If the URL is missing or the version is malformed
    """
    if base_url is None or api_version is None or verb is None:
        from config import get_app_config
        config = get_app_config()
        base_url = base_url if base_url is not None else config.stac_api_base_url
        api_version = api_version if api_version is not None else config.stac_api_version
        verb = verb if verb is not None else config.stac_default_verb

    if not isinstance(base_url, str) or not base_url.strip():
        raise InvalidParameter("base_url", "a catalog URL is required (argument or STAC_API_BASE_URL)")

    query = Query(
        api_version=APIVersion.parse(api_version),
        base_url=base_url.strip().rstrip("/"),
        verb=verb.upper(),
        query_type=QueryType.CATALOG
    )
    logger.debug(f"Opened catalog {query.base_url} (STAC API {query.api_version})")
    return query


def build_search(
    query: Query,
    filters: Optional[Union[SearchFilters, Mapping[str, Any]]] = None,
    **kwargs: Any
) -> Query:
    """
    Build an item search from a catalog or search query.

    Filters can be given as a ``SearchFilters`` record, a plain mapping
    or as keyword arguments (not both). Each present filter is validated in the order
    collections, ids, datetime, bbox, intersects, limit; the first invalid
    one aborts the build. Validated parameters overwrite same-named
    parameters already on the query.

    Args:
        query: Query tagged CATALOG or SEARCH
        filters: Optional filter record or mapping of filter name -> value
        **kwargs: Filter values, same names as SearchFilters fields

    Returns:
        New query tagged SEARCH

    Raises:
        InvalidQueryType: If ``query`` is not a catalog or search query
        InvalidParameter: On the first invalid filter
    """
    if not isinstance(query, Query) or query.query_type not in SEARCHABLE_TYPES:
        found = query.query_type.value if isinstance(query, Query) else type(query).__name__
        raise InvalidQueryType(
            f"build_search expects a catalog or search query, got '{found}'",
            details={"expected": sorted(t.value for t in SEARCHABLE_TYPES), "found": found}
        )

    if filters is not None and kwargs:
        raise TypeError("build_search takes either a SearchFilters record or keyword filters, not both")

    if isinstance(filters, Mapping):
        kwargs = dict(filters)
        filters = None
    elif filters is not None and not isinstance(filters, SearchFilters):
        raise TypeError(f"filters must be a SearchFilters record or a mapping, got {type(filters).__name__}")

    if filters is None:
        try:
            filters = SearchFilters(**kwargs)
        except ValidationError as e:
            unknown = [str(err["loc"][0]) for err in e.errors() if err.get("loc")]
            raise InvalidParameter(", ".join(unknown) or "filters", "unknown search filter")

    params: Dict[str, ParamValue] = {}
    for name, validator in FILTER_VALIDATORS:
        raw = getattr(filters, name)
        if raw is None:
            continue
        params[name] = validator(raw)

    logger.debug(
        f"Built search with filters {list(params)}",
        extra={'custom_dimensions': {'base_url': query.base_url, 'api_version': str(query.api_version)}}
    )
    return query.merge_params(params, query_type=QueryType.SEARCH)


def ext_query(query: Query, conditions: Mapping[str, Mapping[str, Any]]) -> Query:
    """
    Add query extension conditions to a search.

    Conditions on a property already present are merged operator by
    operator; later values win. Requests for the result must use POST.

    Example:
        ext_query(q, {"eo:cloud_cover": {"lt": 10}})

    Raises:
        InvalidQueryType: If ``query`` is not a search query
        InvalidParameter: If a condition is malformed
    """
    if not isinstance(query, Query) or query.query_type not in EXTENDABLE_TYPES:
        found = query.query_type.value if isinstance(query, Query) else type(query).__name__
        raise InvalidQueryType(
            f"ext_query expects a search query, got '{found}'",
            details={"expected": sorted(t.value for t in EXTENDABLE_TYPES), "found": found}
        )

    new_filter = validate_query_conditions(conditions)

    existing = query.params.get("query")
    merged: Dict[str, Dict[str, Any]] = {}
    if isinstance(existing, QueryFilter):
        merged = {prop: dict(ops) for prop, ops in existing.conditions.items()}
    for prop, ops in new_filter.conditions.items():
        merged.setdefault(prop, {}).update(ops)

    return query.merge_params({"query": QueryFilter(conditions=merged)}, query_type=QueryType.EXT_QUERY)
