"""
Search parameter values.

Each filter accepted by the search endpoint has its own immutable value
type. Values are produced only by ``stac_search.validators`` and know how
to encode themselves for the two transports:

- ``to_query_param()``: string for a GET query string
- ``to_json()``: JSON-compatible value for a POST body

Wire formats:
    collections / ids   "a,b"                    ["a", "b"]
    datetime            "start/end" or instant   same string
    bbox                "w,s,e,n"                [w, s, e, n]
    intersects          (POST only)              GeoJSON object
    limit               "10"                     10
    query               (POST only)              {"prop": {"op": value}}
"""

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

OPEN_BOUND = ".."


def freeze_json(value: Any) -> Any:
    """Read-only deep copy of a JSON value: objects become mapping proxies, arrays tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze_json(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_json(item) for item in value)
    return value


def thaw_json(value: Any) -> Any:
    """Fresh mutable copy of a frozen JSON value (dicts and lists)."""
    if isinstance(value, Mapping):
        return {key: thaw_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw_json(item) for item in value]
    return value


class ParamValue:
    """Base class of every validated search parameter."""

    name: str = ""

    def to_query_param(self) -> str:
        raise NotImplementedError

    def to_json(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class Collections(ParamValue):
    """Collection IDs to restrict the search to."""
    values: Tuple[str, ...]

    name = "collections"

    def to_query_param(self) -> str:
        return ",".join(self.values)

    def to_json(self) -> Any:
        return list(self.values)


@dataclass(frozen=True)
class Ids(ParamValue):
    """Item IDs to fetch."""
    values: Tuple[str, ...]

    name = "ids"

    def to_query_param(self) -> str:
        return ",".join(self.values)

    def to_json(self) -> Any:
        return list(self.values)


@dataclass(frozen=True)
class DateTime(ParamValue):
    """
    Temporal filter: a single RFC 3339 instant or an interval.

    For an instant ``end`` is None. For an interval either bound may be
    ``".."`` (open), but never both.
    """
    start: str
    end: Optional[str] = None

    name = "datetime"

    @property
    def is_interval(self) -> bool:
        return self.end is not None

    @property
    def is_open_start(self) -> bool:
        return self.is_interval and self.start == OPEN_BOUND

    @property
    def is_open_end(self) -> bool:
        return self.is_interval and self.end == OPEN_BOUND

    def to_query_param(self) -> str:
        if self.end is None:
            return self.start
        return f"{self.start}/{self.end}"

    def to_json(self) -> Any:
        return self.to_query_param()


@dataclass(frozen=True)
class Bbox(ParamValue):
    """Bounding box: 4 (2D) or 6 (3D) numbers, lower-left then upper-right corner."""
    values: Tuple[float, ...]

    name = "bbox"

    @property
    def is_3d(self) -> bool:
        return len(self.values) == 6

    def to_query_param(self) -> str:
        return ",".join(_format_number(v) for v in self.values)

    def to_json(self) -> Any:
        return list(self.values)


@dataclass(frozen=True)
class Intersects(ParamValue):
    """GeoJSON geometry the returned items must intersect."""
    geometry: Mapping[str, Any]

    name = "intersects"

    def __post_init__(self):
        object.__setattr__(self, "geometry", freeze_json(self.geometry))

    @property
    def geometry_type(self) -> str:
        return self.geometry["type"]

    def to_query_param(self) -> str:
        return json.dumps(self.to_json(), separators=(",", ":"))

    def to_json(self) -> Any:
        return thaw_json(self.geometry)

    def __hash__(self):
        return hash(self.to_query_param())


@dataclass(frozen=True)
class Limit(ParamValue):
    """Maximum number of items per page."""
    value: int

    name = "limit"

    def to_query_param(self) -> str:
        return str(self.value)

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class QueryFilter(ParamValue):
    """Query extension conditions: property -> {operator: value}."""
    conditions: Mapping[str, Mapping[str, Any]]

    name = "query"

    def __post_init__(self):
        object.__setattr__(self, "conditions", freeze_json(self.conditions))

    def to_query_param(self) -> str:
        return json.dumps(self.to_json(), separators=(",", ":"))

    def to_json(self) -> Any:
        return thaw_json(self.conditions)

    def __hash__(self):
        return hash(self.to_query_param())


def _format_number(value: float) -> str:
    # Integral values print without a trailing ".0"
    if isinstance(value, int):
        return str(value)
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def encode_query_string(params: Mapping[str, ParamValue]) -> Dict[str, str]:
    """Encode parameters for a GET request, preserving insertion order."""
    return {key: value.to_query_param() for key, value in params.items()}


def encode_json_body(params: Mapping[str, ParamValue]) -> Dict[str, Any]:
    """Encode parameters for a POST request body, preserving insertion order."""
    return {key: value.to_json() for key, value in params.items()}
