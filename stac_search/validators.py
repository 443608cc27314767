# ============================================================================
# CONTEXT - SEARCH PARAMETER VALIDATORS
# ============================================================================
# STATUS: Foundation layer - pure validation functions
# PURPOSE: Validate and normalize raw search filters into ParamValue objects
# EXPORTS: validate_collections, validate_ids, validate_datetime, validate_bbox,
#          validate_intersects, validate_limit, validate_query_conditions, is_rfc3339
# DEPENDENCIES: re, math, json, datetime
# VALIDATION: Every failure raises InvalidParameter(field, reason)
# ============================================================================

"""
Search Parameter Validators

Each validator takes the loosely-typed value a caller passed for one
filter and returns the matching ``ParamValue``, or raises
``InvalidParameter`` naming the field. Validators do not depend on each
other and never return partial results.

Deliberately permissive:
- collections / ids are not de-duplicated
- bbox corner order is not checked (antimeridian boxes have west > east)
- geometries are checked for shape only, never geometrically analyzed
"""

import json
import math
import re
from datetime import date, datetime, timezone
from numbers import Integral, Real
from typing import Any, Iterable, Mapping, Tuple

from util_logger import LoggerFactory, ComponentType

from .errors import InvalidParameter
from .params import (
    OPEN_BOUND,
    Bbox,
    Collections,
    DateTime,
    Ids,
    Intersects,
    Limit,
    QueryFilter,
    thaw_json,
)

logger = LoggerFactory.create_logger(ComponentType.VALIDATOR, "validators")

GEOMETRY_TYPES = frozenset({
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
})

QUERY_OPERATORS = frozenset({
    "eq", "neq", "lt", "lte", "gt", "gte",
    "startsWith", "endsWith", "contains", "in",
})

# RFC 3339 section 5.6: full-date, optionally followed by a time and offset.
# DIGIT is ASCII only
_RFC3339_RE = re.compile(
    r"^(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})"
    r"(?:[Tt ](?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})(?:\.[0-9]+)?"
    r"(?P<offset>[Zz]|[+-](?P<off_h>[0-9]{2}):(?P<off_m>[0-9]{2})))?$"
)


# ============================================================================
# RFC 3339
# ============================================================================

def is_rfc3339(value: str) -> bool:
    """
    Check that a string is an RFC 3339 date-time or full-date.

    The regex checks the shape; the calendar check rejects values such as
    month 13, February 30 or hour 25. Leap second 60 is allowed.
    """
    match = _RFC3339_RE.fullmatch(value)
    if not match:
        return False

    try:
        date(int(match.group("year")), int(match.group("month")), int(match.group("day")))
    except ValueError:
        return False

    if match.group("hour") is None:
        return True

    if int(match.group("hour")) > 23 or int(match.group("minute")) > 59 or int(match.group("second")) > 60:
        return False

    if match.group("off_h") is not None:
        if int(match.group("off_h")) > 23 or int(match.group("off_m")) > 59:
            return False

    return True


def _format_rfc3339(value: date) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.isoformat().replace("+00:00", "Z")
    return value.isoformat()


# ============================================================================
# COLLECTIONS / IDS
# ============================================================================

def _validate_identifiers(field: str, raw: Any) -> Tuple[str, ...]:
    if isinstance(raw, str):
        raw = [raw]
    elif isinstance(raw, (bytes, Mapping)) or not isinstance(raw, Iterable):
        raise InvalidParameter(field, f"expected a sequence of strings, got {type(raw).__name__}")

    values = tuple(raw)
    if not values:
        raise InvalidParameter(field, "must contain at least one value")

    for position, value in enumerate(values):
        if not isinstance(value, str):
            raise InvalidParameter(field, f"element {position} is {type(value).__name__}, expected a string")
        if not value.strip():
            raise InvalidParameter(field, f"element {position} is empty")

    return values


def validate_collections(raw: Any) -> Collections:
    """Validate collection IDs (a string or a sequence of strings)."""
    return Collections(values=_validate_identifiers("collections", raw))


def validate_ids(raw: Any) -> Ids:
    """Validate item IDs (a string or a sequence of strings)."""
    return Ids(values=_validate_identifiers("ids", raw))


# ============================================================================
# DATETIME
# ============================================================================

def validate_datetime(raw: Any) -> DateTime:
    """
    Validate a datetime filter.

    Accepted forms:
        "2018-02-12T23:20:50Z"                          instant
        "2018-02-12T00:00:00Z/2018-03-18T12:31:12Z"     closed interval
        "2018-02-12T00:00:00Z/.."                       open end
        "../2018-03-18T12:31:12Z"                       open start

    ``datetime``/``date`` objects are rendered as RFC 3339 instants.

    Raises:
        InvalidParameter: On zero-length bounds, more than one "/",
            a bound that is neither ".." nor RFC 3339, or "../.."
    """
    if isinstance(raw, (datetime, date)):
        return DateTime(start=_format_rfc3339(raw))

    if not isinstance(raw, str):
        raise InvalidParameter("datetime", f"expected a string, got {type(raw).__name__}")

    value = raw.strip()
    separators = value.count("/")

    if separators == 0:
        if not is_rfc3339(value):
            raise InvalidParameter("datetime", f"'{raw}' is not a valid RFC 3339 date-time")
        return DateTime(start=value)

    if separators > 1:
        raise InvalidParameter("datetime", f"'{raw}' must contain at most one '/' separator")

    start, end = value.split("/")
    for bound_name, bound in (("start", start), ("end", end)):
        if bound == OPEN_BOUND:
            continue
        if not bound:
            raise InvalidParameter("datetime", f"interval {bound_name} is empty; use '..' for an open bound")
        if not is_rfc3339(bound):
            raise InvalidParameter("datetime", f"interval {bound_name} '{bound}' is not a valid RFC 3339 date-time")

    if start == OPEN_BOUND and end == OPEN_BOUND:
        raise InvalidParameter("datetime", "interval cannot be open at both ends")

    return DateTime(start=start, end=end)


# ============================================================================
# BBOX
# ============================================================================

def validate_bbox(raw: Any) -> Bbox:
    """
    Validate a bounding box of 4 or 6 finite numbers.

    Values pass through unchanged: no min/max ordering is enforced.
    """
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Iterable):
        raise InvalidParameter("bbox", f"expected a sequence of numbers, got {type(raw).__name__}")

    values = tuple(raw)
    if len(values) not in (4, 6):
        raise InvalidParameter("bbox", f"must have 4 or 6 values, got {len(values)}")

    for position, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, Real):
            raise InvalidParameter("bbox", f"element {position} is {type(value).__name__}, expected a number")
        try:
            finite = math.isfinite(value)
        except OverflowError:
            raise InvalidParameter("bbox", f"element {position} is out of range")
        if not finite:
            raise InvalidParameter("bbox", f"element {position} is not finite")

    return Bbox(values=tuple(int(v) if isinstance(v, Integral) else float(v) for v in values))


# ============================================================================
# INTERSECTS
# ============================================================================

def validate_intersects(raw: Any) -> Intersects:
    """
    Validate a GeoJSON geometry.

    Accepts a mapping, a GeoJSON string, or any object implementing
    ``__geo_interface__`` (shapely geometries, for example).
    """
    geometry = raw
    if hasattr(geometry, "__geo_interface__"):
        geometry = geometry.__geo_interface__

    if isinstance(geometry, (str, bytes)):
        try:
            geometry = json.loads(geometry)
        except ValueError as e:
            raise InvalidParameter("intersects", f"not valid GeoJSON: {e}")

    if not isinstance(geometry, Mapping):
        raise InvalidParameter("intersects", f"expected a GeoJSON geometry object, got {type(geometry).__name__}")

    geometry_type = geometry.get("type")
    if geometry_type not in GEOMETRY_TYPES:
        raise InvalidParameter("intersects", f"unsupported geometry type '{geometry_type}'")

    if geometry_type == "GeometryCollection":
        if not isinstance(geometry.get("geometries"), list):
            raise InvalidParameter("intersects", "GeometryCollection requires a 'geometries' array")
    elif "coordinates" not in geometry:
        raise InvalidParameter("intersects", f"{geometry_type} requires 'coordinates'")

    try:
        json.dumps(thaw_json(geometry), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise InvalidParameter("intersects", f"not JSON-serializable: {e}")

    return Intersects(geometry=geometry)


# ============================================================================
# LIMIT
# ============================================================================

def validate_limit(raw: Any) -> Limit:
    """Validate a non-negative integer limit (int or decimal string)."""
    if isinstance(raw, bool):
        raise InvalidParameter("limit", "expected an integer, got bool")

    if isinstance(raw, str):
        if not re.fullmatch(r"[0-9]+", raw.strip()):
            raise InvalidParameter("limit", f"'{raw}' is not a non-negative integer")
        raw = int(raw.strip())
    elif isinstance(raw, float) and raw.is_integer():
        raw = int(raw)

    if not isinstance(raw, Integral):
        raise InvalidParameter("limit", f"expected an integer, got {type(raw).__name__}")

    if raw < 0:
        raise InvalidParameter("limit", f"must be non-negative, got {raw}")

    return Limit(value=int(raw))


# ============================================================================
# QUERY EXTENSION
# ============================================================================

def validate_query_conditions(raw: Any) -> QueryFilter:
    """
    Validate query extension conditions.

    Example:
        {"eo:cloud_cover": {"lt": 10}, "platform": {"in": ["landsat-8"]}}
    """
    if not isinstance(raw, Mapping) or not raw:
        raise InvalidParameter("query", "expected a non-empty mapping of property -> {operator: value}")

    conditions = {}
    for prop, ops in raw.items():
        if not isinstance(prop, str) or not prop.strip():
            raise InvalidParameter("query", "property names must be non-empty strings")
        if not isinstance(ops, Mapping) or not ops:
            raise InvalidParameter("query", f"property '{prop}' needs a non-empty {{operator: value}} mapping")

        for op, value in ops.items():
            if op not in QUERY_OPERATORS:
                raise InvalidParameter("query", f"unknown operator '{op}' for property '{prop}'")
            if op == "in" and not isinstance(value, (list, tuple)):
                raise InvalidParameter("query", f"operator 'in' for property '{prop}' needs a list value")

        conditions[prop] = dict(ops)

    logger.debug(f"Validated query extension conditions for {len(conditions)} properties")
    return QueryFilter(conditions=conditions)
