# ============================================================================
# CONTEXT - RESPONSE PARSER
# ============================================================================
# STATUS: Schema layer - HTTP response to typed document
# PURPOSE: Validate status and media type, decode JSON, wrap as a STAC document
# EXPORTS: RawResponse, DocumentKind, STACDocument, ItemCollection, Catalog, after_response
# DEPENDENCIES: httpx (RawResponse.from_httpx only), json, dataclasses
# ============================================================================

"""
Response Parser

``after_response`` turns a raw HTTP exchange into a document or raises:

    200 + application/geo+json | application/json + JSON object -> document
    any other status or media type                            -> UnexpectedResponse
    undecodable body / not a JSON object                      -> MalformedBody

Documents keep a reference to the query that produced them so callers
can tell which search a page of results came from.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import httpx

from util_logger import LoggerFactory, ComponentType

from .errors import MalformedBody, UnexpectedResponse
from .query import Query, QueryType

logger = LoggerFactory.create_logger(ComponentType.SCHEMA, "ResponseParser")

ACCEPTED_CONTENT_TYPES = ("application/geo+json", "application/json")


@dataclass(frozen=True)
class RawResponse:
    """HTTP response as handed over by the transport."""
    status: int
    content_type: Optional[str]
    body: bytes = b""

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "RawResponse":
        return cls(
            status=response.status_code,
            content_type=response.headers.get("content-type"),
            body=response.content
        )

    @property
    def media_type(self) -> Optional[str]:
        """Content type without parameters, lower-cased ("application/json")."""
        if not self.content_type:
            return None
        return self.content_type.split(";", 1)[0].strip().lower()


class DocumentKind(Enum):
    ITEM_COLLECTION = "STACItemCollection"
    CATALOG = "STACCatalog"


@dataclass(frozen=True)
class STACDocument:
    """Decoded STAC API response."""
    content: Mapping[str, Any]
    query: Query
    kind: DocumentKind = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "content", MappingProxyType(dict(self.content)))

    def __getitem__(self, key: str) -> Any:
        return self.content[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.content.get(key, default)

    @property
    def links(self) -> List[Dict[str, Any]]:
        return list(self.content.get("links") or [])

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.content)


@dataclass(frozen=True)
class ItemCollection(STACDocument):
    """A page of search results (GeoJSON FeatureCollection)."""
    kind: DocumentKind = field(default=DocumentKind.ITEM_COLLECTION, init=False)

    @property
    def features(self) -> List[Dict[str, Any]]:
        return list(self.content.get("features") or [])

    def items_length(self) -> int:
        """Number of items in this page."""
        return len(self.features)

    def items_matched(self) -> Optional[int]:
        """
        Total number of items matching the search, if the server reports it.

        Checks ``numberMatched`` (STAC API 1.0), ``context.matched``
        (context extension) and ``search:metadata.matched`` (0.8).
        """
        if self.content.get("numberMatched") is not None:
            return self.content["numberMatched"]

        for key in ("context", "search:metadata"):
            section = self.content.get(key)
            if isinstance(section, Mapping) and section.get("matched") is not None:
                return section["matched"]

        return None

    def next_link(self) -> Optional[Dict[str, Any]]:
        """The ``rel=next`` link, or None on the last page."""
        for link in self.links:
            if link.get("rel") == "next":
                return link
        return None


@dataclass(frozen=True)
class Catalog(STACDocument):
    """A catalog landing page."""
    kind: DocumentKind = field(default=DocumentKind.CATALOG, init=False)

    @property
    def id(self) -> Optional[str]:
        return self.content.get("id")

    @property
    def stac_version(self) -> Optional[str]:
        return self.content.get("stac_version")

    @property
    def conforms_to(self) -> List[str]:
        return list(self.content.get("conformsTo") or [])


def _decode_json_object(raw: RawResponse) -> Dict[str, Any]:
    try:
        content = json.loads(raw.body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedBody(f"invalid JSON ({e})", body=raw.body) from e

    if not isinstance(content, dict):
        raise MalformedBody(f"expected a JSON object, got {type(content).__name__}", body=raw.body)

    return content


def after_response(query: Query, raw: RawResponse) -> STACDocument:
    """
    Validate an HTTP response and wrap its body.

    Args:
        query: Query the response answers
        raw: Status, content type and body from the transport

    Returns:
        ItemCollection for search queries, Catalog for catalog queries

    Raises:
        UnexpectedResponse: Status is not 200 or media type is not JSON/GeoJSON
        MalformedBody: Body is not a JSON object
    """
    if raw.status != 200 or raw.media_type not in ACCEPTED_CONTENT_TYPES:
        logger.warning(
            f"Unexpected response: HTTP {raw.status} ({raw.content_type})",
            extra={'custom_dimensions': {'status': raw.status, 'content_type': raw.content_type,
                                         'body_preview': raw.body[:200].decode("utf-8", errors="replace")}}
        )
        raise UnexpectedResponse(raw.status, raw.content_type, raw.body)

    content = _decode_json_object(raw)

    if query.query_type == QueryType.CATALOG:
        return Catalog(content=content, query=query)

    document = ItemCollection(content=content, query=query)
    logger.debug(f"Parsed item collection with {document.items_length()} items")
    return document
