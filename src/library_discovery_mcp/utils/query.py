"""Inbound query handling for the find-a-resource node."""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
import logging
from typing import Any
from urllib.parse import unquote, urlencode

from library_discovery_mcp.utils.nodes import parse_int

logger = logging.getLogger(__name__)

QueryValue = str | int | list[str]
Query = dict[str, QueryValue]


def sanitize_query(
    query: Mapping[str, Any],
    *,
    allowed: Collection[str],
    page_limit: int,
) -> Query:
    """Validate and normalise inbound search parameters.

    Unknown keys are dropped. A page that is not a positive integer becomes
    1, a page beyond `page_limit` becomes `page_limit`. Never raises.

    Args:
        query: Raw parameters (string or list of strings per key)
        allowed: Parameter names accepted by the node
        page_limit: Highest navigable page

    Returns:
        A new dict; the input is left untouched
    """
    sanitized: Query = {}
    for key, value in query.items():
        if key not in allowed or value is None:
            continue
        if isinstance(value, (list, tuple)):
            values = [str(item) for item in value if item is not None]
            if values:
                sanitized[key] = values
        else:
            sanitized[key] = value if isinstance(value, int) else str(value)

    if "page" in sanitized:
        raw = sanitized["page"]
        if isinstance(raw, list):
            raw = raw[0]
        page = parse_int(raw)
        if page is None or page < 1:
            page = 1
        elif page > page_limit:
            page = page_limit
        sanitized["page"] = page

    return sanitized


def decode_query(query: Mapping[str, QueryValue]) -> Query:
    """URL-decode every value for echoing back to the caller."""

    def _decode(value: str) -> str:
        try:
            return unquote(value, errors="strict")
        except UnicodeDecodeError as e:
            logger.error(f"Could not decode query value {value!r}: {e}")
            return value

    decoded: Query = {}
    for key, value in query.items():
        if isinstance(value, list):
            decoded[key] = [_decode(item) for item in value]
        elif isinstance(value, str):
            decoded[key] = _decode(value)
        else:
            decoded[key] = value
    return decoded


def first_value(query: Mapping[str, QueryValue], key: str) -> str | None:
    """First value of `key` as a string, None when missing or empty."""
    value = query.get(key)
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None or value == "":
        return None
    return str(value)


def values_of(query: Mapping[str, QueryValue], key: str) -> list[str]:
    """All non-empty values of `key`."""
    value = query.get(key)
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    return [str(item) for item in items if item is not None and item != ""]


def query_pairs(query: Mapping[str, QueryValue]) -> list[tuple[str, str]]:
    """Flatten a query into (key, value) pairs, lists expanded in order."""
    return [(key, value) for key in query for value in values_of(query, key)]


def pairs_to_query(pairs: Iterable[tuple[str, str]]) -> Query:
    """Inverse of `query_pairs`: repeated keys become lists."""
    query: Query = {}
    for key, value in pairs:
        existing = query.get(key)
        if existing is None:
            query[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            query[key] = [str(existing), value]
    return query


def serialize_pairs(pairs: Iterable[tuple[str, str]]) -> str:
    """Deterministic query string: pairs sorted, values form-encoded."""
    return urlencode(sorted(pairs))


def serialize_query(query: Mapping[str, QueryValue]) -> str:
    return serialize_pairs(query_pairs(query))
