"""Links the result page renders: facet toggles, breadcrumbs, pagination."""

from __future__ import annotations

from collections.abc import Mapping

from library_discovery_mcp.schemas.search.facets import AppliedFacet
from library_discovery_mcp.schemas.search.responses import PageLink, Pagination
from library_discovery_mcp.utils.query import (
    QueryValue,
    query_pairs,
    serialize_pairs,
    serialize_query,
)

# Parameters that never show up in facet links
NON_FILTER_PARAMETERS = frozenset({"facet", "id", "page"})

# Parameters that are kept in links but are not removable filters
CONTEXT_PARAMETERS = frozenset({"q", "api"})


def facet_key(label: str) -> str:
    """Query parameter for a facet category ('Time Period' -> 'timeperiod')."""
    return "".join(label.split()).lower()


def _filter_pairs(query: Mapping[str, QueryValue]) -> list[tuple[str, str]]:
    return [pair for pair in query_pairs(query) if pair[0] not in NON_FILTER_PARAMETERS]


def create_facet_overview(query: Mapping[str, QueryValue]) -> list[AppliedFacet]:
    """Breadcrumbs for every filter applied in `query`.

    Each breadcrumb links to the same query without that one filter; all
    sibling filters are kept unchanged.
    """
    pairs = _filter_pairs(query)
    overview: list[AppliedFacet] = []
    for index, (key, value) in enumerate(pairs):
        if key in CONTEXT_PARAMETERS:
            continue
        remaining = pairs[:index] + pairs[index + 1 :]
        overview.append(
            AppliedFacet(type=key, value=value, url=serialize_pairs(remaining))
        )
    return overview


def create_facet_url(
    query: Mapping[str, QueryValue], facet_type: str, facet_value: str
) -> str:
    """Query string toggling `facet_value` on top of the applied filters.

    Adds the value when it is not applied yet, removes it when it is. The
    page is always reset.
    """
    key = facet_key(facet_type)
    pairs = _filter_pairs(query)
    if (key, facet_value) in pairs:
        pairs.remove((key, facet_value))
    else:
        pairs.append((key, facet_value))
    return serialize_pairs(pairs)


def _page_url(query: Mapping[str, QueryValue], page: int) -> str:
    params = {key: value for key, value in query.items() if key != "page"}
    params["page"] = str(page)
    return serialize_query(params)


def create_pagination_model(
    query: Mapping[str, QueryValue],
    page: int,
    page_count: int,
    first_page: int,
    last_page: int,
    *,
    window: int = 2,
) -> Pagination:
    """Build the pagination block with links around the current page.

    Args:
        query: Clone of the request query, annotated with the engine
        page: Current page
        page_count: Number of navigable pages
        first_page: First navigable page (0 when there are no pages)
        last_page: Last navigable page
        window: Page links on each side of the current page
    """
    pages: list[PageLink] = []
    previous = None
    following = None

    if page_count > 0 and first_page > 0:
        start = max(first_page, page - window)
        end = min(last_page, page + window)
        pages = [
            PageLink(number=number, url=_page_url(query, number), current=number == page)
            for number in range(start, end + 1)
        ]
        if first_page < page <= last_page:
            previous = PageLink(number=page - 1, url=_page_url(query, page - 1))
        if first_page <= page < last_page:
            following = PageLink(number=page + 1, url=_page_url(query, page + 1))

    return Pagination(
        page=page,
        page_count=page_count,
        first_page=first_page,
        last_page=last_page,
        pages=pages,
        previous=previous,
        next=following,
    )
