"""Search tools for the find-a-resource node.

Thin wrappers around `ResultsAggregator`: they build the inbound query,
run the search and turn search errors into `ToolError`s carrying the
normalised payload.
"""

import logging
from typing import Any, NoReturn, Protocol

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError
import httpx

from library_discovery_mcp.schemas.search.facets import FacetType
from library_discovery_mcp.schemas.search.responses import (
    ErrorEnvelope,
    SearchResponse,
)
from library_discovery_mcp.schemas.search.results import Result
from library_discovery_mcp.servers.search.utils.aggregator import ResultsAggregator
from library_discovery_mcp.servers.search.utils.errors import SearchError

logger = logging.getLogger(__name__)


class ClientGetter(Protocol):
    """Protocol for sync client getter function."""

    def __call__(self) -> httpx.AsyncClient: ...


def raise_tool_error(error: SearchError) -> NoReturn:
    """Re-raise a search error with its caller facing payload."""
    payload = error.as_payload()
    if isinstance(payload, ErrorEnvelope):
        raise ToolError(payload.model_dump_json()) from error
    raise ToolError(payload) from error


def build_query(
    filters: dict[str, str | list[str]] | None = None, **params: Any
) -> dict[str, Any]:
    """Merge named tool arguments and free-form filters, dropping empty ones."""
    query: dict[str, Any] = dict(filters or {})
    query.update({key: value for key, value in params.items() if value is not None})
    return query


def register_search_tools(
    mcp: FastMCP,
    aggregator: ResultsAggregator,
    get_client: ClientGetter,
) -> None:
    """Register find-a-resource tools on the given MCP server.

    Args:
        mcp: The FastMCP server instance to register tools on
        aggregator: Search core shared by all tools
        get_client: Function that returns an httpx.AsyncClient
    """

    @mcp.tool
    async def search_resources(
        q: str,
        page: int = 1,
        api: str | None = None,
        filters: dict[str, str | list[str]] | None = None,
        ctx: Context | None = None,
    ) -> SearchResponse:
        """Search library resources in the catalogue or the discovery index.

        PURPOSE: Find books, journals, articles and other holdings

        WHEN TO USE:
        - User looks for literature on a topic, by an author or by title
        - To narrow a previous search with facet values (see `facets` in the result)

        WHEN NOT TO USE:
        - For one known resource with holdings → use get_resource()
        - For all values of one facet → use get_facets()

        Args:
            q: Free-text query (e.g. "darwin origin of species")
            page: Result page, clamped to 1..40
            api: "summon" (default, articles and e-resources) or "aquabrowser"
                (library catalogue, print holdings and branches)
            filters: Facet filters by parameter name, e.g.
                {"contenttype": "Book", "language": ["English", "French"]}.
                Facet links in a previous result carry ready-made values.
            ctx: FastMCP Context

        Returns:
            SearchResponse with records, facets, applied filters, pagination
            and, for catalogue searches without hits, spelling suggestions
        """
        query = build_query(filters, q=q, page=page, api=api)
        if ctx:
            await ctx.info(f"Searching {api or 'default engine'}: {q}")

        try:
            response = await aggregator.get_results(get_client(), query)
        except SearchError as e:
            raise_tool_error(e)

        if ctx:
            await ctx.info(
                f"Found {response.results.record_count} records "
                f"(page {response.results.pagination.page})"
            )
        return response

    @mcp.tool
    async def get_resource(
        id: str,
        api: str | None = None,
        ctx: Context | None = None,
    ) -> Result:
        """Get one resource by its id, with availability per library branch.

        PURPOSE: Full record and holdings of a known resource

        WHEN TO USE:
        - After search_resources(), to show one record in detail
        - To check where a catalogue item is available and its loan status

        Args:
            id: Resource id as returned in `results[].id`
            api: Engine that returned the id ("aquabrowser" or "summon")
            ctx: FastMCP Context

        Returns:
            Result; `branches` is filled for catalogue records
        """
        if ctx:
            await ctx.info(f"Loading resource {id}")

        try:
            return await aggregator.get_result_by_id(
                get_client(), build_query(id=id, api=api)
            )
        except SearchError as e:
            raise_tool_error(e)

    @mcp.tool
    async def get_facets(
        facet: str,
        q: str,
        api: str | None = None,
        filters: dict[str, str | list[str]] | None = None,
        ctx: Context | None = None,
    ) -> list[FacetType]:
        """Get all values of one facet for a query.

        PURPOSE: Complete value list for a facet (search results show the top values only)

        Args:
            facet: Facet parameter, e.g. "contenttype", "subjectterms", "language"
                (summon) or "format", "author", "subject" (aquabrowser)
            q: Free-text query the facet values are counted for
            api: Engine to ask, defaults to summon
            filters: Filters already applied, same form as in search_resources()
            ctx: FastMCP Context

        Returns:
            Facet types with their values, counts and toggle links
        """
        if ctx:
            await ctx.info(f"Loading facet {facet} for: {q}")

        try:
            return await aggregator.get_facets_for_results(
                get_client(), build_query(filters, facet=facet, q=q, api=api)
            )
        except SearchError as e:
            raise_tool_error(e)
