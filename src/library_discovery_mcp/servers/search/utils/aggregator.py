"""Engine agnostic orchestration of listing, detail and facet-only searches.

Every search runs in phases: one upstream call, then the records are
assembled concurrently (one task per record, plus an availability call
per record on detail lookups), then facets, pagination and suggestions.
A phase only starts once all tasks of the previous one have finished.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable, Mapping
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError as ModelValidationError

from library_discovery_mcp.schemas.search.responses import (
    Results,
    SearchResponse,
    Suggestions,
)
from library_discovery_mcp.servers.search.engines.aquabrowser.api import (
    AquabrowserAdapter,
)
from library_discovery_mcp.servers.search.engines.base import fetch_text
from library_discovery_mcp.servers.search.engines.summon.api import SummonAdapter
from library_discovery_mcp.servers.search.utils.errors import (
    EngineParseError,
    FacetFetchError,
    ResourceNotFoundError,
    SearchEngineError,
    SearchError,
    ValidationError,
)
from library_discovery_mcp.utils.query import (
    Query,
    decode_query,
    first_value,
    sanitize_query,
)

if TYPE_CHECKING:
    import httpx

    from library_discovery_mcp.config.engines import PortalConfig
    from library_discovery_mcp.schemas.search.facets import FacetType
    from library_discovery_mcp.schemas.search.results import Result
    from library_discovery_mcp.servers.search.engines.base import (
        EngineRequest,
        SearchEngineAdapter,
    )
    from library_discovery_mcp.utils.nodes import RawNode

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_adapters(config: PortalConfig) -> dict[str, SearchEngineAdapter]:
    """One adapter per supported engine, keyed by engine name."""
    adapters: list[SearchEngineAdapter] = [
        AquabrowserAdapter(config),
        SummonAdapter(config),
    ]
    return {adapter.name: adapter for adapter in adapters}


async def gather_in_order(tasks: Iterable[Awaitable[T]]) -> list[T]:
    """Run `tasks` concurrently and return their results in input order.

    Every task runs to completion, a failing sibling does not cancel the
    others. Afterwards the first failure (in input order) is raised.
    """
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    for index, outcome in enumerate(outcomes):
        if isinstance(outcome, SearchError):
            raise outcome
        if isinstance(outcome, (ModelValidationError, ValueError, TypeError)):
            logger.error(f"Could not assemble record {index}: {outcome!r}")
            raise EngineParseError() from outcome
        if isinstance(outcome, BaseException):
            raise outcome
    return list(outcomes)


class ResultsAggregator:
    """Entry point of the search core.

    Args:
        config: Portal configuration
        adapters: Engines by name; defaults to both supported engines
    """

    def __init__(
        self,
        config: PortalConfig,
        adapters: Mapping[str, SearchEngineAdapter] | None = None,
    ) -> None:
        self.config = config
        self.adapters = dict(adapters) if adapters is not None else build_adapters(config)

    # --- request handling ---------------------------------------------------

    def sanitize(self, query: Mapping[str, Any]) -> Query:
        return sanitize_query(
            query,
            allowed=self.config.node.allowed_parameters,
            page_limit=self.config.node.page_limit,
        )

    def select_engine(self, params: Query) -> tuple[SearchEngineAdapter, bool]:
        """Adapter for the request and whether it was named explicitly.

        Raises:
            ValidationError: When `api` names an unknown engine
        """
        api = first_value(params, "api")
        if api is None:
            return self.adapters[self.config.node.default_engine], False

        adapter = self.adapters.get(api)
        if adapter is None:
            raise ValidationError(f"Invalid api: {api}")
        return adapter, True

    async def _fetch(
        self, client: httpx.AsyncClient, adapter: SearchEngineAdapter, request: EngineRequest
    ) -> RawNode:
        body = await fetch_text(client, request, f"{adapter.name} search")
        return adapter.parse_response(body)

    # --- operations ---------------------------------------------------------

    async def get_results(
        self, client: httpx.AsyncClient, query: Mapping[str, Any]
    ) -> SearchResponse:
        """Listing search.

        Args:
            client: Shared HTTP client
            query: Raw inbound parameters

        Returns:
            The results and the sanitised, decoded query

        Raises:
            ValidationError: When the engine selector is invalid
            SearchEngineError: When the engine or any record fails
        """
        params = self.sanitize(query)
        adapter, explicit = self.select_engine(params)

        parsed = await self._fetch(
            client, adapter, adapter.build_request(params, explicit=explicit)
        )
        record_count = adapter.record_count(parsed)
        records = adapter.select_records(parsed, is_detail=False)

        results = await gather_in_order(
            adapter.assemble_result(client, record, is_detail=False)
            for record in records
        )

        facets = self._build_facets(adapter, parsed, params)
        pagination = adapter.build_pagination(parsed, params)

        suggestions = None
        if record_count == 0 and adapter.supports_suggestions:
            suggestions = await self._fetch_suggestions(client, adapter, params)

        logger.info(
            f"{adapter.name}: {record_count} hits, {len(results)} assembled "
            f"(page {pagination.page}/{pagination.page_count})"
        )

        return SearchResponse(
            results=Results(
                record_count=record_count,
                facets=facets,
                facets_overview=adapter.applied_facets(params, explicit=explicit),
                results=results,
                pagination=pagination,
                suggestions=suggestions,
            ),
            query=decode_query(params),
        )

    async def get_result_by_id(
        self, client: httpx.AsyncClient, query: Mapping[str, Any]
    ) -> Result:
        """Detail lookup of one resource, including its availability.

        Raises:
            ValidationError: When no id is given or the engine is invalid
            ResourceNotFoundError: When the engine knows no such record
            SearchEngineError: When the engine or the availability call fails
        """
        params = self.sanitize(query)
        record_id = first_value(params, "id")
        if not record_id:
            raise ValidationError("Invalid id")
        adapter, explicit = self.select_engine(params)

        parsed = await self._fetch(
            client, adapter, adapter.build_request(params, explicit=explicit)
        )
        records = adapter.select_records(parsed, is_detail=True)
        if not records:
            logger.info(f"{adapter.name}: no record for id {record_id}")
            raise ResourceNotFoundError()

        [result] = await gather_in_order(
            [adapter.assemble_result(client, records[0], is_detail=True)]
        )
        return result

    async def get_facets_for_results(
        self, client: httpx.AsyncClient, query: Mapping[str, Any]
    ) -> list[FacetType]:
        """Values of one facet for a query.

        Raises:
            ValidationError: When facet or query are missing, or the facet is unsupported
            FacetFetchError: When the engine fails
        """
        params = self.sanitize(query)
        facet = first_value(params, "facet")
        if not facet:
            raise ValidationError("Invalid facet")
        if not first_value(params, "q"):
            raise ValidationError("Invalid query")

        adapter, _ = self.select_engine(params)
        if not adapter.supports_facet(facet):
            raise ValidationError(f"Unsupported facet: {facet}")

        try:
            parsed = await self._fetch(client, adapter, adapter.build_facet_request(params))
            return adapter.build_facets(parsed, params)
        except SearchEngineError as e:
            raise FacetFetchError() from e

    # --- enrichment ---------------------------------------------------------

    def _build_facets(
        self, adapter: SearchEngineAdapter, parsed: RawNode, params: Query
    ) -> list[FacetType]:
        try:
            return adapter.build_facets(parsed, params)
        except SearchEngineError as e:
            logger.debug(f"{adapter.name}: facets unavailable ({e!r})")
            return []
        except ModelValidationError as e:
            logger.warning(f"{adapter.name}: facets unavailable ({e!r})")
            return []

    async def _fetch_suggestions(
        self, client: httpx.AsyncClient, adapter: SearchEngineAdapter, params: Query
    ) -> Suggestions:
        original_query = first_value(params, "q")
        try:
            suggestions = await adapter.fetch_suggestions(client, params)
        except SearchEngineError as e:
            logger.debug(f"{adapter.name}: suggestions unavailable ({e!r})")
            return Suggestions(original_query=original_query)
        if suggestions is None:
            return Suggestions(original_query=original_query)
        return suggestions
