"""Common interface of the search engine adapters.

The aggregator only talks to `SearchEngineAdapter`; each engine provides
request building, response parsing and the per-record/per-response
assemblers for its own wire format.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, ClassVar

import httpx

from library_discovery_mcp.servers.search.utils.errors import EngineTransportError
from library_discovery_mcp.utils.links import create_facet_overview

if TYPE_CHECKING:
    from library_discovery_mcp.config.engines import PortalConfig
    from library_discovery_mcp.schemas.search.facets import AppliedFacet, FacetType
    from library_discovery_mcp.schemas.search.responses import Pagination, Suggestions
    from library_discovery_mcp.schemas.search.results import Result
    from library_discovery_mcp.utils.nodes import RawNode
    from library_discovery_mcp.utils.query import Query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineRequest:
    """A fully built outbound GET request."""

    url: str
    timeout: float
    headers: dict[str, str] = field(default_factory=dict)


async def fetch_text(
    client: httpx.AsyncClient, request: EngineRequest, context: str
) -> str:
    """Perform `request` and return the body.

    Transport failures (connection, timeout, HTTP status) are logged here,
    once, and raised as `EngineTransportError`. Never retried.

    Args:
        client: Shared HTTP client
        request: Request to send
        context: Short label for the log line (e.g. "Summon search")
    """
    logger.debug(f"{context}: GET {request.url}")
    try:
        response = await client.get(
            request.url, headers=request.headers, timeout=request.timeout
        )
        response.raise_for_status()
    except httpx.TimeoutException as e:
        logger.error(f"{context}: timed out after {request.timeout}s ({e!r})")
        raise EngineTransportError() from e
    except httpx.HTTPStatusError as e:
        logger.error(f"{context}: HTTP {e.response.status_code}")
        raise EngineTransportError() from e
    except httpx.HTTPError as e:
        logger.error(f"{context}: {e!r}")
        raise EngineTransportError() from e
    return response.text


class SearchEngineAdapter(ABC):
    """One upstream search engine."""

    name: ClassVar[str]
    supports_suggestions: ClassVar[bool] = False

    def __init__(self, config: PortalConfig) -> None:
        self.config = config

    # --- requests -----------------------------------------------------------

    @abstractmethod
    def build_request(self, params: Query, *, explicit: bool) -> EngineRequest:
        """Search request for sanitised portal parameters.

        Args:
            params: Sanitised query
            explicit: True when the caller selected this engine by name
        """

    @abstractmethod
    def build_facet_request(self, params: Query) -> EngineRequest:
        """Request for the values of the facet named in `params['facet']`."""

    @abstractmethod
    def supports_facet(self, facet: str) -> bool:
        """Whether a facet-only request for `facet` can be served."""

    # --- responses ----------------------------------------------------------

    @abstractmethod
    def parse_response(self, body: str) -> RawNode:
        """Wire payload to tree. Raises `EngineParseError`."""

    @abstractmethod
    def record_count(self, parsed: RawNode) -> int:
        """Total number of hits reported upstream."""

    @abstractmethod
    def select_records(self, parsed: RawNode, *, is_detail: bool) -> list[RawNode]:
        """Records to assemble, in upstream order."""

    @abstractmethod
    async def assemble_result(
        self, client: httpx.AsyncClient, record: RawNode, *, is_detail: bool
    ) -> Result:
        """Build one `Result`. Raises `SearchEngineError` for an unusable record."""

    @abstractmethod
    def build_facets(self, parsed: RawNode, params: Query) -> list[FacetType]:
        """Facet tree, in upstream order."""

    @abstractmethod
    def build_pagination(self, parsed: RawNode, params: Query) -> Pagination:
        """Pagination block, clamped to the page limit."""

    def applied_facets(self, params: Query, *, explicit: bool) -> list[AppliedFacet]:
        return create_facet_overview(params)

    async def fetch_suggestions(
        self, client: httpx.AsyncClient, params: Query
    ) -> Suggestions | None:
        """Alternative queries for a search without results."""
        return None

    # --- helpers ------------------------------------------------------------

    def clamp_page(self, value: int) -> int:
        return min(value, self.config.node.page_limit)
