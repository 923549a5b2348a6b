"""FastMCP Server for the find-a-resource search.

Searches the Aquabrowser catalogue and the Summon discovery index and
returns their records in one normalised model.
"""

import logging

from fastmcp import FastMCP
import httpx

from library_discovery_mcp.config.base import settings
from library_discovery_mcp.config.engines import PortalConfig
from library_discovery_mcp.servers.search.tools.search import register_search_tools
from library_discovery_mcp.servers.search.utils.aggregator import ResultsAggregator
from library_discovery_mcp.tools.base import register_util_tools

logger = logging.getLogger(__name__)

# FastMCP Server Instance
mcp = FastMCP("find-a-resource")

# Built once, shared by every request
config = PortalConfig.from_settings(settings)
aggregator = ResultsAggregator(config)


# HTTP Client (singleton)
def _create_client() -> httpx.AsyncClient:
    """Create HTTP client for engine requests.

    Timeouts are set per request from the engine configuration.
    """
    return httpx.AsyncClient(
        headers={"User-Agent": "library-discovery-mcp/1.0"},
    )


_client: httpx.AsyncClient = _create_client()


def get_client() -> httpx.AsyncClient:
    """Get HTTP client for engine requests."""
    return _client


# Register tools
register_util_tools(mcp, config)
register_search_tools(mcp, aggregator, get_client)
