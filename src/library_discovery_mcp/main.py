"""Entry point for library-discovery-mcp Server.

Composite MCP Server for the university library discovery portal.
Mounts the search node into the aggregating app via FastMCP mount().
"""

import logging

from fastmcp import FastMCP

from library_discovery_mcp.config.base import settings
from library_discovery_mcp.servers.search import server as search

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# Main aggregator server
app = FastMCP(
    name=settings.server_name,
    instructions="""
    MCP Server for searching the university library collections.

    Available engines:
    - summon (default): articles, e-books, e-journals and print holdings
    - aquabrowser: the library catalogue, with availability per branch

    Typical workflow:
    1. far_search_resources → Get records, facets and pagination
    2. far_search_resources with filters from the facets → Narrow down
    3. far_get_resource → Full record and availability
    4. far_list_content_types / far_list_disciplines → Valid filter values
    """,
)

# Mount the find-a-resource node with prefix
app.mount(server=search.mcp, prefix="far")


# For direct execution
def main() -> None:
    """Run the MCP server."""
    logger.info("Starting library discovery MCP Server...")
    logger.info(f"Server name: {settings.server_name}")
    logger.info(f"Default engine: {settings.default_engine}")
    app.run()


if __name__ == "__main__":
    main()
