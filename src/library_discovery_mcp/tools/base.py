"""Utility tools for the search form options (content types, disciplines)."""

from fastmcp import FastMCP

from library_discovery_mcp.config.base import CONTENT_TYPES
from library_discovery_mcp.config.engines import PortalConfig
from library_discovery_mcp.schemas.base.options import ContentTypeOption


def get_content_type_options(only_searchable: bool = True) -> list[ContentTypeOption]:
    """Content types from the configuration table, in table order."""
    options = [
        ContentTypeOption(
            name=name,
            display_name=str(values.get("display_name", name)),
            display_in_search=bool(values.get("display_in_search", False)),
            summon=str(values["summon"]) if "summon" in values else None,
        )
        for name, values in CONTENT_TYPES.items()
    ]
    if only_searchable:
        return [option for option in options if option.display_in_search]
    return options


def register_util_tools(mcp: FastMCP, config: PortalConfig) -> None:
    """Register utility tools for search options on the FastMCP server.

    Provides tools for:
    - Content types accepted by the `contenttype` filter
    - Disciplines accepted by the `discipline` filter

    Args:
        mcp: The FastMCP server instance to register tools on
        config: Portal configuration
    """

    @mcp.tool
    async def list_content_types(only_searchable: bool = True) -> list[ContentTypeOption]:
        """List the content types that can be used as a search filter.

        PURPOSE: Valid values for the `contenttype` filter of search_resources()

        Args:
            only_searchable: Only types offered in the search box

        Returns:
            List of ContentTypeOption; pass `name` as the filter value

        Example:
            >>> types = await list_content_types()
            >>> await search_resources("darwin", filters={"contenttype": types[0].name})
        """
        return get_content_type_options(only_searchable)

    @mcp.tool
    async def list_disciplines() -> list[str]:
        """List the disciplines known to the discovery index.

        PURPOSE: Valid values for the `discipline` filter of search_resources()

        Returns:
            Discipline names in alphabetical order
        """
        return list(config.disciplines)
