"""Response envelopes returned by the search core."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from library_discovery_mcp.schemas.search.facets import AppliedFacet, FacetType
from library_discovery_mcp.schemas.search.results import Result


class PageLink(BaseModel):
    """Link to one page of a result listing."""

    model_config = ConfigDict(frozen=True)

    number: int
    url: str
    current: bool = False


class Pagination(BaseModel):
    """Pagination of a result listing, clamped to the page limit."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=0, description="Current page")
    page_count: int = Field(default=0, description="Number of navigable pages")
    first_page: int = 0
    last_page: int = 0
    pages: list[PageLink] = Field(
        default_factory=list, description="Window of pages around the current one"
    )
    previous: PageLink | None = None
    next: PageLink | None = None


class Suggestion(BaseModel):
    """An alternative query proposed by the catalogue."""

    model_config = ConfigDict(frozen=True)

    label: str
    url: str = Field(description="Query string running the alternative query")


class Suggestions(BaseModel):
    """Spelling suggestions for a search without results."""

    model_config = ConfigDict(frozen=True)

    original_query: str | None = Field(
        default=None, description="Term as understood by the catalogue"
    )
    items: list[Suggestion] = Field(default_factory=list)


class Results(BaseModel):
    """A page of search results with everything needed to render it."""

    model_config = ConfigDict(frozen=True)

    record_count: int = Field(default=0, description="Total hits reported upstream")
    facets: list[FacetType] = Field(default_factory=list)
    facets_overview: list[AppliedFacet] = Field(
        default_factory=list, description="Currently applied filters"
    )
    results: list[Result] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    suggestions: Suggestions | None = Field(
        default=None, description="Only set when nothing was found"
    )


class SearchResponse(BaseModel):
    """Listing response: results plus the echoed, decoded query."""

    model_config = ConfigDict(frozen=True)

    results: Results
    query: dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    """Caller facing validation error."""

    model_config = ConfigDict(frozen=True)

    code: int
    msg: str
