"""Schemas for facets and applied filters."""

from pydantic import BaseModel, ConfigDict, Field


class Facet(BaseModel):
    """A filterable value with its number of hits."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Facet value, e.g. 'Book'")
    amount: int | None = Field(default=None, description="Number of matching records")
    url: str = Field(description="Query string that toggles this value")


class FacetType(BaseModel):
    """A facet category (e.g. Format) and its values."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Category label as reported upstream")
    amount: int | None = Field(default=None, description="Total for the category")
    facets: list[Facet] = Field(default_factory=list)


class AppliedFacet(BaseModel):
    """A filter that is active in the current query."""

    model_config = ConfigDict(frozen=True)

    type: str | None = Field(default=None, description="Parameter name")
    value: str = Field(description="Parameter value")
    url: str = Field(description="Query string without this filter")
