"""Schemas for the search form options."""

from pydantic import BaseModel, Field


class ContentTypeOption(BaseModel):
    """A content type selectable in the search box."""

    name: str = Field(description="Value to pass as `contenttype`")
    display_name: str = Field(description="Label shown in the dropdown")
    display_in_search: bool = Field(default=False)
    summon: str | None = Field(
        default=None, description="Matching Summon ContentType facet value"
    )
