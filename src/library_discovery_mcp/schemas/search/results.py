"""Schemas for a single bibliographic resource."""

from pydantic import BaseModel, ConfigDict, Field


class Author(BaseModel):
    """An author of a resource."""

    model_config = ConfigDict(frozen=True)

    full_name: str = Field(description="Display name, e.g. 'Darwin, Charles'")


class PublicationDate(BaseModel):
    """Publication date, as precise as the engine reports it."""

    model_config = ConfigDict(frozen=True)

    day: str | None = None
    month: str | None = None
    year: str | None = None
    label: str = Field(default="", description="Known parts joined by '-'")


class PublicationPage(BaseModel):
    """Page range inside the containing publication."""

    model_config = ConfigDict(frozen=True)

    start: str | None = None
    end: str | None = None
    label: str = Field(default="", description="Known pages joined by '-'")


class PublicationData(BaseModel):
    """Where and when a resource was published."""

    model_config = ConfigDict(frozen=True)

    title: list[str] | None = Field(
        default=None, description="Publication (journal) title or publisher"
    )
    date: PublicationDate = Field(default_factory=PublicationDate)
    volume: list[str] | None = None
    issue: list[str] | None = None
    page: PublicationPage = Field(default_factory=PublicationPage)


class Branch(BaseModel):
    """Availability of a resource at one library location."""

    model_config = ConfigDict(frozen=True)

    location: str | None = Field(default=None, description="Library name")
    sublocation: str | None = Field(default=None, description="Shelf or collection")
    status: str | None = Field(default=None, description="Loan status")
    item_count: int | None = Field(default=None, description="Number of copies")
    external_datasource_name: str | None = None
    native_id: str | None = None
    place_hold_url: str | None = None
    notes: str | None = None


class Result(BaseModel):
    """One bibliographic resource, normalised across engines."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Engine specific resource id")
    source: str = Field(description="Engine that produced the record")
    external_id: str | None = Field(
        default=None, description="Id used for availability lookups"
    )
    titles: list[str] | None = None
    isbn: list[str] | None = None
    eisbn: list[str] | None = None
    issn: list[str] | None = None
    ssid: list[str] | None = None
    authors: list[Author] | None = None
    published: PublicationData | None = None
    subjects: list[str] | None = None
    series: list[str] | None = None
    notes: list[str] | None = None
    content_type: str | None = None
    thumbnails: list[str] | None = None
    links: list[str] | None = None
    branches: list[Branch] | None = Field(
        default=None, description="Holdings, only filled for detail lookups"
    )
