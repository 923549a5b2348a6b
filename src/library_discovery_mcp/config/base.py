"""Configuration for library-discovery-mcp servers."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env is located)
# This module is in src/library_discovery_mcp/config/base.py
# Project root is four parents up (src/ sits in between)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


class Settings(BaseSettings):
    """Global settings, loaded from environment variables or .env"""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_prefix="LIBRARIES_",
        case_sensitive=False,
    )

    # Aquabrowser (catalogue engine, MARC/XML)
    aquabrowser_url: str = Field(
        default="http://search.lib.cam.ac.uk/result.ashx",
        description="Result endpoint of the Aquabrowser catalogue",
    )
    aquabrowser_availability_url: str = Field(
        default="http://search.lib.cam.ac.uk/availability.ashx",
        description="Availability endpoint (holdings per branch)",
    )
    aquabrowser_facets_url: str = Field(
        default="http://search.lib.cam.ac.uk/RefinePanel.ashx",
        description="Refine panel endpoint (facet-only requests)",
    )
    aquabrowser_suggestions_url: str = Field(
        default="http://search.lib.cam.ac.uk/AquaServer.ashx",
        description="Spelling suggestion endpoint",
    )
    aquabrowser_timeout: float = Field(
        default=5.0, description="Request timeout in seconds"
    )

    # Summon (discovery engine, signed JSON)
    summon_host: str = Field(default="api.summon.serialssolutions.com")
    summon_version: str = Field(default="/2.0.0/search")
    summon_scheme: str = Field(default="http")
    summon_timeout: float = Field(
        default=10.0, description="Request timeout in seconds"
    )
    summon_access_id: str = Field(
        default="", description="Summon API access id (Authorization header)"
    )
    summon_secret_key: str = Field(
        default="", description="Shared secret used for the HMAC-SHA1 digest"
    )
    summon_page_size: int = Field(default=10, description="Records per page")
    summon_facet_fields: list[str] = Field(
        default_factory=lambda: ["ContentType", "SubjectTerms", "Language"],
        description="Facet fields requested on listing searches",
    )
    summon_facet_count: int = Field(
        default=15, description="Maximum values returned per facet field"
    )

    # Find a resource
    page_limit: int = Field(
        default=40, description="Highest page a patron can navigate to"
    )
    pagination_window: int = Field(
        default=2, description="Page links shown on each side of the current page"
    )
    allowed_parameters: list[str] = Field(
        default_factory=lambda: [
            "q",
            "id",
            "page",
            "api",
            "branch",
            "format",
            "contenttype",
            "author",
            "language",
            "mdtags",
            "person",
            "region",
            "series",
            "subject",
            "subjectterms",
            "timeperiod",
            "uniformtitle",
            "discipline",
            "facet",
        ],
        description="Query parameters accepted by the find-a-resource node",
    )
    default_engine: str = Field(
        default="summon",
        description="Engine used when a request does not name one (api=...)",
    )

    # Server
    server_name: str = Field(
        default="Cambridge Libraries", description="Name of the MCP Server"
    )


# Singleton instance
settings = Settings()

# Content types offered in the search dropdown, with their Summon values
CONTENT_TYPES: dict[str, dict[str, str | bool]] = {
    "Book": {"display_in_search": True, "display_name": "Books", "summon": "Book"},
    "eBook": {"display_in_search": True, "display_name": "eBook", "summon": "eBook"},
    "eJournal": {
        "display_in_search": True,
        "display_name": "eJournal",
        "summon": "eJournal",
    },
    "Manuscript": {"display_in_search": True, "summon": "Manuscript"},
    "Journal Article": {"display_in_search": True, "summon": "Journal Article"},
    "Paper": {"display_in_search": True, "summon": "Paper"},
}

# Summon disciplines
DISCIPLINES: tuple[str, ...] = (
    "Agriculture",
    "Anatomy & Physiology",
    "Anthropology",
    "Applied Sciences",
    "Architecture",
    "Astronomy & Astrophysics",
    "Biology",
    "Botany",
    "Business",
    "Chemistry",
    "Computer Science",
    "Dance",
    "Dentistry",
    "Diet & Clinical Nutrition",
    "Drama",
    "Ecology",
    "Economics",
    "Education",
    "Engineering",
    "Environmental Sciences",
    "Film",
    "Forestry",
    "Geography",
    "Geology",
    "Government",
    "History",
    "History & Archaeology",
    "International Relations",
    "Journalism & Communications",
    "Languages & Literatures",
    "Law",
    "Library & Information Science",
    "Mathematics",
    "Medicine",
    "Meteorology & Climatology",
    "Military & Naval Science",
    "Music",
    "Nursing",
    "Occupational Therapy & Rehabilitation",
    "Oceanography",
    "Parapsychology & Occult Sciences",
    "Pharmacy, Therapeutics, & Pharmacology",
    "Philosophy",
    "Physical Therapy",
    "Physics",
    "Political Science",
    "Psychology",
    "Public Health",
    "Recreation & Sports",
    "Religion",
    "Sciences",
    "Social Sciences",
    "Social Welfare & Social Work",
    "Sociology & Social History",
    "Statistics",
    "Veterinary Medicine",
    "Visual Arts",
    "Women's Studies",
    "Zoology",
)
