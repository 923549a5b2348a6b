"""Search engine and portal configuration.

Built once at process start from `Settings` and passed explicitly into the
aggregator and the engine adapters. All models are frozen.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from library_discovery_mcp.config.base import CONTENT_TYPES, DISCIPLINES

if TYPE_CHECKING:
    from library_discovery_mcp.config.base import Settings


class AquabrowserConfig(BaseModel):
    """Connection settings for the Aquabrowser catalogue."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Result endpoint")
    availability_url: str = Field(description="Availability endpoint")
    facets_url: str = Field(description="Refine panel endpoint")
    suggestions_url: str = Field(description="Suggestion endpoint")
    timeout: float = Field(default=5.0, description="Request timeout in seconds")


class SummonConfig(BaseModel):
    """Connection and signing settings for the Summon API."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(description="API host, also sent as the Host header")
    version: str = Field(description="Versioned search path, e.g. /2.0.0/search")
    scheme: str = Field(default="http")
    access_id: str = Field(default="", description="Access id for Authorization")
    secret_key: str = Field(default="", description="HMAC secret")
    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    page_size: int = Field(default=10)
    facet_fields: tuple[str, ...] = Field(default=("ContentType",))
    facet_count: int = Field(default=15)
    content_types: dict[str, str] = Field(
        default_factory=dict,
        description="Portal content type name -> Summon ContentType value",
    )

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}{self.version}"


class SearchNodeConfig(BaseModel):
    """Settings of the find-a-resource node."""

    model_config = ConfigDict(frozen=True)

    page_limit: int = Field(default=40, ge=1)
    pagination_window: int = Field(default=2, ge=0)
    allowed_parameters: frozenset[str] = Field(default_factory=frozenset)
    default_engine: str = Field(default="summon")


class PortalConfig(BaseModel):
    """Everything the search core needs, in one immutable value."""

    model_config = ConfigDict(frozen=True)

    node: SearchNodeConfig
    aquabrowser: AquabrowserConfig
    summon: SummonConfig
    disciplines: tuple[str, ...] = DISCIPLINES

    @classmethod
    def from_settings(cls, settings: Settings) -> PortalConfig:
        """Factory for the running server.

        Args:
            settings: Loaded environment settings
        """
        return cls(
            node=SearchNodeConfig(
                page_limit=settings.page_limit,
                pagination_window=settings.pagination_window,
                allowed_parameters=frozenset(settings.allowed_parameters),
                default_engine=settings.default_engine,
            ),
            aquabrowser=AquabrowserConfig(
                url=settings.aquabrowser_url,
                availability_url=settings.aquabrowser_availability_url,
                facets_url=settings.aquabrowser_facets_url,
                suggestions_url=settings.aquabrowser_suggestions_url,
                timeout=settings.aquabrowser_timeout,
            ),
            summon=SummonConfig(
                host=settings.summon_host,
                version=settings.summon_version,
                scheme=settings.summon_scheme,
                access_id=settings.summon_access_id,
                secret_key=settings.summon_secret_key,
                timeout=settings.summon_timeout,
                page_size=settings.summon_page_size,
                facet_fields=tuple(settings.summon_facet_fields),
                facet_count=settings.summon_facet_count,
                content_types={
                    name: str(options["summon"])
                    for name, options in CONTENT_TYPES.items()
                },
            ),
        )
