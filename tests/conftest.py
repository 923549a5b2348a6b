"""
Pytest configuration and shared fixtures
Provides a portal configuration, fixture payloads and a stub for the
upstream engines (served through httpx.MockTransport)
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from library_discovery_mcp.config.base import CONTENT_TYPES, DISCIPLINES
from library_discovery_mcp.config.engines import (
    AquabrowserConfig,
    PortalConfig,
    SearchNodeConfig,
    SummonConfig,
)
from library_discovery_mcp.servers.search.utils.aggregator import ResultsAggregator

FIXTURES = Path(__file__).parent / "fixtures"

RESULTS_PATH = "/result.ashx"
AVAILABILITY_PATH = "/availability.ashx"
FACETS_PATH = "/RefinePanel.ashx"
SUGGESTIONS_PATH = "/AquaServer.ashx"
SUMMON_PATH = "/2.0.0/search"


def load_fixture(name: str) -> str:
    """Read a payload from tests/fixtures (e.g. 'aquabrowser/results.xml')"""
    return (FIXTURES / name).read_text(encoding="utf-8")


@dataclass
class Route:
    body: str = ""
    status: int = 200
    delay: float = 0.0
    error: type[httpx.TransportError] | None = None


class EngineStub:
    """Callable for httpx.MockTransport answering by URL path"""

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, body: str = "", **kwargs) -> "EngineStub":
        self.routes[path] = Route(body=body, **kwargs)
        return self

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if route.delay:
            await asyncio.sleep(route.delay)
        if route.error is not None:
            raise route.error("stubbed failure", request=request)
        return httpx.Response(route.status, text=route.body)


@pytest.fixture
def portal_config():
    """Portal configuration pointing at the stubbed engines"""
    return PortalConfig(
        node=SearchNodeConfig(
            page_limit=40,
            pagination_window=2,
            allowed_parameters=frozenset(
                {
                    "q", "id", "page", "api", "branch", "format", "contenttype",
                    "author", "language", "mdtags", "person", "region", "series",
                    "subject", "subjectterms", "timeperiod", "uniformtitle",
                    "discipline", "facet",
                }
            ),
            default_engine="summon",
        ),
        aquabrowser=AquabrowserConfig(
            url=f"http://catalogue.test{RESULTS_PATH}",
            availability_url=f"http://catalogue.test{AVAILABILITY_PATH}",
            facets_url=f"http://catalogue.test{FACETS_PATH}",
            suggestions_url=f"http://catalogue.test{SUGGESTIONS_PATH}",
            timeout=5.0,
        ),
        summon=SummonConfig(
            host="api.summon.serialssolutions.com",
            version=SUMMON_PATH,
            access_id="portal",
            secret_key="s3cr3t",
            timeout=10.0,
            page_size=10,
            facet_fields=("ContentType", "Language"),
            facet_count=15,
            content_types={
                name: str(values["summon"]) for name, values in CONTENT_TYPES.items()
            },
        ),
        disciplines=DISCIPLINES,
    )


@pytest.fixture
def engine_stub():
    """Empty stub; tests register the routes they need"""
    return EngineStub()


@pytest_asyncio.fixture
async def client(engine_stub):
    """httpx client whose requests are answered by engine_stub"""
    async with httpx.AsyncClient(transport=httpx.MockTransport(engine_stub)) as client:
        yield client


@pytest.fixture
def aggregator(portal_config):
    return ResultsAggregator(portal_config)
