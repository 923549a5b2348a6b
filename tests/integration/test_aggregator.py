"""
Integration tests for ResultsAggregator against stubbed engines
"""

import asyncio
import logging
from urllib.parse import parse_qsl

import httpx
import pytest

from conftest import (
    AVAILABILITY_PATH,
    FACETS_PATH,
    RESULTS_PATH,
    SUGGESTIONS_PATH,
    SUMMON_PATH,
    load_fixture,
)
from library_discovery_mcp.schemas.search.responses import ErrorEnvelope
from library_discovery_mcp.servers.search.engines.aquabrowser.api import AquabrowserAdapter
from library_discovery_mcp.servers.search.engines.summon.api import SummonAdapter
from library_discovery_mcp.servers.search.utils.aggregator import (
    ResultsAggregator,
    gather_in_order,
)
from library_discovery_mcp.servers.search.utils.errors import (
    GENERIC_ENGINE_MESSAGE,
    EngineParseError,
    EngineTransportError,
    FacetFetchError,
    ResourceNotFoundError,
    SearchEngineError,
    ValidationError,
)

CATALOGUE = {"api": "aquabrowser"}


class SlowFirstAdapter(AquabrowserAdapter):
    """Assembles earlier records more slowly than later ones"""

    def __init__(self, config, delays):
        super().__init__(config)
        self.delays = list(delays)
        self.finished = []

    async def assemble_result(self, client, record, *, is_detail):
        await asyncio.sleep(self.delays.pop(0))
        result = await super().assemble_result(client, record, is_detail=is_detail)
        self.finished.append(result.id)
        return result


@pytest.mark.integration
class TestGatherInOrder:
    """Ordered fan-in"""

    @pytest.mark.asyncio
    async def test_results_follow_input_order(self):
        async def task(value, delay):
            await asyncio.sleep(delay)
            return value

        assert await gather_in_order([task("a", 0.03), task("b", 0.0), task("c", 0.01)]) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_siblings_finish_before_failure_is_raised(self):
        finished = []

        async def ok(value):
            await asyncio.sleep(0.02)
            finished.append(value)
            return value

        async def fail():
            raise EngineParseError()

        with pytest.raises(EngineParseError):
            await gather_in_order([fail(), ok("late")])
        assert finished == ["late"]

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_parse_errors(self):
        async def broken():
            raise ValueError("bad record")

        with pytest.raises(EngineParseError):
            await gather_in_order([broken()])


@pytest.mark.integration
class TestListing:
    """get_results"""

    @pytest.mark.asyncio
    async def test_catalogue_listing(self, aggregator, client, engine_stub):
        engine_stub.add(RESULTS_PATH, load_fixture("aquabrowser/results.xml"))

        response = await aggregator.get_results(
            client, {**CATALOGUE, "q": "darwin", "format": "Book", "page": "2", "unknown": "x"}
        )

        results = response.results
        assert results.record_count == 2412
        assert [r.id for r in results.results] == ["cambrdgedb-2099538", "cambrdgedb-3100021", "depfacedb-551"]
        assert all(r.branches is None for r in results.results)
        assert [t.label for t in results.facets] == ["Format", "Language"]
        assert [(f.type, f.value) for f in results.facets_overview] == [("format", "Book")]
        assert results.pagination.page_count == 40
        assert results.suggestions is None
        assert response.query == {"api": "aquabrowser", "q": "darwin", "format": "Book", "page": 2}

        [request] = engine_stub.requests_to(RESULTS_PATH)
        assert request.url.params["curpage"] == "2"
        assert request.url.params["q"] == 'darwin format:"Book"'
        assert engine_stub.requests_to(SUGGESTIONS_PATH) == []

    @pytest.mark.asyncio
    async def test_upstream_order_survives_out_of_order_completion(self, portal_config, client, engine_stub):
        engine_stub.add(RESULTS_PATH, load_fixture("aquabrowser/results.xml"))
        adapter = SlowFirstAdapter(portal_config, delays=[0.05, 0.0, 0.02])
        aggregator = ResultsAggregator(portal_config, {"aquabrowser": adapter})

        response = await aggregator.get_results(client, {**CATALOGUE, "q": "darwin"})

        assert adapter.finished == ["cambrdgedb-3100021", "depfacedb-551", "cambrdgedb-2099538"]
        assert [r.id for r in response.results.results] == [
            "cambrdgedb-2099538",
            "cambrdgedb-3100021",
            "depfacedb-551",
        ]

    @pytest.mark.asyncio
    async def test_zero_results_bring_suggestions(self, aggregator, client, engine_stub):
        engine_stub.add(RESULTS_PATH, load_fixture("aquabrowser/noresults.xml"))
        engine_stub.add(SUGGESTIONS_PATH, load_fixture("aquabrowser/suggestions.xml"))

        response = await aggregator.get_results(client, {**CATALOGUE, "q": "darwn", "page": "3"})

        results = response.results
        assert results.record_count == 0
        assert results.results == []
        assert results.suggestions is not None
        assert results.suggestions.original_query == "darwn"
        assert [s.label for s in results.suggestions.items] == ["darwin", "dawn"]
        assert sorted(parse_qsl(results.suggestions.items[0].url)) == [("api", "aquabrowser"), ("q", "darwin")]
        [request] = engine_stub.requests_to(SUGGESTIONS_PATH)
        assert request.url.params["q"] == "darwn"

    @pytest.mark.asyncio
    async def test_listing_without_resultcount_skips_suggestions(self, aggregator, client, engine_stub):
        body = load_fixture("aquabrowser/results.xml").replace("<resultcount>2412</resultcount>", "")
        engine_stub.add(RESULTS_PATH, body)

        response = await aggregator.get_results(client, {**CATALOGUE, "q": "darwin"})

        assert response.results.record_count == 3
        assert response.results.suggestions is None
        assert engine_stub.requests_to(SUGGESTIONS_PATH) == []

    @pytest.mark.asyncio
    async def test_failing_suggestions_degrade(self, aggregator, client, engine_stub, caplog):
        engine_stub.add(RESULTS_PATH, load_fixture("aquabrowser/noresults.xml"))
        engine_stub.add(SUGGESTIONS_PATH, error=httpx.ConnectError)

        response = await aggregator.get_results(client, {**CATALOGUE, "q": "darwn"})

        assert response.results.suggestions.original_query == "darwn"
        assert response.results.suggestions.items == []
        # Logged once, where the transport failed
        assert [r.levelname for r in caplog.records if r.levelno >= logging.WARNING] == ["ERROR"]

    @pytest.mark.asyncio
    async def test_invalid_payload_fails_the_search(self, aggregator, client, engine_stub):
        engine_stub.add(RESULTS_PATH, "<root><results>")

        with pytest.raises(SearchEngineError) as exc_info:
            await aggregator.get_results(client, {**CATALOGUE, "q": "darwin"})
        assert exc_info.value.as_payload() == GENERIC_ENGINE_MESSAGE

    @pytest.mark.asyncio
    async def test_one_broken_record_fails_the_listing(self, aggregator, client, engine_stub, caplog):
        broken = load_fixture("aquabrowser/results.xml").replace('id="depfacedb-551" ', "")
        engine_stub.add(RESULTS_PATH, broken)

        with pytest.raises(EngineParseError):
            await aggregator.get_results(client, {**CATALOGUE, "q": "darwin"})
        assert len([r for r in caplog.records if r.levelno >= logging.ERROR]) == 1

    @pytest.mark.asyncio
    async def test_engine_error_status(self, aggregator, client, engine_stub):
        engine_stub.add(RESULTS_PATH, "oops", status=503)

        with pytest.raises(EngineTransportError):
            await aggregator.get_results(client, {**CATALOGUE, "q": "darwin"})

    @pytest.mark.asyncio
    async def test_default_engine_is_signed_summon(self, aggregator, client, engine_stub):
        engine_stub.add(SUMMON_PATH, load_fixture("summon/search.json"))

        response = await aggregator.get_results(client, {"q": "darwin", "contenttype": "Book"})

        assert [r.id for r in response.results.results] == ["FETCH-cam-123", "FETCH-cam-456"]
        assert [(f.type, f.value) for f in response.results.facets_overview] == [("contenttype", "Book")]
        assert response.results.suggestions is None

        [request] = engine_stub.requests_to(SUMMON_PATH)
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Authorization"].startswith("Summon portal;")
        assert request.headers["x-summon-date"].endswith(" GMT")
        assert request.url.params["s.q"] == "darwin"
        assert request.url.params["s.fvf"] == "ContentType,Book,false"

    @pytest.mark.asyncio
    async def test_unknown_engine(self, aggregator, client, engine_stub):
        with pytest.raises(ValidationError) as exc_info:
            await aggregator.get_results(client, {"q": "darwin", "api": "google"})
        assert exc_info.value.as_payload() == ErrorEnvelope(code=400, msg="Invalid api: google")
        assert engine_stub.requests == []


@pytest.mark.integration
class TestDetail:
    """get_result_by_id"""

    @pytest.mark.asyncio
    async def test_duplicated_record_yields_first_with_branches(self, aggregator, client, engine_stub):
        engine_stub.add(RESULTS_PATH, load_fixture("aquabrowser/detail_duplicate.xml"))
        engine_stub.add(AVAILABILITY_PATH, load_fixture("aquabrowser/availability.xml"))

        result = await aggregator.get_result_by_id(client, {**CATALOGUE, "id": "cambrdgedb-2099538"})

        assert result.titles == ["On the origin of species"]
        assert result.external_id == "|cambrdgedb|2099538"
        assert [b.location for b in result.branches] == ["University Library", "Whipple Library", "Haddon Library"]
        assert result.branches[0].item_count == 2
        assert result.branches[0].place_hold_url == "http://example.org/hold/2099538"

        [request] = engine_stub.requests_to(AVAILABILITY_PATH)
        assert request.url.params["hreciid"] == "|cambrdgedb|2099538"

    @pytest.mark.asyncio
    async def test_availability_timeout_fails_the_detail(self, aggregator, client, engine_stub):
        engine_stub.add(RESULTS_PATH, load_fixture("aquabrowser/detail_duplicate.xml"))
        engine_stub.add(AVAILABILITY_PATH, error=httpx.ReadTimeout)

        with pytest.raises(EngineTransportError) as exc_info:
            await aggregator.get_result_by_id(client, {**CATALOGUE, "id": "cambrdgedb-2099538"})
        assert exc_info.value.as_payload() == GENERIC_ENGINE_MESSAGE

    @pytest.mark.asyncio
    async def test_invalid_availability_fails_the_detail(self, aggregator, client, engine_stub):
        engine_stub.add(RESULTS_PATH, load_fixture("aquabrowser/detail_duplicate.xml"))
        engine_stub.add(AVAILABILITY_PATH, "<root><cambrdgedb>")

        with pytest.raises(EngineParseError):
            await aggregator.get_result_by_id(client, {**CATALOGUE, "id": "cambrdgedb-2099538"})

    @pytest.mark.asyncio
    async def test_unknown_record(self, aggregator, client, engine_stub):
        engine_stub.add(RESULTS_PATH, load_fixture("aquabrowser/noresults.xml"))

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await aggregator.get_result_by_id(client, {**CATALOGUE, "id": "nope"})
        assert exc_info.value.as_payload().code == 404

    @pytest.mark.asyncio
    async def test_summon_detail_uses_fids(self, aggregator, client, engine_stub):
        engine_stub.add(SUMMON_PATH, load_fixture("summon/detail.json"))

        result = await aggregator.get_result_by_id(client, {"id": "FETCH-cam-123"})

        assert result.id == "FETCH-cam-123"
        assert result.branches is None
        [request] = engine_stub.requests_to(SUMMON_PATH)
        assert str(request.url).endswith("?s.fids=FETCH-cam-123")

    @pytest.mark.asyncio
    async def test_missing_id(self, aggregator, client):
        with pytest.raises(ValidationError):
            await aggregator.get_result_by_id(client, {"q": "darwin"})


@pytest.mark.integration
class TestFacetsOnly:
    """get_facets_for_results"""

    @pytest.mark.asyncio
    async def test_catalogue_facet(self, aggregator, client, engine_stub):
        engine_stub.add(FACETS_PATH, load_fixture("aquabrowser/facets.xml"))

        facets = await aggregator.get_facets_for_results(client, {**CATALOGUE, "q": "darwin", "facet": "author"})

        assert [f.label for f in facets[0].facets] == ["Darwin, Charles", "Huxley, Thomas", "Wallace, Alfred Russel"]
        [request] = engine_stub.requests_to(FACETS_PATH)
        assert request.url.params["t_dim"] == "Author"

    @pytest.mark.asyncio
    async def test_summon_facet_requests_no_records(self, aggregator, client, engine_stub):
        engine_stub.add(SUMMON_PATH, load_fixture("summon/search.json"))

        await aggregator.get_facets_for_results(client, {"q": "darwin", "facet": "language"})

        [request] = engine_stub.requests_to(SUMMON_PATH)
        assert request.url.params["s.ps"] == "0"
        assert request.url.params["s.ff"] == "Language,or,1,15"

    @pytest.mark.parametrize(
        "query, message",
        [
            ({"q": "darwin"}, "Invalid facet"),
            ({"facet": "author"}, "Invalid query"),
            ({"q": "darwin", "facet": "branch"}, "Unsupported facet: branch"),
        ],
    )
    @pytest.mark.asyncio
    async def test_validation(self, aggregator, client, engine_stub, query, message):
        with pytest.raises(ValidationError) as exc_info:
            await aggregator.get_facets_for_results(client, query)
        assert exc_info.value.as_payload() == ErrorEnvelope(code=400, msg=message)
        assert engine_stub.requests == []

    @pytest.mark.asyncio
    async def test_engine_failure(self, aggregator, client, engine_stub):
        engine_stub.add(FACETS_PATH, error=httpx.ReadTimeout)

        with pytest.raises(FacetFetchError) as exc_info:
            await aggregator.get_facets_for_results(client, {**CATALOGUE, "q": "darwin", "facet": "format"})
        assert exc_info.value.as_payload() == ErrorEnvelope(code=500, msg="Error while fetching facets")


@pytest.mark.integration
def test_default_adapters(portal_config):
    aggregator = ResultsAggregator(portal_config)
    assert isinstance(aggregator.adapters["aquabrowser"], AquabrowserAdapter)
    assert isinstance(aggregator.adapters["summon"], SummonAdapter)
