"""Aquabrowser catalogue adapter (MARC based, XML responses).

Response layout of the result endpoint:

    <root>
      <feedbacks>
        <standard><resultcount>123</resultcount><currentpage>1</currentpage></standard>
        <pager><currentpage>1</currentpage><totalpages>13</totalpages></pager>
        <!-- or <noresults/> when nothing matched -->
      </feedbacks>
      <results><record ...>...</record>...</results>
      <refine><d rawlbl="Format" t="2"><kw lbl="Book" c="10"/>...</d>...</refine>
    </root>

See `fields.py` for the record layout.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from lxml import etree

from library_discovery_mcp.schemas.search.facets import Facet, FacetType
from library_discovery_mcp.schemas.search.responses import (
    Pagination,
    Suggestion,
    Suggestions,
)
from library_discovery_mcp.schemas.search.results import Branch, Result
from library_discovery_mcp.servers.search.engines.aquabrowser import fields
from library_discovery_mcp.servers.search.engines.aquabrowser.request import (
    FACET_DIMENSIONS,
    construct_availability_url,
    construct_facet_query_string,
    construct_query_string,
    construct_suggestions_url,
)
from library_discovery_mcp.servers.search.engines.base import (
    EngineRequest,
    SearchEngineAdapter,
    fetch_text,
)
from library_discovery_mcp.servers.search.utils.errors import EngineParseError
from library_discovery_mcp.utils.links import (
    create_facet_overview,
    create_facet_url,
    create_pagination_model,
)
from library_discovery_mcp.utils.nodes import RawNode, from_xml, int_of, text_of
from library_discovery_mcp.utils.query import Query, first_value, serialize_query

if TYPE_CHECKING:
    import httpx

    from library_discovery_mcp.config.engines import AquabrowserConfig
    from library_discovery_mcp.schemas.search.facets import AppliedFacet

logger = logging.getLogger(__name__)

# Inline highlighting of matched terms, not data
HIGHLIGHT_TAGS = re.compile(r"</?exact>|</?nonexact>")


def _parse_xml(body: str, context: str) -> RawNode:
    try:
        return from_xml(body.strip())
    except etree.XMLSyntaxError as e:
        logger.error(f"{context}: invalid XML ({e})")
        raise EngineParseError() from e


class AquabrowserAdapter(SearchEngineAdapter):
    """Adapter for the Aquabrowser result, availability and suggestion APIs."""

    name = "aquabrowser"
    supports_suggestions = True

    @property
    def engine(self) -> AquabrowserConfig:
        return self.config.aquabrowser

    def _request(self, url: str) -> EngineRequest:
        return EngineRequest(url=url, timeout=self.engine.timeout)

    # --- requests -----------------------------------------------------------

    def build_request(self, params: Query, *, explicit: bool) -> EngineRequest:
        query_string = construct_query_string(params, explicit=explicit)
        return self._request(f"{self.engine.url}?{query_string}")

    def build_facet_request(self, params: Query) -> EngineRequest:
        query_string = construct_facet_query_string(params)
        return self._request(f"{self.engine.facets_url}?{query_string}")

    def supports_facet(self, facet: str) -> bool:
        return facet in FACET_DIMENSIONS

    # --- responses ----------------------------------------------------------

    def parse_response(self, body: str) -> RawNode:
        root = _parse_xml(HIGHLIGHT_TAGS.sub("", body), "Aquabrowser search").get("root")
        if not root.present:
            logger.error("Aquabrowser search: response has no root element")
            raise EngineParseError()
        return root

    def _has_no_results(self, parsed: RawNode) -> bool:
        return parsed.get("feedbacks").get("noresults").present

    def record_count(self, parsed: RawNode) -> int:
        if self._has_no_results(parsed):
            return 0
        count = int_of(parsed.get("feedbacks").get("standard").get("resultcount"))
        if count is None:
            return len(self.select_records(parsed, is_detail=False))
        return count

    def select_records(self, parsed: RawNode, *, is_detail: bool) -> list[RawNode]:
        if self._has_no_results(parsed):
            return []
        records = parsed.get("results").get("record")
        if is_detail:
            # A record held in several databases comes back once per database;
            # the first copy is the canonical one.
            first = records.first()
            return [first] if first.present else []
        return records.all()

    async def assemble_result(
        self, client: httpx.AsyncClient, record: RawNode, *, is_detail: bool
    ) -> Result:
        record_id = fields.get_resource_id(record)
        if not record_id:
            logger.error("Invalid or no resource ID returned from Aquabrowser")
            raise EngineParseError()

        external_id = fields.get_resource_ext_id(record)
        branches = None
        if is_detail:
            branches = await self.fetch_availability(client, external_id)

        return Result(
            id=record_id,
            source=self.name,
            external_id=external_id,
            titles=fields.get_resource_titles(record),
            isbn=fields.get_resource_isbn(record),
            authors=fields.get_resource_authors(record),
            published=fields.get_resource_publication_data(record),
            subjects=fields.get_resource_subjects(record),
            series=fields.get_resource_series(record),
            notes=fields.get_resource_notes(record),
            content_type=fields.get_resource_content_type(record),
            thumbnails=fields.get_resource_thumbnails(record),
            links=fields.get_resource_links(record),
            branches=branches,
        )

    async def fetch_availability(
        self, client: httpx.AsyncClient, external_id: str | None
    ) -> list[Branch]:
        """Holdings per branch for one resource.

        Every child of the document element is a database holding the
        resource; each lists one or more `availability` rows.

        Raises:
            EngineTransportError: When the request fails or times out
            EngineParseError: When the payload is not usable
        """
        if not external_id:
            logger.error("Aquabrowser availability: record has no external id")
            raise EngineParseError()

        request = self._request(
            construct_availability_url(self.engine.availability_url, external_id)
        )
        body = await fetch_text(client, request, "Aquabrowser availability")
        document = _parse_xml(body, "Aquabrowser availability").first()

        branches: list[Branch] = []
        for root in document.elements():
            for database in root.elements():
                for availability in database.get("availability").all():
                    branches.append(fields.create_branch(availability))
        return branches

    def build_facets(self, parsed: RawNode, params: Query) -> list[FacetType]:
        facet_types: list[FacetType] = []
        for facet_type in parsed.get("refine").get("d").all():
            type_label = text_of(facet_type.get("rawlbl"))
            if not type_label:
                continue

            facets: list[Facet] = []
            for keyword in facet_type.get("kw").all():
                label = text_of(keyword.get("lbl"))
                if label is None:
                    continue
                facets.append(
                    Facet(
                        label=label,
                        amount=int_of(keyword.get("c")),
                        url=create_facet_url(params, type_label, label),
                    )
                )

            facet_types.append(
                FacetType(
                    label=type_label, amount=int_of(facet_type.get("t")), facets=facets
                )
            )
        return facet_types

    def build_pagination(self, parsed: RawNode, params: Query) -> Pagination:
        # Links are built from a copy that pins the engine
        link_params = dict(params)
        link_params["api"] = self.name

        page = page_count = first_page = last_page = 0
        feedbacks = parsed.get("feedbacks")
        pager = feedbacks.get("pager")
        standard = feedbacks.get("standard")

        if pager.present:
            page = int_of(pager.get("currentpage")) or 1
            total_pages = int_of(pager.get("totalpages")) or 0
            page_count = self.clamp_page(total_pages)
            first_page = 1
            last_page = self.clamp_page(total_pages)
        elif standard.present:
            page = int_of(standard.get("currentpage")) or 1
            page_count = first_page = last_page = 1

        return create_pagination_model(
            link_params,
            self.clamp_page(page),
            page_count,
            first_page,
            last_page,
            window=self.config.node.pagination_window,
        )

    def applied_facets(self, params: Query, *, explicit: bool) -> list[AppliedFacet]:
        # Filters are only sent when the catalogue was chosen explicitly
        return create_facet_overview(params) if explicit else []

    async def fetch_suggestions(
        self, client: httpx.AsyncClient, params: Query
    ) -> Suggestions:
        """Spelling suggestions from the AquaServer cloud.

            <cloud><concept>darwn</concept><i c="12">darwin</i>...</cloud>

        Raises:
            EngineTransportError: When the request fails or times out
            EngineParseError: When the payload is not usable
        """
        term = first_value(params, "q")
        if not term:
            return Suggestions()

        request = self._request(
            construct_suggestions_url(self.engine.suggestions_url, term)
        )
        body = await fetch_text(client, request, "Aquabrowser suggestions")
        cloud = _parse_xml(body, "Aquabrowser suggestions").get("cloud")
        if not cloud.present:
            logger.error("Aquabrowser suggestions: response has no cloud element")
            raise EngineParseError()

        items: list[Suggestion] = []
        for row in cloud.get("i").all():
            label = row.text()
            if not label:
                continue
            alternative = {k: v for k, v in params.items() if k != "page"}
            alternative["q"] = label
            items.append(Suggestion(label=label, url=serialize_query(alternative)))

        return Suggestions(original_query=text_of(cloud.get("concept")), items=items)
