"""Summon discovery engine adapter (signed JSON API).

Relevant parts of a search response:

    {
      "recordCount": 1234,
      "query": {"pageNumber": 1, "pageSize": 10, ...},
      "documents": [{...}, ...],
      "facetFields": [
        {"displayName": "ContentType", "fieldName": "ContentType",
         "counts": [{"value": "Book", "count": 810}, ...]}
      ]
    }
"""

from __future__ import annotations

import json
import logging
import math
from typing import TYPE_CHECKING

from library_discovery_mcp.schemas.search.facets import Facet, FacetType
from library_discovery_mcp.schemas.search.results import Result
from library_discovery_mcp.servers.search.engines.base import (
    EngineRequest,
    SearchEngineAdapter,
)
from library_discovery_mcp.servers.search.engines.summon import fields
from library_discovery_mcp.servers.search.engines.summon.request import (
    FILTER_FIELDS,
    construct_query_string,
    construct_signed_headers,
    format_summon_date,
    translate_facet_parameters,
    translate_parameters,
)
from library_discovery_mcp.servers.search.utils.errors import EngineParseError
from library_discovery_mcp.utils.links import (
    create_facet_overview,
    create_facet_url,
    create_pagination_model,
)
from library_discovery_mcp.utils.nodes import Element, RawNode, from_json, int_of, text_of
from library_discovery_mcp.utils.query import Query, first_value

if TYPE_CHECKING:
    import httpx

    from library_discovery_mcp.config.engines import SummonConfig
    from library_discovery_mcp.schemas.search.facets import AppliedFacet
    from library_discovery_mcp.schemas.search.responses import Pagination

logger = logging.getLogger(__name__)


class SummonAdapter(SearchEngineAdapter):
    """Adapter for the Summon search API."""

    name = "summon"

    @property
    def engine(self) -> SummonConfig:
        return self.config.summon

    def _signed_request(self, query_string: str) -> EngineRequest:
        headers = construct_signed_headers(
            self.engine, query_string, format_summon_date()
        )
        return EngineRequest(
            url=f"{self.engine.base_url}?{query_string}",
            timeout=self.engine.timeout,
            headers=headers,
        )

    # --- requests -----------------------------------------------------------

    def build_request(self, params: Query, *, explicit: bool) -> EngineRequest:
        record_id = first_value(params, "id")
        if record_id:
            return self._signed_request(construct_query_string([], record_id))
        pairs = translate_parameters(params, self.engine)
        return self._signed_request(construct_query_string(pairs))

    def build_facet_request(self, params: Query) -> EngineRequest:
        pairs = translate_facet_parameters(params, self.engine)
        return self._signed_request(construct_query_string(pairs))

    def supports_facet(self, facet: str) -> bool:
        return facet in FILTER_FIELDS

    # --- responses ----------------------------------------------------------

    def parse_response(self, body: str) -> RawNode:
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            logger.error(f"Summon search: invalid JSON ({e})")
            raise EngineParseError() from e

        if not isinstance(data, dict):
            logger.error(f"Summon search: expected an object, got {type(data).__name__}")
            raise EngineParseError()
        return from_json(data)

    def record_count(self, parsed: RawNode) -> int:
        return int_of(parsed.get("recordCount")) or 0

    def select_records(self, parsed: RawNode, *, is_detail: bool) -> list[RawNode]:
        documents = [doc for doc in parsed.get("documents").all() if isinstance(doc, Element)]
        if is_detail:
            return documents[:1]
        return documents

    async def assemble_result(
        self, client: httpx.AsyncClient, record: RawNode, *, is_detail: bool
    ) -> Result:
        record_id = fields.get_property_value(record, "ID")
        if not record_id:
            logger.error("Invalid or no resource ID returned from Summon")
            raise EngineParseError()

        return Result(
            id=record_id,
            source=self.name,
            external_id=fields.get_property_value(record, "ExternalDocumentID"),
            titles=fields.get_property_data(record, "Title"),
            isbn=fields.get_property_data(record, "ISBN"),
            eisbn=fields.get_property_data(record, "EISBN"),
            issn=fields.get_property_data(record, "ISSN"),
            ssid=fields.get_property_data(record, "SSID"),
            authors=fields.get_resource_authors(record),
            published=fields.get_resource_publication_data(record),
            subjects=fields.get_property_data(record, "SubjectTerms"),
            series=fields.get_property_data(record, "PublicationSeriesTitle"),
            notes=fields.get_property_data(record, "Notes"),
            content_type=fields.get_property_value(record, "ContentType"),
            thumbnails=fields.get_resource_thumbnails(record),
            links=fields.get_property_data(record, "link"),
        )

    def build_facets(self, parsed: RawNode, params: Query) -> list[FacetType]:
        facet_types: list[FacetType] = []
        for facet_field in parsed.get("facetFields").all():
            field_name = text_of(facet_field.get("fieldName"))
            label = text_of(facet_field.get("displayName")) or field_name
            if not label:
                continue

            facets: list[Facet] = []
            for count in facet_field.get("counts").all():
                value = text_of(count.get("value"))
                if value is None:
                    continue
                facets.append(
                    Facet(
                        label=value,
                        amount=int_of(count.get("count")),
                        url=create_facet_url(params, field_name or label, value),
                    )
                )

            facet_types.append(FacetType(label=label, facets=facets))
        return facet_types

    def applied_facets(self, params: Query, *, explicit: bool) -> list[AppliedFacet]:
        # Catalogue only filters are never sent to Summon
        return [
            facet for facet in create_facet_overview(params) if facet.type in FILTER_FIELDS
        ]

    def build_pagination(self, parsed: RawNode, params: Query) -> Pagination:
        link_params = dict(params)
        link_params["api"] = self.name

        query = parsed.get("query")
        record_count = self.record_count(parsed)
        page_size = int_of(query.get("pageSize")) or self.engine.page_size

        total_pages = math.ceil(record_count / page_size) if page_size > 0 else 0
        page_count = self.clamp_page(total_pages)
        page = self.clamp_page(int_of(query.get("pageNumber")) or 1)

        return create_pagination_model(
            link_params,
            page,
            page_count,
            1 if page_count else 0,
            page_count,
            window=self.config.node.pagination_window,
        )
