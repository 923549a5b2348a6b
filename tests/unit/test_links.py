"""
Unit tests for facet toggle links, applied facet breadcrumbs and pagination
"""

from urllib.parse import parse_qsl

import pytest

from library_discovery_mcp.utils.links import (
    create_facet_overview,
    create_facet_url,
    create_pagination_model,
    facet_key,
)


@pytest.mark.unit
class TestFacetOverview:
    """Breadcrumbs for applied filters"""

    QUERY = {
        "q": "darwin",
        "api": "aquabrowser",
        "page": 3,
        "format": ["book", "ebook"],
        "language": "English",
    }

    def test_one_breadcrumb_per_filter_value(self):
        overview = create_facet_overview(self.QUERY)
        assert [(facet.type, facet.value) for facet in overview] == [
            ("format", "book"),
            ("format", "ebook"),
            ("language", "English"),
        ]

    def test_removal_round_trip(self):
        """Following a breadcrumb drops exactly that filter and keeps the siblings"""
        overview = create_facet_overview(self.QUERY)
        applied = {("format", "book"), ("format", "ebook"), ("language", "English")}

        for facet in overview:
            pairs = set(parse_qsl(facet.url))
            assert (facet.type, facet.value) not in pairs
            assert applied - {(facet.type, facet.value)} <= pairs
            assert ("q", "darwin") in pairs
            assert ("api", "aquabrowser") in pairs
            assert not any(key == "page" for key, _ in pairs)

    def test_no_filters_no_breadcrumbs(self):
        assert create_facet_overview({"q": "darwin", "page": 2}) == []


@pytest.mark.unit
class TestFacetUrl:
    """Toggle links on facet values"""

    def test_facet_key(self):
        assert facet_key("Format") == "format"
        assert facet_key("Time Period") == "timeperiod"
        assert facet_key("SubjectTerms") == "subjectterms"

    def test_adds_value_to_applied_filters(self):
        url = create_facet_url({"q": "darwin", "format": "book", "page": 4}, "Language", "English")
        assert sorted(parse_qsl(url)) == [("format", "book"), ("language", "English"), ("q", "darwin")]

    def test_removes_value_already_applied(self):
        url = create_facet_url({"q": "darwin", "format": ["book", "ebook"]}, "Format", "book")
        assert sorted(parse_qsl(url)) == [("format", "ebook"), ("q", "darwin")]


@pytest.mark.unit
class TestPaginationModel:
    """Page links around the current page"""

    def test_window_and_neighbours(self):
        pagination = create_pagination_model({"q": "darwin", "api": "summon"}, 5, 40, 1, 40)
        assert [link.number for link in pagination.pages] == [3, 4, 5, 6, 7]
        assert [link.number for link in pagination.pages if link.current] == [5]
        assert pagination.previous.number == 4
        assert pagination.next.number == 6
        assert ("page", "6") in parse_qsl(pagination.next.url)
        assert ("api", "summon") in parse_qsl(pagination.next.url)

    def test_window_is_cut_at_the_edges(self):
        pagination = create_pagination_model({"q": "x"}, 1, 2, 1, 2)
        assert [link.number for link in pagination.pages] == [1, 2]
        assert pagination.previous is None
        assert pagination.next.number == 2

    def test_last_page_has_no_next(self):
        pagination = create_pagination_model({"q": "x"}, 40, 40, 1, 40)
        assert pagination.next is None
        assert pagination.previous.number == 39

    def test_no_pages(self):
        pagination = create_pagination_model({"q": "x"}, 0, 0, 0, 0)
        assert pagination.pages == []
        assert pagination.previous is None and pagination.next is None
