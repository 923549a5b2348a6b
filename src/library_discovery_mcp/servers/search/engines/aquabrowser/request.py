"""Request building for the Aquabrowser catalogue.

Result search:
    http://search.lib.cam.ac.uk/result.ashx?cmd=find&noext=false&output=xml
        &q=title%3ADarwin%20format%3A%22book%22&searchmode=assoc

Availability:
    http://search.lib.cam.ac.uk/availability.ashx?hreciid=|cambrdgedb|2099538&output=xml

Facets (refine panel):
    http://search.lib.cam.ac.uk/RefinePanel.ashx?cmd=refanalyze&...&t_dim=Format
"""

from __future__ import annotations

from urllib.parse import quote

from library_discovery_mcp.utils.query import Query, first_value, values_of

# Always sent with a search
FIXED_PARAMETERS = ("cmd=find", "output=xml", "searchmode=assoc", "noext=false")

# Filters sent as `field:"value"` clauses inside q, in this order
CLAUSE_FIELDS = (
    "format",
    "author",
    "language",
    "mdtags",
    "person",
    "region",
    "series",
    "subject",
    "timeperiod",
    "uniformtitle",
)

# Facet parameter -> refine panel dimension
FACET_DIMENSIONS = {
    "branch": "Branch",
    "format": "Format",
    "author": "Author",
    "language": "Language",
    "mdtags": "MDTags",
    "person": "Person",
    "region": "Region",
    "series": "Series",
    "subject": "Subject",
    "timeperiod": "TimePeriod",
    "uniformtitle": "UniformTitle",
}


def encode_component(value: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(value, safe="!'()*~")


def _search_terms(params: Query) -> list[str]:
    terms: list[str] = []
    q = first_value(params, "q")
    if q:
        terms.append(q)
    for field in CLAUSE_FIELDS:
        for value in values_of(params, field):
            if field == "format" and value == "all":
                continue
            terms.append(f'{field}:"{value}"')
    return terms


def construct_query_string(params: Query, *, explicit: bool) -> str:
    """Query string for a result search.

    An `id` turns the request into an exact id lookup and every other
    parameter is ignored. Filters (clauses, branch, page) are only sent
    when the catalogue was selected explicitly. Parameters are sorted, the
    catalogue relies on a stable order.

    Args:
        params: Sanitised portal query
        explicit: True when the request names this engine
    """
    extra = list(FIXED_PARAMETERS)
    terms: list[str] = []

    record_id = first_value(params, "id")
    if record_id:
        terms.append(f"id:{record_id}")
    elif explicit:
        terms = _search_terms(params)
        for branch in values_of(params, "branch"):
            extra.append(f'branch="{branch}"')
        page = first_value(params, "page")
        if page:
            extra.append(f"curpage={page}")
    else:
        q = first_value(params, "q")
        if q:
            terms.append(q)

    extra.append("q=" + encode_component(" ".join(terms)))
    return "&".join(sorted(extra))


def construct_facet_query_string(params: Query) -> str:
    """Query string for a refine panel request on `params['facet']`."""
    facet = first_value(params, "facet") or ""
    extra = [
        "cmd=refanalyze",
        "output=xml",
        "searchmode=assoc",
        "noext=false",
        "t_method=-1",
        "t_dim=" + encode_component(FACET_DIMENSIONS.get(facet, facet)),
        "q=" + encode_component(" ".join(_search_terms(params))),
    ]
    for branch in values_of(params, "branch"):
        extra.append(f'branch="{branch}"')
    return "&".join(sorted(extra))


def construct_availability_url(base_url: str, external_id: str) -> str:
    return f"{base_url}?hreciid={quote(external_id, safe='|')}&output=xml"


def construct_suggestions_url(base_url: str, term: str) -> str:
    return f"{base_url}?q={encode_component(term)}"
