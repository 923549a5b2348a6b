"""Field extractors for Summon documents.

Summon reports nearly every field as a list of strings, with matched
terms wrapped in `<h>...</h>`:

    {
      "ID": ["FETCH-LOGICAL-1234"],
      "Title": ["On the <h>origin</h> of species"],
      "Author_xml": [{"fullname": "Darwin, Charles"}],
      "PublicationDate_xml": [{"day": "24", "month": "11", "year": "1859"}],
      "ContentType": ["Book"],
      "link": "http://cambridge.summon.serialssolutions.com/link/0/..."
    }

Extractors accept lists and bare values alike and return None for
anything missing.
"""

from __future__ import annotations

import re

from library_discovery_mcp.schemas.search.results import (
    Author,
    PublicationData,
    PublicationDate,
    PublicationPage,
)
from library_discovery_mcp.utils.nodes import RawNode, text_of, texts_of

HIGHLIGHT_TAGS = re.compile(r"</?h>")


def strip_highlights(value: str) -> str:
    return HIGHLIGHT_TAGS.sub("", value)


def get_property_data(document: RawNode, key: str) -> list[str] | None:
    """All values of `key`, highlighting removed."""
    values = texts_of(document.get(key))
    if values is None:
        return None
    cleaned = [value for value in (strip_highlights(v).strip() for v in values) if value]
    return cleaned or None


def get_property_value(document: RawNode, key: str) -> str | None:
    """First value of `key`, highlighting removed."""
    values = get_property_data(document, key)
    return values[0] if values else None


def get_resource_authors(document: RawNode) -> list[Author] | None:
    authors = []
    for row in document.get("Author_xml").all():
        name = text_of(row.get("fullname"))
        if name:
            authors.append(Author(full_name=strip_highlights(name)))
    return authors or None


def get_resource_publication_data(document: RawNode) -> PublicationData:
    date = document.get("PublicationDate_xml").first()
    day = text_of(date.get("day"))
    month = text_of(date.get("month"))
    year = text_of(date.get("year"))

    start_page = get_property_value(document, "StartPage")
    end_page = get_property_value(document, "EndPage")

    return PublicationData(
        title=get_property_data(document, "PublicationTitle"),
        date=PublicationDate(
            day=day,
            month=month,
            year=year,
            label="-".join(part for part in (day, month, year) if part),
        ),
        volume=get_property_data(document, "Volume"),
        issue=get_property_data(document, "Issue"),
        page=PublicationPage(
            start=start_page,
            end=end_page,
            label="-".join(part for part in (start_page, end_page) if part),
        ),
    )


def get_resource_thumbnails(document: RawNode) -> list[str] | None:
    """Thumbnail URLs from small to large."""
    thumbnails: list[str] = []
    for key in ("thumbnail_s", "thumbnail_m", "thumbnail_l"):
        thumbnails.extend(get_property_data(document, key) or [])
    return thumbnails or None
