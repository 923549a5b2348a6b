"""Field extractors for Aquabrowser records.

A record as returned by the result endpoint (highlighting tags removed):

    <record id="cambrdgedb-2099538" extID="|cambrdgedb|2099538" src="cambrdgedb">
      <fields>
        <title>On the origin of species</title>
        <author>Darwin, Charles, 1809-1882</author>
        <isbn>9780140432053</isbn>
        <publisher>London : John Murray</publisher>
        <year>1859</year>
        <subject>Evolution (Biology)</subject>
        <series>Penguin classics</series>
        <notes>First published 1859.</notes>
        <format>book</format>
        <coverimage>http://covers.example.org/9780140432053.jpg</coverimage>
        <link>http://example.org/fulltext</link>
      </fields>
    </record>

Every extractor takes the record node and returns a value or None; a
missing or empty field is never an error.
"""

from __future__ import annotations

from library_discovery_mcp.schemas.search.results import (
    Author,
    Branch,
    PublicationData,
    PublicationDate,
)
from library_discovery_mcp.utils.nodes import RawNode, int_of, text_of, texts_of


def _fields(record: RawNode) -> RawNode:
    return record.get("fields")


def get_resource_id(record: RawNode) -> str | None:
    return text_of(record.get("id"))


def get_resource_ext_id(record: RawNode) -> str | None:
    return text_of(record.get("extID"))


def get_resource_titles(record: RawNode) -> list[str] | None:
    return texts_of(_fields(record).get("title"))


def get_resource_isbn(record: RawNode) -> list[str] | None:
    return texts_of(_fields(record).get("isbn"))


def get_resource_authors(record: RawNode) -> list[Author] | None:
    names = texts_of(_fields(record).get("author"))
    if not names:
        return None
    return [Author(full_name=name) for name in names]


def get_resource_publication_data(record: RawNode) -> PublicationData | None:
    fields = _fields(record)
    publisher = texts_of(fields.get("publisher"))
    year = text_of(fields.get("year"))
    if publisher is None and year is None:
        return None
    return PublicationData(
        title=publisher,
        date=PublicationDate(year=year, label=year or ""),
    )


def get_resource_subjects(record: RawNode) -> list[str] | None:
    return texts_of(_fields(record).get("subject"))


def get_resource_series(record: RawNode) -> list[str] | None:
    return texts_of(_fields(record).get("series"))


def get_resource_notes(record: RawNode) -> list[str] | None:
    return texts_of(_fields(record).get("notes"))


def get_resource_content_type(record: RawNode) -> str | None:
    return text_of(_fields(record).get("format"))


def get_resource_thumbnails(record: RawNode) -> list[str] | None:
    return texts_of(_fields(record).get("coverimage"))


def get_resource_links(record: RawNode) -> list[str] | None:
    return texts_of(_fields(record).get("link"))


def create_branch(availability: RawNode) -> Branch:
    """One availability row; fields may be attributes or child elements."""
    return Branch(
        location=text_of(availability.get("location")),
        sublocation=text_of(availability.get("sublocation")),
        status=text_of(availability.get("status")),
        item_count=int_of(availability.get("itemcount")),
        external_datasource_name=text_of(availability.get("externalDatasourceName")),
        native_id=text_of(availability.get("nativeId")),
        place_hold_url=text_of(availability.get("placeHoldUrl")),
        notes=text_of(availability.get("notes")),
    )
