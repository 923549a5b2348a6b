"""Request building and signing for the Summon API.

Every request is authenticated with an HMAC-SHA1 digest over the header
values and the decoded query string:

    Accept: application/json
    x-summon-date: Mon, 19 Oct 2026 10:00:00 GMT
    Host: api.summon.serialssolutions.com
    Version: /2.0.0/search
    Authorization: Summon <access id>;<base64 digest>

The query string must be byte-identical between what is signed and what
is sent, so both are produced here from one sorted list of pairs.
"""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from email.utils import format_datetime
import hashlib
import hmac
import re
import unicodedata
from urllib.parse import quote, unquote

from library_discovery_mcp.config.engines import SummonConfig
from library_discovery_mcp.utils.query import Query, first_value, values_of

# Portal parameter -> Summon facet field used in `s.fvf` filters
FILTER_FIELDS = {
    "format": "ContentType",
    "contenttype": "ContentType",
    "author": "Author",
    "language": "Language",
    "subject": "SubjectTerms",
    "subjectterms": "SubjectTerms",
    "discipline": "Discipline",
}

CONTENT_TYPE_FIELD = "ContentType"

# Separator commas only; `\,` inside an escaped filter value is kept
UNESCAPED_COMMA = re.compile(r"(?<!\\),")


def normalize_text(value: str) -> str:
    """Fold a value to plain characters: NFKD, accents dropped, spaces collapsed."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return " ".join(stripped.split())


def escape_filter_value(value: str) -> str:
    """Escape the characters Summon treats as separators in `s.fvf` values."""
    return value.replace("\\", "\\\\").replace(",", "\\,")


def _filter_pairs(params: Query, config: SummonConfig) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for key, field in FILTER_FIELDS.items():
        for value in values_of(params, key):
            if field == CONTENT_TYPE_FIELD:
                if value == "all":
                    continue
                value = config.content_types.get(value, value)
            pairs.append(("s.fvf", f"{field},{escape_filter_value(value)},false"))
    return pairs


def translate_parameters(params: Query, config: SummonConfig) -> list[tuple[str, str]]:
    """Map portal parameters onto Summon parameters for a listing search.

    Catalogue only filters (branch, mdtags, person, ...) have no Summon
    counterpart and are dropped.

    Args:
        params: Sanitised portal query
        config: Summon settings (page size, facet fields, content types)
    """
    pairs: list[tuple[str, str]] = []

    q = first_value(params, "q")
    if q:
        pairs.append(("s.q", q))
    page = first_value(params, "page")
    if page:
        pairs.append(("s.pn", page))

    pairs.extend(_filter_pairs(params, config))
    pairs.append(("s.ps", str(config.page_size)))
    for field in config.facet_fields:
        pairs.append(("s.ff", f"{field},or,1,{config.facet_count}"))
    return pairs


def translate_facet_parameters(
    params: Query, config: SummonConfig
) -> list[tuple[str, str]]:
    """Parameters for a facet-only request on `params['facet']`.

    No records are requested (`s.ps=0`); only the one facet field is.
    """
    field = FILTER_FIELDS[first_value(params, "facet") or ""]
    pairs: list[tuple[str, str]] = []
    q = first_value(params, "q")
    if q:
        pairs.append(("s.q", q))
    pairs.extend(_filter_pairs(params, config))
    pairs.append(("s.ps", "0"))
    pairs.append(("s.ff", f"{field},or,1,{config.facet_count}"))
    return pairs


def _clean_value(value: str) -> str:
    return ",".join(normalize_text(segment) for segment in UNESCAPED_COMMA.split(value))


def construct_query_string(
    pairs: list[tuple[str, str]], record_id: str | None = None
) -> str:
    """Sorted, percent-encoded query string.

    Each value is split on its unescaped commas, every segment normalised
    and the value rejoined. A record id becomes `s.fids=<id>`. Pairs are sorted on their
    decoded `key=value` form, which is what gets signed.
    """
    raw = [f"{key}={_clean_value(value)}" for key, value in pairs]
    if record_id:
        raw.append(f"s.fids={record_id}")

    encoded = []
    for item in sorted(raw):
        key, _, value = item.partition("=")
        encoded.append(f"{key}={quote(value, safe=',')}")
    return "&".join(encoded)


def format_summon_date(moment: datetime | None = None) -> str:
    """RFC 1123 timestamp in GMT, e.g. 'Mon, 19 Oct 2026 10:00:00 GMT'."""
    moment = moment or datetime.now(timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def construct_header_block(config: SummonConfig, date: str) -> dict[str, str]:
    """Headers in signing order. Dict order is significant."""
    return {
        "Accept": "application/json",
        "x-summon-date": date,
        "Host": config.host,
        "Version": config.version,
    }


def construct_signature_string(headers: dict[str, str], query_string: str) -> str:
    header_string = "".join(f"{value}\n" for value in headers.values())
    return f"{header_string}{unquote(query_string)}\n"


def sign(secret_key: str, message: str) -> str:
    """Base64 encoded HMAC-SHA1 of `message`."""
    digest = hmac.new(
        secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def build_authorization(access_id: str, digest: str) -> str:
    return f"Summon {access_id};{digest}"


def construct_signed_headers(
    config: SummonConfig, query_string: str, date: str
) -> dict[str, str]:
    """Complete header block including the Authorization header.

    Args:
        config: Summon settings with the access id and secret key
        query_string: Exactly the query string that will be sent
        date: Value of the x-summon-date header
    """
    headers = construct_header_block(config, date)
    digest = sign(config.secret_key, construct_signature_string(headers, query_string))
    headers["Authorization"] = build_authorization(config.access_id, digest)
    return headers
