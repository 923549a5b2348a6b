"""Errors raised by the search core.

Everything that leaves the core is one of these; `as_payload()` gives the
normalised form callers see: an `ErrorEnvelope` for request problems, a
short string for upstream problems. No upstream detail is exposed.
"""

from __future__ import annotations

from http import HTTPStatus

from library_discovery_mcp.schemas.search.responses import ErrorEnvelope

GENERIC_ENGINE_MESSAGE = "An error occurred while fetching data"


class SearchError(Exception):
    """Base exception for search errors."""

    def as_payload(self) -> ErrorEnvelope | str:
        return str(self)


class RequestError(SearchError):
    """Error reported to the caller with an HTTP style code."""

    def __init__(self, msg: str, code: int) -> None:
        super().__init__(msg)
        self.code = int(code)
        self.msg = msg

    def as_payload(self) -> ErrorEnvelope:
        return ErrorEnvelope(code=self.code, msg=self.msg)


class ValidationError(RequestError):
    """The request was rejected before reaching any engine."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg, code=HTTPStatus.BAD_REQUEST)


class ResourceNotFoundError(RequestError):
    """A detail lookup matched no record."""

    def __init__(self, msg: str = "Resource not found") -> None:
        super().__init__(msg, code=HTTPStatus.NOT_FOUND)


class FacetFetchError(RequestError):
    """A facet-only request failed upstream."""

    def __init__(self) -> None:
        super().__init__(
            "Error while fetching facets", code=HTTPStatus.INTERNAL_SERVER_ERROR
        )


class SearchEngineError(SearchError):
    """An engine could not deliver usable data."""

    def __init__(self, msg: str = GENERIC_ENGINE_MESSAGE) -> None:
        super().__init__(msg)


class EngineTransportError(SearchEngineError):
    """Connection failure, timeout or HTTP error status."""

    pass


class EngineParseError(SearchEngineError):
    """The payload did not have the expected structure."""

    pass
