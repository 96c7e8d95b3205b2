from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from typing_extensions import Literal, assert_never

from notmodified._headers import Headers
from notmodified._models import Request, Response
from notmodified._utils import filter_items, parse_date

logger = logging.getLogger(__name__)

IF_NONE_MATCH = "If-None-Match"
IF_MODIFIED_SINCE = "If-Modified-Since"
ETAG = "ETag"
LAST_MODIFIED = "Last-Modified"

NOT_MODIFIED_STRIPPED_HEADERS = ("Content-Type", "Content-Length")

DateComparison = Literal["lexical", "parsed"]


@dataclass
class ConditionalOptions:
    """
    Configuration options for conditional GET handling.

    Attributes:
    ----------
    eligible_methods : list[str]
        Request methods whose responses may be replaced by 304 Not Modified.

        RFC 9110 Section 13.1.2: If-None-Match
        https://www.rfc-editor.org/rfc/rfc9110.html#section-13.1.2

        "... the origin server MUST NOT perform the requested method; instead,
        if the request method was either GET or HEAD, the server SHOULD respond
        with a 304 (Not Modified) status code ..."

        Default: ["GET", "HEAD"]

        Examples:
        --------
        >>> options = ConditionalOptions()
        >>> options.eligible_methods
        ['GET', 'HEAD']

    eligible_status : int
        The only downstream status code that may be rewritten.

        Default: 200

    date_comparison : "lexical" | "parsed"
        How If-Modified-Since is compared against Last-Modified.

        - "lexical": plain string comparison. Reliable only when the
          application emits canonically formatted, fixed-width dates.
        - "parsed": both values are parsed as HTTP dates and compared as
          timestamps. An unparsable value never counts as fresh.

        Default: "lexical"

        Examples:
        --------
        >>> options = ConditionalOptions(date_comparison="parsed")

    stripped_headers : list[str]
        Headers removed from a synthesized 304, since it carries no body.

        Default: ["Content-Type", "Content-Length"]
    """

    eligible_methods: list[str] = field(default_factory=lambda: ["GET", "HEAD"])
    """Request methods eligible for the 304 rewrite."""

    eligible_status: int = 200
    """Downstream status that may be rewritten."""

    date_comparison: DateComparison = "lexical"
    """How If-Modified-Since is compared against Last-Modified."""

    stripped_headers: list[str] = field(default_factory=lambda: list(NOT_MODIFIED_STRIPPED_HEADERS))
    """Headers removed from a synthesized 304 response."""

    def __post_init__(self) -> None:
        if self.date_comparison not in ("lexical", "parsed"):
            raise ValueError(f"Unknown date comparison: {self.date_comparison!r}")


def etag_matches(request_headers: Mapping[str, str], response_headers: Mapping[str, str]) -> bool:
    """
    Checks whether the response entity-tag equals the client's If-None-Match value.

    The comparison is exact string equality. Wildcards and lists of tags are
    not interpreted.

    Examples:
    --------
    >>> etag_matches(Headers({"If-None-Match": '"abc"'}), Headers({"ETag": '"abc"'}))
    True
    >>> etag_matches(Headers({"If-None-Match": '"xyz"'}), Headers({"ETag": '"abc"'}))
    False
    >>> etag_matches(Headers({}), Headers({"ETag": '"abc"'}))
    False
    """
    etag = response_headers.get(ETAG)
    none_match = request_headers.get(IF_NONE_MATCH)
    if etag is None or none_match is None:
        return False
    return etag == none_match


def not_modified_since(
    request_headers: Mapping[str, str],
    response_headers: Mapping[str, str],
    options: ConditionalOptions | None = None,
) -> bool:
    """
    Checks whether the client's If-Modified-Since is at or after the response Last-Modified.

    Examples:
    --------
    >>> not_modified_since(
    ...     Headers({"If-Modified-Since": "2024-01-02"}),
    ...     Headers({"Last-Modified": "2024-01-01"}),
    ... )
    True
    >>> not_modified_since(Headers({}), Headers({"Last-Modified": "2024-01-01"}))
    False
    """
    options = options if options is not None else ConditionalOptions()
    last_modified = response_headers.get(LAST_MODIFIED)
    modified_since = request_headers.get(IF_MODIFIED_SINCE)
    if last_modified is None or modified_since is None:
        return False

    if options.date_comparison == "lexical":
        return modified_since >= last_modified
    elif options.date_comparison == "parsed":
        last_modified_ts = parse_date(last_modified)
        modified_since_ts = parse_date(modified_since)
        if last_modified_ts is None or modified_since_ts is None:
            logger.debug(
                "Could not parse validator dates: last_modified=%r if_modified_since=%r",
                last_modified,
                modified_since,
            )
            return False
        return modified_since_ts >= last_modified_ts
    else:
        assert_never(options.date_comparison)


def is_fresh(
    request_headers: Mapping[str, str],
    response_headers: Mapping[str, str],
    options: ConditionalOptions | None = None,
) -> bool:
    """
    Decides whether the client's cached representation is still current.

    Either validator being satisfied is enough.
    """
    return etag_matches(request_headers, response_headers) or not_modified_since(
        request_headers, response_headers, options
    )


def is_eligible(method: str, status_code: int, options: ConditionalOptions | None = None) -> bool:
    options = options if options is not None else ConditionalOptions()
    return method in options.eligible_methods and status_code == options.eligible_status


def should_respond_not_modified(
    request: Request,
    response: Response,
    options: ConditionalOptions | None = None,
) -> bool:
    return is_eligible(request.method, response.status_code, options) and is_fresh(
        request.headers, response.headers, options
    )


def not_modified_headers(headers: Headers, options: ConditionalOptions | None = None) -> Headers:
    """
    Builds the header map of a 304 response from the original response headers.

    Headers describing the body (Content-Type, Content-Length by default) are
    dropped, everything else is kept in its original order.

    Examples:
    --------
    >>> headers = Headers({"ETag": '"abc"', "Content-Type": "text/html", "Content-Length": "10"})
    >>> list(not_modified_headers(headers))
    ['ETag']
    """
    options = options if options is not None else ConditionalOptions()
    return Headers(filter_items(headers.multi_items(), options.stripped_headers))
