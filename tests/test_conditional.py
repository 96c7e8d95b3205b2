"""
Tests for the conditional GET decision functions.

Test Categories:
---------------
1. Entity-tag matching (If-None-Match vs ETag)
2. Date validators (If-Modified-Since vs Last-Modified), lexical and parsed
3. Method and status eligibility
4. Header trimming for synthesized 304 responses
5. Options validation
"""

from typing import Dict, Optional

import pytest

from notmodified import Headers, Request, Response
from notmodified._conditional import (
    ConditionalOptions,
    etag_matches,
    is_eligible,
    is_fresh,
    not_modified_headers,
    not_modified_since,
    should_respond_not_modified,
)
from notmodified._utils import generate_http_date, parse_date

# =============================================================================
# Test Fixtures and Helpers
# =============================================================================


@pytest.fixture
def parsed_options() -> ConditionalOptions:
    return ConditionalOptions(date_comparison="parsed")


def create_request(method: str = "GET", headers: Optional[Dict[str, str]] = None) -> Request:
    """Helper to create a request."""
    return Request(method=method, url="/resource", headers=Headers(headers or {}))


def create_response(status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> Response:
    """Helper to create a response."""
    return Response(status_code=status_code, headers=Headers(headers or {}))


# =============================================================================
# Entity-tag matching
# =============================================================================


class TestEtagMatches:
    def test_equal_tags_match(self):
        assert etag_matches(Headers({"If-None-Match": '"abc"'}), Headers({"ETag": '"abc"'}))

    def test_different_tags_do_not_match(self):
        assert not etag_matches(Headers({"If-None-Match": '"xyz"'}), Headers({"ETag": '"abc"'}))

    def test_header_names_are_case_insensitive(self):
        assert etag_matches(Headers({"if-none-match": '"abc"'}), Headers({"etag": '"abc"'}))

    def test_missing_request_validator(self):
        assert not etag_matches(Headers({}), Headers({"ETag": '"abc"'}))

    def test_missing_response_validator(self):
        assert not etag_matches(Headers({"If-None-Match": '"abc"'}), Headers({}))

    def test_wildcard_is_not_interpreted(self):
        assert not etag_matches(Headers({"If-None-Match": "*"}), Headers({"ETag": '"abc"'}))

    def test_tag_lists_are_not_interpreted(self):
        assert not etag_matches(Headers({"If-None-Match": '"xyz", "abc"'}), Headers({"ETag": '"abc"'}))

    def test_weak_and_strong_tags_differ(self):
        assert not etag_matches(Headers({"If-None-Match": 'W/"abc"'}), Headers({"ETag": '"abc"'}))


# =============================================================================
# Date validators
# =============================================================================


class TestNotModifiedSinceLexical:
    @pytest.mark.parametrize(
        "if_modified_since, last_modified, expected",
        [
            ("2024-01-01", "2024-01-01", True),
            ("2024-01-02", "2024-01-01", True),
            ("2023-12-31", "2024-01-01", False),
            ("Mon, 01 Jan 2024 00:00:00 GMT", "Mon, 01 Jan 2024 00:00:00 GMT", True),
        ],
    )
    def test_string_comparison(self, if_modified_since: str, last_modified: str, expected: bool):
        request_headers = Headers({"If-Modified-Since": if_modified_since})
        response_headers = Headers({"Last-Modified": last_modified})
        assert not_modified_since(request_headers, response_headers) is expected

    def test_comparison_is_not_date_aware(self):
        # Tuesday sorts after Monday even though the date is earlier
        request_headers = Headers({"If-Modified-Since": "Tue, 02 Jan 2024 00:00:00 GMT"})
        response_headers = Headers({"Last-Modified": "Mon, 08 Jan 2024 00:00:00 GMT"})
        assert not_modified_since(request_headers, response_headers)

    def test_missing_request_validator(self):
        assert not not_modified_since(Headers({}), Headers({"Last-Modified": "2024-01-01"}))

    def test_missing_response_validator(self):
        assert not not_modified_since(Headers({"If-Modified-Since": "2024-01-01"}), Headers({}))


class TestNotModifiedSinceParsed:
    def test_same_instant(self, parsed_options: ConditionalOptions):
        request_headers = Headers({"If-Modified-Since": "Mon, 01 Jan 2024 00:00:00 GMT"})
        response_headers = Headers({"Last-Modified": "Mon, 01 Jan 2024 00:00:00 GMT"})
        assert not_modified_since(request_headers, response_headers, parsed_options)

    def test_weekday_does_not_affect_order(self, parsed_options: ConditionalOptions):
        request_headers = Headers({"If-Modified-Since": "Tue, 02 Jan 2024 00:00:00 GMT"})
        response_headers = Headers({"Last-Modified": "Mon, 08 Jan 2024 00:00:00 GMT"})
        assert not not_modified_since(request_headers, response_headers, parsed_options)

    def test_newer_client_date(self, parsed_options: ConditionalOptions):
        request_headers = Headers({"If-Modified-Since": generate_http_date(1704153600)})
        response_headers = Headers({"Last-Modified": generate_http_date(1704067200)})
        assert not_modified_since(request_headers, response_headers, parsed_options)

    def test_timezone_offsets_are_applied(self, parsed_options: ConditionalOptions):
        request_headers = Headers({"If-Modified-Since": "Mon, 01 Jan 2024 01:00:00 +0100"})
        response_headers = Headers({"Last-Modified": "Mon, 01 Jan 2024 00:00:00 GMT"})
        assert not_modified_since(request_headers, response_headers, parsed_options)

    def test_unparsable_date_is_not_fresh(self, parsed_options: ConditionalOptions):
        request_headers = Headers({"If-Modified-Since": "yesterday"})
        response_headers = Headers({"Last-Modified": "Mon, 01 Jan 2024 00:00:00 GMT"})
        assert not not_modified_since(request_headers, response_headers, parsed_options)


def test_parse_date():
    assert parse_date("Mon, 01 Jan 2024 00:00:00 GMT") == 1704067200
    assert parse_date("not a date") is None


# =============================================================================
# Freshness and eligibility
# =============================================================================


def test_is_fresh_accepts_either_validator():
    response_headers = Headers({"ETag": '"abc"', "Last-Modified": "2024-01-01"})

    assert is_fresh(Headers({"If-None-Match": '"abc"'}), response_headers)
    assert is_fresh(Headers({"If-Modified-Since": "2024-01-01"}), response_headers)
    assert is_fresh(Headers({"If-None-Match": '"xyz"', "If-Modified-Since": "2024-01-02"}), response_headers)
    assert not is_fresh(Headers({"If-None-Match": '"xyz"', "If-Modified-Since": "2023-01-01"}), response_headers)
    assert not is_fresh(Headers({}), response_headers)


@pytest.mark.parametrize(
    "method, status_code, expected",
    [
        ("GET", 200, True),
        ("HEAD", 200, True),
        ("POST", 200, False),
        ("get", 200, False),
        ("GET", 404, False),
        ("GET", 304, False),
    ],
)
def test_is_eligible(method: str, status_code: int, expected: bool):
    assert is_eligible(method, status_code) is expected


def test_should_respond_not_modified():
    request = create_request(headers={"If-None-Match": '"abc"'})

    assert should_respond_not_modified(request, create_response(headers={"ETag": '"abc"'}))
    assert not should_respond_not_modified(request, create_response(404, headers={"ETag": '"abc"'}))
    assert not should_respond_not_modified(
        create_request("DELETE", headers={"If-None-Match": '"abc"'}),
        create_response(headers={"ETag": '"abc"'}),
    )


# =============================================================================
# Header trimming
# =============================================================================


def test_not_modified_headers_strip_body_headers():
    headers = Headers(
        [
            ("ETag", '"abc"'),
            ("content-type", "text/html"),
            ("Set-Cookie", "a=1"),
            ("Content-Length", "10"),
            ("Set-Cookie", "b=2"),
        ]
    )

    trimmed = not_modified_headers(headers)

    assert list(trimmed.multi_items()) == [("ETag", '"abc"'), ("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")]
    # The original map is left alone
    assert "Content-Type" in headers


def test_not_modified_headers_custom_list():
    headers = Headers({"ETag": '"abc"', "Content-Type": "text/html", "Content-Length": "10"})

    trimmed = not_modified_headers(headers, ConditionalOptions(stripped_headers=["Content-Length"]))

    assert list(trimmed) == ["ETag", "Content-Type"]


# =============================================================================
# Options
# =============================================================================


def test_default_options():
    options = ConditionalOptions()

    assert options.eligible_methods == ["GET", "HEAD"]
    assert options.eligible_status == 200
    assert options.date_comparison == "lexical"
    assert options.stripped_headers == ["Content-Type", "Content-Length"]


def test_unknown_date_comparison():
    with pytest.raises(ValueError, match="Unknown date comparison"):
        ConditionalOptions(date_comparison="fuzzy")  # type: ignore[arg-type]
