"""
Property-based tests for the Gemini client.

Uses Hypothesis for property-based testing to verify header parsing, status
classification, redirect following and the request line written to the
server. The network is replaced by ScriptedConnector.
"""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gemgopher.config import NetworkConfig
from gemgopher.enums import GeminiStatusCategory, Scheme
from gemgopher.exceptions import (
    ConnectionFailedError,
    MalformedResponseError,
    OversizedResponseError,
    RedirectLoopError,
)
from gemgopher.gemini_client import (
    GeminiClient,
    classify_status,
    is_sensitive_input,
    parse_response_header,
)
from gemgopher.url_parser import UrlParser

from fake_network import ScriptedConnector


def gemini_url(raw: str):
    return UrlParser().parse(raw, Scheme.GEMINI)


def run_fetch(connector, raw_url: str, config=None):
    client = GeminiClient(connector, config)
    return asyncio.run(client.fetch(gemini_url(raw_url)))


# Strategies for generating valid test data

status_strategy = st.integers(min_value=10, max_value=69)

meta_strategy = st.text(
    alphabet=st.characters(min_codepoint=0x21, max_codepoint=0x7e),
    min_size=0,
    max_size=200,
)


class TestHeaderParsingProperty:
    """
    Property 14: Valid headers parse, everything else is malformed.

    *For any* status in 10-69 and meta, '<status> <meta>' SHALL parse to the
    same status and meta.
    """

    @given(status=status_strategy, meta=meta_strategy)
    @settings(max_examples=100)
    def test_valid_header_round_trip(self, status: int, meta: str) -> None:
        assert parse_response_header(f"{status} {meta}") == (status, meta)

    @given(status=status_strategy)
    @settings(max_examples=20)
    def test_status_without_meta(self, status: int) -> None:
        assert parse_response_header(str(status)) == (status, "")

    @pytest.mark.parametrize("line", [
        "",
        "2",
        "200 text/gemini",
        "20text/gemini",
        "70 nope",
        "07 nope",
        "ab text/gemini",
        " 20 text/gemini",
    ])
    def test_invalid_header_is_malformed(self, line: str) -> None:
        with pytest.raises(MalformedResponseError):
            parse_response_header(line)

    def test_overlong_meta_is_malformed(self) -> None:
        with pytest.raises(MalformedResponseError):
            parse_response_header("20 " + "a" * 1025)

    @given(status=status_strategy)
    @settings(max_examples=60)
    def test_category_is_first_digit(self, status: int) -> None:
        assert classify_status(status).value == status // 10

    def test_sensitive_input(self) -> None:
        assert is_sensitive_input(11)
        assert not is_sensitive_input(10)
        assert classify_status(11) is GeminiStatusCategory.INPUT


class TestRequestLineProperty:
    """
    Property 15: The request is the absolute URL followed by CRLF.
    """

    @given(path=st.sampled_from(["/", "/docs/", "/a%20b", "/search"]))
    @settings(max_examples=20)
    def test_request_line(self, path: str) -> None:
        connector = ScriptedConnector([b"20 text/gemini\r\n# Hi\r\n"])

        response = run_fetch(connector, f"gemini://example.com{path}")

        assert connector.sent == [f"gemini://example.com{path}\r\n".encode("utf-8")]
        assert response.status == 20
        assert response.body == b"# Hi\r\n"
        assert connector.writers[0].closed

    def test_query_is_sent(self) -> None:
        connector = ScriptedConnector([b"20 text/gemini\r\n"])

        run_fetch(connector, "gemini://example.com/search?hello%20world")

        assert connector.sent == [b"gemini://example.com/search?hello%20world\r\n"]

    def test_non_success_has_no_body(self) -> None:
        connector = ScriptedConnector([b"51 Not found\r\nignored"])

        response = run_fetch(connector, "gemini://example.com/missing")

        assert response.status == 51
        assert response.meta == "Not found"
        assert response.body is None

    def test_oversized_body_raises(self) -> None:
        connector = ScriptedConnector([b"20 text/plain\r\n" + b"x" * 2048])

        with pytest.raises(OversizedResponseError):
            run_fetch(connector, "gemini://example.com/", NetworkConfig(max_response_size=1024))

    def test_connection_error_propagates(self) -> None:
        connector = ScriptedConnector(
            [b""], error=ConnectionFailedError("example.com", 1965, "refused")
        )

        with pytest.raises(ConnectionFailedError):
            run_fetch(connector, "gemini://example.com/")


class TestRedirectProperty:
    """
    Property 16: Redirects are bounded.

    *For any* hop limit N, a server that always redirects SHALL see exactly
    N + 1 requests before RedirectLoopError.
    """

    @given(max_redirects=st.integers(min_value=0, max_value=8))
    @settings(max_examples=20)
    def test_redirect_loop_is_bounded(self, max_redirects: int) -> None:
        connector = ScriptedConnector([b"30 /loop\r\n"])
        config = NetworkConfig(max_redirects=max_redirects)

        with pytest.raises(RedirectLoopError) as exc_info:
            run_fetch(connector, "gemini://example.com/start", config)

        assert len(connector.requests) == max_redirects + 1
        assert exc_info.value.details["max_redirects"] == max_redirects

    def test_default_limit_makes_six_requests(self) -> None:
        connector = ScriptedConnector([b"30 /loop\r\n"])

        with pytest.raises(RedirectLoopError):
            run_fetch(connector, "gemini://example.com/start")

        assert len(connector.requests) == 6

    def test_relative_redirect_is_resolved(self) -> None:
        connector = ScriptedConnector([
            b"31 ../moved/here.gmi\r\n",
            b"20 text/gemini\r\n# Moved\r\n",
        ])

        response = run_fetch(connector, "gemini://example.com/docs/old/page.gmi")

        assert connector.requests[1].path == "/docs/moved/here.gmi"
        assert response.status == 20
        assert response.url == "gemini://example.com/docs/moved/here.gmi"
        assert response.redirects == ["gemini://example.com/docs/moved/here.gmi"]

    def test_cross_scheme_redirect_is_returned(self) -> None:
        connector = ScriptedConnector([b"30 https://example.com/page\r\n"])

        response = run_fetch(connector, "gemini://example.com/")

        assert len(connector.requests) == 1
        assert response.category is GeminiStatusCategory.REDIRECT
        assert response.meta == "https://example.com/page"

    def test_cross_scheme_redirect_at_hop_limit_is_returned(self) -> None:
        connector = ScriptedConnector(
            [b"30 /hop\r\n"] * 5 + [b"31 gopher://example.com/1/\r\n"]
        )

        response = run_fetch(connector, "gemini://example.com/")

        assert len(connector.requests) == 6
        assert response.category is GeminiStatusCategory.REDIRECT
        assert response.meta == "gopher://example.com/1/"
        assert len(response.redirects) == 5

    def test_redirect_without_target_is_malformed(self) -> None:
        connector = ScriptedConnector([b"30\r\n"])

        with pytest.raises(MalformedResponseError):
            run_fetch(connector, "gemini://example.com/")
