"""
Property-based tests for the response reader.

Uses Hypothesis for property-based testing to verify the byte ceiling, gopher
terminator detection, header line limits and the binary heuristic.
"""

import asyncio

import pytest
from hypothesis import given, settings, assume
from hypothesis import strategies as st

from gemgopher.exceptions import MalformedResponseError, OversizedResponseError
from gemgopher.response_reader import (
    MAX_HEADER_LENGTH,
    READ_CHUNK_SIZE,
    decode_text,
    has_gopher_terminator,
    looks_binary,
    read_header_line,
    read_response,
    strip_terminator,
)

from fake_network import make_reader


def read_all(data: bytes, max_size: int, terminator: bool = False):
    async def run():
        return await read_response(make_reader(data), max_size, terminator=terminator)

    return asyncio.run(run())


def read_header(data: bytes) -> str:
    async def run():
        return await read_header_line(make_reader(data))

    return asyncio.run(run())


class TestSizeCeilingProperty:
    """
    Property 10: Responses never exceed the byte ceiling.

    *For any* payload, read_response SHALL return it whole when it fits and
    raise OversizedResponseError when it does not.
    """

    @given(data=st.binary(min_size=0, max_size=4096))
    @settings(max_examples=100)
    def test_payload_within_limit_is_returned(self, data: bytes) -> None:
        response = read_all(data, max_size=4096)

        assert response.data == data
        assert response.length == len(data)

    @given(
        data=st.binary(min_size=2, max_size=4096),
        cut=st.integers(min_value=1, max_value=4095),
    )
    @settings(max_examples=100)
    def test_payload_over_limit_raises(self, data: bytes, cut: int) -> None:
        assume(cut < len(data))

        with pytest.raises(OversizedResponseError) as exc_info:
            read_all(data, max_size=cut)

        assert exc_info.value.details["limit"] == cut

    def test_large_payload_over_several_chunks(self) -> None:
        with pytest.raises(OversizedResponseError):
            read_all(b"x" * 50_000, max_size=40_000)


class TestGopherTerminatorProperty:
    """
    Property 11: Gopher reads stop at the lone-dot line.

    *For any* body followed by the terminator, the reader SHALL stop there
    even if the server keeps sending.
    """

    @given(body=st.text(
        alphabet=st.characters(whitelist_categories=("L", "N"), max_codepoint=0x7f),
        min_size=1,
        max_size=200,
    ))
    @settings(max_examples=100)
    def test_stops_at_terminator(self, body: str) -> None:
        data = f"{body}\r\n.\r\n".encode("ascii")

        async def run():
            # No EOF: the read only finishes if the terminator ends it
            reader = asyncio.StreamReader()
            reader.feed_data(data)
            return await asyncio.wait_for(
                read_response(reader, 4096, terminator=True), timeout=5
            )

        response = asyncio.run(run())

        assert response.data == data

    def test_terminator_split_across_reads(self) -> None:
        # The last read returns only ".\r\n"; the preceding CRLF ends the
        # previous chunk
        data = b"x" * (READ_CHUNK_SIZE * 2 - 2) + b"\r\n.\r\n"

        async def run():
            reader = asyncio.StreamReader()
            reader.feed_data(data)
            return await asyncio.wait_for(
                read_response(reader, len(data), terminator=True), timeout=5
            )

        response = asyncio.run(run())

        assert response.data == data

    @pytest.mark.parametrize("buffer,expected", [
        (b"hello\r\n.\r\n", True),
        (b"hello\n.\n", True),
        (b".\r\n", True),
        (b".\n", True),
        (b".", True),
        (b"hello.\r\n", False),
        (b"hello\r\n..\r\n", False),
        (b"hello", False),
        (b"", False),
    ])
    def test_terminator_detection(self, buffer: bytes, expected: bool) -> None:
        assert has_gopher_terminator(buffer) is expected

    def test_eof_without_terminator_is_accepted(self) -> None:
        response = read_all(b"no terminator here\r\n", max_size=1024, terminator=True)

        assert response.data == b"no terminator here\r\n"

    def test_terminator_ignored_for_gemini_bodies(self) -> None:
        response = read_all(b"line\r\n.\r\nmore\r\n", max_size=1024)

        assert response.data == b"line\r\n.\r\nmore\r\n"


class TestHeaderLineProperty:
    """
    Property 12: Header lines are bounded and must be terminated.
    """

    @given(meta=st.text(
        alphabet=st.characters(min_codepoint=0x20, max_codepoint=0x7e),
        min_size=0,
        max_size=1024,
    ))
    @settings(max_examples=100)
    def test_meta_up_to_1024_bytes_is_accepted(self, meta: str) -> None:
        line = read_header(f"20 {meta}\r\nbody".encode("ascii"))

        assert line == f"20 {meta}"

    def test_bare_lf_is_tolerated(self) -> None:
        assert read_header(b"20 text/gemini\nbody") == "20 text/gemini"

    def test_overlong_header_is_rejected(self) -> None:
        with pytest.raises(MalformedResponseError):
            read_header(b"20 " + b"a" * MAX_HEADER_LENGTH + b"\r\n")

    def test_unterminated_header_is_rejected(self) -> None:
        with pytest.raises(MalformedResponseError):
            read_header(b"20 text/gemini")

    def test_empty_response_is_rejected(self) -> None:
        with pytest.raises(MalformedResponseError):
            read_header(b"")

    def test_non_utf8_header_is_rejected(self) -> None:
        with pytest.raises(MalformedResponseError):
            read_header(b"20 \xff\xfe\r\n")


class TestBinaryHeuristicProperty:
    """
    Property 13: Text is recognized as text.

    *For any* UTF-8 text without NUL, looks_binary SHALL return False; any
    sample containing a NUL byte SHALL be binary.
    """

    @given(text=st.text(
        alphabet=st.characters(blacklist_characters="\x00", blacklist_categories=("Cs",)),
        max_size=500,
    ))
    @settings(max_examples=100)
    def test_utf8_text_is_not_binary(self, text: str) -> None:
        assert not looks_binary(text.encode("utf-8"))

    @given(
        prefix=st.binary(max_size=200),
        suffix=st.binary(max_size=200),
    )
    @settings(max_examples=100)
    def test_nul_byte_is_binary(self, prefix: bytes, suffix: bytes) -> None:
        assert looks_binary(prefix + b"\x00" + suffix)

    def test_control_heavy_payload_is_binary(self) -> None:
        assert looks_binary(b"\x01\x02\x03\x04\xff" * 50)

    def test_latin1_text_is_not_binary(self) -> None:
        assert not looks_binary("Blåbærsyltetøy på brødskiva\n".encode("latin-1"))

    def test_empty_payload_is_text(self) -> None:
        assert not looks_binary(b"")


class TestDecodeTextProperty:
    """Decoding falls back to Latin-1 instead of failing."""

    @given(data=st.binary(max_size=500))
    @settings(max_examples=100)
    def test_decode_never_fails(self, data: bytes) -> None:
        text = decode_text(data)

        assert isinstance(text, str)

    def test_declared_charset_is_used(self) -> None:
        assert decode_text("æøå".encode("iso-8859-1"), "iso-8859-1") == "æøå"

    def test_unknown_charset_falls_back(self) -> None:
        assert decode_text(b"caf\xe9", "x-no-such-charset") == "caf\xe9"


class TestStripTerminatorProperty:

    @pytest.mark.parametrize("text,expected", [
        ("hello\r\n.\r\n", "hello\r\n"),
        ("hello\n.\n", "hello\n"),
        ("hello\n.\n\n", "hello\n"),
        ("hello\n", "hello\n"),
        ("a\n..\n", "a\n..\n"),
        (".\r\n", ""),
    ])
    def test_strip_terminator(self, text: str, expected: str) -> None:
        assert strip_terminator(text) == expected
