"""
Response Reader module.

Reads protocol responses from an asyncio stream under a hard byte ceiling,
detects the gopher end-of-response marker, reads the Gemini header line and
decides whether a payload is text at all.
"""

import asyncio

from .exceptions import MalformedResponseError, OversizedResponseError
from .models import RawResponse


READ_CHUNK_SIZE = 8192

# Gemini meta is at most 1024 bytes, plus two status digits, a space and CRLF
MAX_META_LENGTH = 1024
MAX_HEADER_LENGTH = MAX_META_LENGTH + 5

# Bytes inspected by the binary heuristic
BINARY_SAMPLE_SIZE = 1024
BINARY_THRESHOLD = 0.30

GOPHER_TERMINATORS = (b"\r\n.\r\n", b"\n.\n")
GOPHER_BARE_TERMINATORS = (b".\r\n", b".\n", b".")

# Longest marker; only this many trailing bytes need checking
TERMINATOR_TAIL_LENGTH = max(len(marker) for marker in GOPHER_TERMINATORS)

_TEXT_CONTROL_BYTES = frozenset(b"\t\n\r\f\b\x1b")


def has_gopher_terminator(buffer: bytes) -> bool:
    """True if the buffer ends with a lone '.' line."""
    if buffer in GOPHER_BARE_TERMINATORS:
        return True
    return any(buffer.endswith(marker) for marker in GOPHER_TERMINATORS)


async def read_response(
    reader: asyncio.StreamReader,
    max_size: int,
    terminator: bool = False,
) -> RawResponse:
    """
    Read a response body until EOF or the gopher terminator.

    Args:
        reader: Stream positioned at the start of the body
        max_size: Byte ceiling for the body
        terminator: Stop early at a lone '.' line (gopher)

    Returns:
        RawResponse with everything read, terminator included

    Raises:
        OversizedResponseError: If the body exceeds max_size. Nothing read so
            far is returned.
    """
    buffer = bytearray()

    while True:
        chunk = await reader.read(READ_CHUNK_SIZE)
        if not chunk:
            break

        buffer.extend(chunk)
        if len(buffer) > max_size:
            buffer.clear()
            raise OversizedResponseError(max_size)

        if terminator and has_gopher_terminator(bytes(buffer[-TERMINATOR_TAIL_LENGTH:])):
            break

    return RawResponse(data=bytes(buffer))


async def read_header_line(
    reader: asyncio.StreamReader,
    limit: int = MAX_HEADER_LENGTH,
) -> str:
    """
    Read one Gemini response header line.

    A bare LF is tolerated in place of CRLF.

    Returns:
        The header without its line terminator

    Raises:
        MalformedResponseError: If the line is too long, unterminated or
            not UTF-8
    """
    try:
        line = await reader.readuntil(b"\n")
    except asyncio.IncompleteReadError as e:
        if not e.partial:
            raise MalformedResponseError("server closed the connection without a header")
        raise MalformedResponseError("header line is not terminated by CRLF")
    except asyncio.LimitOverrunError:
        raise MalformedResponseError(f"header line is longer than {limit} bytes")

    if len(line) > limit:
        raise MalformedResponseError(f"header line is longer than {limit} bytes")

    try:
        text = line.decode("utf-8")
    except UnicodeDecodeError:
        raise MalformedResponseError("header line is not valid UTF-8")

    return text.rstrip("\n").rstrip("\r")


def looks_binary(data: bytes) -> bool:
    """
    Guess whether a payload is binary rather than text.

    Valid UTF-8 without NUL bytes is always text. Otherwise a payload is
    binary when it contains a NUL byte or when more than 30% of the first
    1024 bytes are control characters other than common whitespace.
    """
    if not data:
        return False

    sample = data[:BINARY_SAMPLE_SIZE]
    if b"\x00" in sample:
        return True

    try:
        data.decode("utf-8")
        return False
    except UnicodeDecodeError:
        pass

    non_text = sum(
        1 for byte in sample
        if (byte < 0x20 and byte not in _TEXT_CONTROL_BYTES) or byte == 0x7f
    )
    return non_text / len(sample) > BINARY_THRESHOLD


def decode_text(data: bytes, charset: str = "utf-8") -> str:
    """
    Decode a text payload.

    Unknown charsets and undecodable bytes fall back to Latin-1, which
    never fails.
    """
    try:
        return data.decode(charset)
    except (LookupError, UnicodeDecodeError):
        return data.decode("latin-1")


def strip_terminator(text: str) -> str:
    """Remove a trailing lone '.' line from a gopher text response."""
    lines = text.splitlines(keepends=True)
    while lines and not lines[-1].strip():
        lines.pop()
    if lines and lines[-1].rstrip("\r\n") == ".":
        lines.pop()
    return "".join(lines)
