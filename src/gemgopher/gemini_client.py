"""
Gemini client with status handling and redirect following.

One request is one TLS connection: the client sends the absolute URL and a
CRLF, reads a '<status> <meta>' header and, for 2x only, the body until the
server closes the stream.

Status categories:
- 1x: input required (11 asks for sensitive input)
- 2x: success, meta is the MIME type
- 3x: redirect, meta is the new URL
- 4x/5x: temporary/permanent failure
- 6x: client certificate required
"""

import asyncio
import re
import ssl
from typing import Optional

from .config import NetworkConfig
from .enums import GeminiStatusCategory, Scheme
from .exceptions import (
    ConnectionFailedError,
    FetchTimeoutError,
    MalformedResponseError,
    RedirectLoopError,
    TlsHandshakeError,
)
from .fetch_logger import FetchLogger
from .models import GeminiResponse, RequestUrl
from .response_reader import MAX_META_LENGTH, read_header_line, read_response
from .transport import Connector
from .url_parser import UrlParser, resolve_url


HEADER_PATTERN = re.compile(r'^([1-6][0-9])(?: (.*))?$', re.DOTALL)

SENSITIVE_INPUT_STATUS = 11


def parse_response_header(line: str) -> tuple[int, str]:
    """
    Parse a Gemini response header line.

    Args:
        line: Header without its CRLF

    Returns:
        Tuple of (status, meta)

    Raises:
        MalformedResponseError: If the status is not two digits in 10-69 or
            the meta is too long
    """
    match = HEADER_PATTERN.match(line)
    if not match:
        raise MalformedResponseError(f"invalid header line {line[:64]!r}")

    meta = match.group(2) or ""
    if len(meta.encode("utf-8")) > MAX_META_LENGTH:
        raise MalformedResponseError(f"meta is longer than {MAX_META_LENGTH} bytes")

    return int(match.group(1)), meta.strip()


def classify_status(status: int) -> GeminiStatusCategory:
    """Map a status code to its category by the first digit."""
    category = GeminiStatusCategory.from_status(status)
    if category is None or not 10 <= status <= 69:
        raise MalformedResponseError(f"status {status} is outside 10-69")
    return category


def is_sensitive_input(status: int) -> bool:
    return status == SENSITIVE_INPUT_STATUS


class GeminiClient:
    """
    Async Gemini client.

    Follows same-scheme redirects up to a hop limit and returns every other
    outcome, failures included, as a GeminiResponse for the caller to act on.
    """

    COMPONENT = "gemini"

    def __init__(
        self,
        connector: Connector,
        config: Optional[NetworkConfig] = None,
        logger: Optional[FetchLogger] = None,
        url_parser: Optional[UrlParser] = None,
    ) -> None:
        """
        Initialize the Gemini client.

        Args:
            connector: Opens TLS connections and enforces TOFU trust
            config: Network limits (timeout, size ceiling, redirects)
            logger: Optional logger for request and redirect events
            url_parser: Validates redirect targets
        """
        self._connector = connector
        self._config = config or NetworkConfig()
        self._logger = logger
        self._url_parser = url_parser or UrlParser(
            self._config.max_url_length,
            self._config.allow_private_hosts,
        )

    async def request(self, url: RequestUrl) -> GeminiResponse:
        """
        Perform a single exchange without following redirects.

        Raises:
            FetchTimeoutError: If connect, handshake and read take longer
                than the configured timeout
            FetchError: Any transport, trust, size or header failure
        """
        timeout = self._config.timeout_seconds
        try:
            return await asyncio.wait_for(self._exchange(url), timeout)
        except asyncio.TimeoutError:
            raise FetchTimeoutError(url.host, url.port, timeout)
        except ssl.SSLError as e:
            raise TlsHandshakeError(url.host, url.port, str(e))
        except OSError as e:
            raise ConnectionFailedError(url.host, url.port, e.strerror or str(e))

    async def fetch(self, url: RequestUrl) -> GeminiResponse:
        """
        Fetch a URL, following Gemini redirects.

        A redirect to another scheme is returned with the absolute target in
        meta and is not followed.

        Raises:
            RedirectLoopError: If the server keeps redirecting after
                max_redirects hops. No further request is made.
        """
        max_redirects = self._config.max_redirects
        current = url
        redirects: list[str] = []

        while True:
            response = await self.request(current)
            if response.category is not GeminiStatusCategory.REDIRECT:
                response.redirects = redirects
                return response

            if not response.meta:
                raise MalformedResponseError("redirect without a target URL")

            target = resolve_url(current.to_url(), response.meta)

            if UrlParser.scheme_of(target) != Scheme.GEMINI.value:
                response.meta = target
                response.redirects = redirects
                return response

            if len(redirects) >= max_redirects:
                self._log_warn("Redirect limit reached", {
                    "url": url.to_url(),
                    "max_redirects": max_redirects,
                })
                raise RedirectLoopError(max_redirects, redirects + [target])

            self._log_debug("Following redirect", {
                "from": current.to_url(),
                "to": target,
                "status": response.status,
            })
            redirects.append(target)
            current = self._url_parser.parse(target, Scheme.GEMINI)

    async def _exchange(self, url: RequestUrl) -> GeminiResponse:
        connection = await self._connector.open(url)
        try:
            await connection.send(url.to_url())

            header = await read_header_line(connection.reader)
            status, meta = parse_response_header(header)
            category = classify_status(status)

            body = None
            if category is GeminiStatusCategory.SUCCESS:
                raw = await read_response(
                    connection.reader, self._config.max_response_size
                )
                body = raw.data

            self._log_debug("Response received", {
                "url": url.to_url(),
                "status": status,
                "meta": meta,
                "body_length": len(body) if body is not None else 0,
            })
            return GeminiResponse(status=status, meta=meta, url=url.to_url(), body=body)
        finally:
            await connection.close()

    def _log_debug(self, message: str, data: dict) -> None:
        if self._logger is not None:
            self._logger.debug(self.COMPONENT, message, data)

    def _log_warn(self, message: str, data: dict) -> None:
        if self._logger is not None:
            self._logger.warn(self.COMPONENT, message, data)
