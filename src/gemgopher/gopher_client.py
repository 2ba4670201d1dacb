"""
Gopher client.

Sends a selector (optionally with search terms) over plain TCP and
interprets the reply according to the item type named in the URL.
"""

import asyncio
from typing import Optional

from .config import NetworkConfig
from .enums import GopherContentKind, GopherItemType
from .exceptions import (
    BinaryContentError,
    ConnectionFailedError,
    FetchTimeoutError,
    InvalidUrlError,
)
from .fetch_logger import FetchLogger
from .gopher_menu import parse_menu
from .i18n import get_message
from .models import GopherResponse, RawResponse, RequestUrl
from .response_reader import decode_text, looks_binary, read_response, strip_terminator
from .transport import Connector


MENU_TYPES = frozenset({GopherItemType.DIRECTORY, GopherItemType.SEARCH})

UNFETCHABLE_TYPES = frozenset({
    GopherItemType.TELNET,
    GopherItemType.TELNET_3270,
    GopherItemType.CSO_PHONEBOOK,
    GopherItemType.INFO,
})


def build_request_line(selector: str, query: Optional[str] = None) -> str:
    """Selector, plus TAB and search terms for type 7 (without CRLF)."""
    if query is None:
        return selector
    return f"{selector}\t{query}"


def item_type_of(url: RequestUrl) -> GopherItemType:
    return GopherItemType.from_char(url.item_type or GopherItemType.DIRECTORY.value)


class GopherClient:
    """Async Gopher client."""

    COMPONENT = "gopher"

    def __init__(
        self,
        connector: Connector,
        config: Optional[NetworkConfig] = None,
        logger: Optional[FetchLogger] = None,
    ) -> None:
        self._connector = connector
        self._config = config or NetworkConfig()
        self._logger = logger

    async def request(self, url: RequestUrl, query: Optional[str] = None) -> RawResponse:
        """
        Send one selector and read the raw reply.

        Raises:
            FetchTimeoutError: If the whole exchange exceeds the timeout
            FetchError: Any transport or size failure
        """
        timeout = self._config.timeout_seconds
        try:
            return await asyncio.wait_for(self._exchange(url, query), timeout)
        except asyncio.TimeoutError:
            raise FetchTimeoutError(url.host, url.port, timeout)
        except OSError as e:
            raise ConnectionFailedError(url.host, url.port, e.strerror or str(e))

    async def fetch(self, url: RequestUrl) -> GopherResponse:
        """
        Fetch a gopher item and decode it by item type.

        Directories and searches are parsed as menus, 'h' items are returned
        as HTML source, everything else as plain text. A search URL sends its
        query; callers handle a search without one before calling this.

        Raises:
            BinaryContentError: For binary item types (before any I/O) and for
                payloads that look binary
            InvalidUrlError: For item types that cannot be fetched at all
        """
        item_type = item_type_of(url)

        if item_type.is_binary:
            raise BinaryContentError(url.to_url(), get_message(f"gopher.type.{item_type.value}"))

        if item_type in UNFETCHABLE_TYPES:
            raise InvalidUrlError(
                url.to_url(),
                f"item type '{url.item_type}' cannot be fetched",
            )

        query = url.query if item_type is GopherItemType.SEARCH else None
        raw = await self.request(url, query)

        if looks_binary(raw.data):
            raise BinaryContentError(url.to_url(), "application/octet-stream")

        text = decode_text(raw.data)

        if item_type in MENU_TYPES:
            return GopherResponse(
                kind=GopherContentKind.MENU,
                url=url.to_url(),
                text=text,
                menu=parse_menu(text, self._logger),
            )

        kind = GopherContentKind.HTML if item_type is GopherItemType.HTML else GopherContentKind.TEXT
        return GopherResponse(kind=kind, url=url.to_url(), text=strip_terminator(text))

    async def _exchange(self, url: RequestUrl, query: Optional[str]) -> RawResponse:
        connection = await self._connector.open(url)
        try:
            await connection.send(build_request_line(url.path, query))
            raw = await read_response(
                connection.reader,
                self._config.max_response_size,
                terminator=True,
            )
        finally:
            await connection.close()

        if self._logger is not None:
            self._logger.debug(self.COMPONENT, "Response received", {
                "host": url.host,
                "port": url.port,
                "selector": url.path,
                "length": raw.length,
            })
        return raw
