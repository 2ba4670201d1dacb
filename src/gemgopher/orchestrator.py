"""
Fetch Orchestrator for the gemgopher client.

This module ties the components together into the operations a front end
calls: fetch a URL of either protocol, answer a Gemini input prompt, and run
a Gopher search. It integrates:
- URL validation and the private-host guard
- TOFU trust via the shared TrustStore
- The Gemini and Gopher clients
- Conversion of gemtext, gopher menus and plain text to Markdown

Every operation returns a FetchResult. Failures are logged and returned in
the result rather than raised.
"""

import dataclasses
from typing import Optional
from urllib.parse import urlsplit

from .config import ClientConfig
from .enums import FetchOutcome, GeminiStatusCategory, GopherContentKind, GopherItemType, LogLevel, Scheme
from .exceptions import (
    BinaryContentError,
    CertificateMismatchError,
    FetchError,
    InvalidUrlError,
    ProtocolStatusError,
)
from .fetch_logger import FetchLogger
from .gemini_client import GeminiClient, is_sensitive_input
from .gemtext import gemtext_to_markdown
from .gopher_client import GopherClient, item_type_of
from .gophermap import menu_to_markdown, text_to_markdown
from .i18n import get_message
from .models import (
    ConvertedDocument,
    FetchResult,
    GeminiResponse,
    GopherResponse,
    InputRequest,
    RequestUrl,
)
from .response_reader import decode_text
from .transport import Connector
from .trust_store import TrustStore
from .url_parser import UrlParser, resolve_url, with_query


GEMTEXT_MIME_TYPE = "text/gemini"


class FetchOrchestrator:
    """
    Main entry point for fetching documents.

    Owns one Connector, so all fetches through an orchestrator share the
    same trust store and its per-host locks.
    """

    COMPONENT = "FetchOrchestrator"

    async def __aenter__(self) -> "FetchOrchestrator":
        """Async context manager entry."""
        self._trust_store.load()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        pass

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        trust_store: Optional[TrustStore] = None,
        logger: Optional[FetchLogger] = None,
        connector: Optional[Connector] = None,
    ) -> None:
        """
        Initialize the fetch orchestrator.

        Args:
            config: Client configuration
            trust_store: Optional trust store, created from config if omitted
            logger: Optional logger
            connector: Optional connector, mainly for substituting the network
        """
        self._config = config or ClientConfig()
        self._logger = logger
        network = self._config.network

        self._trust_store = trust_store or TrustStore(
            self._config.trust.known_hosts_path, logger
        )
        self._url_parser = UrlParser(network.max_url_length, network.allow_private_hosts)
        self._connector = connector or Connector(
            self._trust_store,
            allow_private_hosts=network.allow_private_hosts,
            logger=logger,
        )
        self._gemini = GeminiClient(self._connector, network, logger, self._url_parser)
        self._gopher = GopherClient(self._connector, network, logger)

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a gemini:// or gopher:// URL.

        Args:
            url: Absolute URL

        Returns:
            FetchResult; unsupported schemes give an INVALID_URL error
        """
        scheme = UrlParser.scheme_of(url or "")
        if scheme == Scheme.GEMINI.value:
            return await self.fetch_gemini(url)
        if scheme == Scheme.GOPHER.value:
            return await self.fetch_gopher(url)
        return self._error_result(
            url, InvalidUrlError(url or "", f"unsupported scheme '{scheme}'")
        )

    async def fetch_gemini(self, url: str) -> FetchResult:
        """
        Fetch a Gemini URL, following redirects.

        Returns:
            DOCUMENT for 2x text, INPUT_REQUIRED for 1x,
            CROSS_PROTOCOL_REDIRECT for a redirect leaving gemini, ERROR for
            everything else
        """
        try:
            request = self._url_parser.parse(url, Scheme.GEMINI)
            self._log_info("Fetching", {"url": request.to_url()})
            response = await self._gemini.fetch(request)
            return self._gemini_result(response)
        except FetchError as e:
            return self._error_result(url, e)

    async def submit_input(self, original_url: str, input_text: str) -> FetchResult:
        """
        Answer a Gemini input prompt.

        The query of original_url is replaced by the percent-encoded input
        and the fetch starts over.
        """
        try:
            request = self._url_parser.parse(original_url, Scheme.GEMINI)
        except FetchError as e:
            return self._error_result(original_url, e)
        return await self.fetch_gemini(with_query(request.to_url(), input_text))

    async def fetch_gopher(self, url: str) -> FetchResult:
        """
        Fetch a Gopher URL.

        A search item without search terms returns INPUT_REQUIRED without
        connecting.
        """
        try:
            request = self._url_parser.parse(url, Scheme.GOPHER)
            if item_type_of(request) is GopherItemType.SEARCH and request.query is None:
                return self._search_prompt(request)

            self._log_info("Fetching", {"url": request.to_url()})
            response = await self._gopher.fetch(request)
            return FetchResult(
                outcome=FetchOutcome.DOCUMENT,
                url=response.url,
                document=self._convert_gopher(request, response),
            )
        except FetchError as e:
            return self._error_result(url, e)

    async def gopher_search(self, url: str, query: str) -> FetchResult:
        """Run a type 7 search for query against the selector in url."""
        try:
            request = self._url_parser.parse(url, Scheme.GOPHER)
        except FetchError as e:
            return self._error_result(url, e)

        search = dataclasses.replace(
            request, item_type=GopherItemType.SEARCH.value, query=query
        )
        return await self.fetch_gopher(search.to_url())

    def resolve_url(self, base_url: str, relative_url: str) -> str:
        """Resolve a link against the URL of the page it appeared on."""
        return resolve_url(base_url, relative_url)

    def _gemini_result(self, response: GeminiResponse) -> FetchResult:
        category = response.category

        if category is GeminiStatusCategory.INPUT:
            return FetchResult(
                outcome=FetchOutcome.INPUT_REQUIRED,
                url=response.url,
                input_request=InputRequest(
                    prompt=response.meta,
                    sensitive=is_sensitive_input(response.status),
                    url=response.url,
                ),
            )

        if category is GeminiStatusCategory.REDIRECT:
            # Only redirects to another scheme come back from the client
            return FetchResult(
                outcome=FetchOutcome.CROSS_PROTOCOL_REDIRECT,
                url=response.url,
                redirect_url=response.meta,
            )

        if category is GeminiStatusCategory.SUCCESS:
            return FetchResult(
                outcome=FetchOutcome.DOCUMENT,
                url=response.url,
                document=self._convert_gemini(response),
            )

        raise ProtocolStatusError(response.status, response.meta, response.url)

    def _convert_gemini(self, response: GeminiResponse) -> ConvertedDocument:
        mime_type = response.mime_type or GEMTEXT_MIME_TYPE
        if not mime_type.startswith("text/"):
            raise BinaryContentError(response.url, mime_type)

        text = decode_text(response.body or b"", response.charset)

        if mime_type == GEMTEXT_MIME_TYPE:
            gemtext = gemtext_to_markdown(text, base_url=response.url)
            markdown, title, source_format = gemtext.markdown, gemtext.title, "gemtext"
        else:
            markdown, title, source_format = text_to_markdown(text), None, "text"

        return ConvertedDocument(
            markdown=markdown,
            title=title or _host_of(response.url),
            url=response.url,
            source_format=source_format,
        )

    def _convert_gopher(self, request: RequestUrl, response: GopherResponse) -> ConvertedDocument:
        if response.kind is GopherContentKind.MENU and response.menu is not None:
            menu = menu_to_markdown(response.menu.items, self._config.language, request)
            markdown, title, source_format = menu.markdown, menu.title, "gophermap"
        elif response.kind is GopherContentKind.HTML:
            markdown, title, source_format = text_to_markdown(response.text, "html"), None, "text"
        else:
            markdown, title, source_format = text_to_markdown(response.text), None, "text"

        return ConvertedDocument(
            markdown=markdown,
            title=title or request.host,
            url=response.url,
            source_format=source_format,
        )

    def _search_prompt(self, request: RequestUrl) -> FetchResult:
        prompt = get_message(
            "gopher.search_prompt",
            self._config.language,
            selector=request.path or "/",
        )
        return FetchResult(
            outcome=FetchOutcome.INPUT_REQUIRED,
            url=request.to_url(),
            input_request=InputRequest(prompt=prompt, sensitive=False, url=request.to_url()),
        )

    def _error_result(self, url: str, error: FetchError) -> FetchResult:
        data = {"code": error.code.value, "details": error.details}
        if isinstance(error, CertificateMismatchError):
            data["security_warning"] = True
        if self._logger:
            self._logger.log_error(
                self.COMPONENT,
                "Fetch failed",
                error=error,
                request_url=url,
                additional_data=data,
            )
        return FetchResult(outcome=FetchOutcome.ERROR, url=url, error=error)

    def _log_info(self, message: str, data: dict) -> None:
        """Log an info message if logger is available."""
        if self._logger:
            self._logger.log(LogLevel.INFO, self.COMPONENT, message, data)

    @property
    def trust_store(self) -> TrustStore:
        """Get the trust store instance."""
        return self._trust_store

    @property
    def url_parser(self) -> UrlParser:
        """Get the URL parser instance."""
        return self._url_parser

    @property
    def config(self) -> ClientConfig:
        """Get the client configuration."""
        return self._config


def _host_of(url: str) -> str:
    return urlsplit(url).hostname or url
