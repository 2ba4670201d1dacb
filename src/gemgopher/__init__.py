"""
gemgopher - Gemini and Gopher client with Markdown conversion.

This package fetches documents over the Gemini protocol (TLS with
trust-on-first-use certificate pinning) and the Gopher protocol, and converts
gemtext and gopher menus into Markdown.
"""

__version__ = "0.1.0"
__author__ = "gemgopher contributors"

from gemgopher.exceptions import (
    FetchError,
    InvalidUrlError,
    ConnectError,
    DnsResolutionError,
    ConnectionFailedError,
    TlsHandshakeError,
    FetchTimeoutError,
    CertificateMismatchError,
    OversizedResponseError,
    RedirectLoopError,
    ProtocolStatusError,
    MalformedResponseError,
    MalformedMenuLineError,
    BinaryContentError,
    PersistenceError,
)
from gemgopher.enums import (
    Scheme,
    GopherItemType,
    GopherContentKind,
    GeminiStatusCategory,
    TrustDecision,
    FetchOutcome,
    ErrorCode,
    LogLevel,
)
from gemgopher.config import (
    NetworkConfig,
    TrustConfig,
    LoggingConfig,
    ClientConfig,
)
from gemgopher.models import (
    RequestUrl,
    TrustEntry,
    RawResponse,
    GeminiResponse,
    GopherItem,
    MalformedLine,
    GopherMenu,
    GopherResponse,
    InputRequest,
    ConvertedDocument,
    FetchResult,
)
from gemgopher.url_parser import (
    UrlParser,
    build_gopher_url,
    resolve_url,
    with_query,
)
from gemgopher.trust_store import (
    TrustStore,
)
from gemgopher.transport import (
    Connector,
    Connection,
    create_ssl_context,
    certificate_fingerprint,
)
from gemgopher.response_reader import (
    read_response,
    read_header_line,
    looks_binary,
    decode_text,
)
from gemgopher.gemini_client import (
    GeminiClient,
    parse_response_header,
    classify_status,
)
from gemgopher.gopher_client import (
    GopherClient,
)
from gemgopher.gopher_menu import (
    parse_menu,
    parse_menu_line,
)
from gemgopher.gemtext import (
    gemtext_to_markdown,
    GemtextDocument,
    GemtextLink,
)
from gemgopher.gophermap import (
    menu_to_markdown,
    text_to_markdown,
    GophermapDocument,
)
from gemgopher.fetch_logger import (
    FetchLogger,
    LogEntry,
)
from gemgopher.i18n import (
    get_message,
    get_all_message_keys,
    get_missing_translations,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)
from gemgopher.orchestrator import (
    FetchOrchestrator,
)
from gemgopher.cli import (
    main as cli_main,
    create_parser,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Exceptions
    "FetchError",
    "InvalidUrlError",
    "ConnectError",
    "DnsResolutionError",
    "ConnectionFailedError",
    "TlsHandshakeError",
    "FetchTimeoutError",
    "CertificateMismatchError",
    "OversizedResponseError",
    "RedirectLoopError",
    "ProtocolStatusError",
    "MalformedResponseError",
    "MalformedMenuLineError",
    "BinaryContentError",
    "PersistenceError",
    # Enums
    "Scheme",
    "GopherItemType",
    "GopherContentKind",
    "GeminiStatusCategory",
    "TrustDecision",
    "FetchOutcome",
    "ErrorCode",
    "LogLevel",
    # Configuration
    "NetworkConfig",
    "TrustConfig",
    "LoggingConfig",
    "ClientConfig",
    # Models
    "RequestUrl",
    "TrustEntry",
    "RawResponse",
    "GeminiResponse",
    "GopherItem",
    "MalformedLine",
    "GopherMenu",
    "GopherResponse",
    "InputRequest",
    "ConvertedDocument",
    "FetchResult",
    # URL Parser
    "UrlParser",
    "build_gopher_url",
    "resolve_url",
    "with_query",
    # Trust Store
    "TrustStore",
    # Transport
    "Connector",
    "Connection",
    "create_ssl_context",
    "certificate_fingerprint",
    # Response Reader
    "read_response",
    "read_header_line",
    "looks_binary",
    "decode_text",
    # Gemini
    "GeminiClient",
    "parse_response_header",
    "classify_status",
    # Gopher
    "GopherClient",
    "parse_menu",
    "parse_menu_line",
    # Converters
    "gemtext_to_markdown",
    "GemtextDocument",
    "GemtextLink",
    "menu_to_markdown",
    "text_to_markdown",
    "GophermapDocument",
    # Logger
    "FetchLogger",
    "LogEntry",
    # I18n
    "get_message",
    "get_all_message_keys",
    "get_missing_translations",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    # Orchestrator
    "FetchOrchestrator",
    # CLI
    "cli_main",
    "create_parser",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
]
