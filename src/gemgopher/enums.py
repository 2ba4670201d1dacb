"""
Enumeration types for the gemgopher client.

These enums provide type-safe constants for schemes, item types, status
categories, trust decisions and error codes throughout the system.
"""

from enum import Enum
from typing import Optional


class Scheme(Enum):
    """URL schemes handled by the client."""

    GEMINI = "gemini"
    GOPHER = "gopher"

    @property
    def default_port(self) -> int:
        return 1965 if self is Scheme.GEMINI else 70


class GopherItemType(Enum):
    """
    Gopher item types (RFC 1436 plus common extensions).

    Unrecognized type characters map to UNKNOWN; the raw character is kept
    on the GopherItem itself.
    """

    TEXT_FILE = "0"
    DIRECTORY = "1"
    CSO_PHONEBOOK = "2"
    ERROR = "3"
    BINHEX = "4"
    DOS_BINARY = "5"
    UUENCODED = "6"
    SEARCH = "7"
    TELNET = "8"
    BINARY = "9"
    GIF = "g"
    IMAGE = "I"
    HTML = "h"
    INFO = "i"
    TELNET_3270 = "T"
    UNKNOWN = "?"

    @classmethod
    def from_char(cls, char: str) -> "GopherItemType":
        """Map a type character to an item type, UNKNOWN if unrecognized."""
        if char == cls.UNKNOWN.value:
            return cls.UNKNOWN
        try:
            return cls(char)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_binary(self) -> bool:
        return self in _BINARY_TYPES

    @property
    def is_navigable(self) -> bool:
        """True for types rendered as clickable links."""
        return self in _LINK_TYPES


_BINARY_TYPES = frozenset({
    GopherItemType.BINHEX,
    GopherItemType.DOS_BINARY,
    GopherItemType.UUENCODED,
    GopherItemType.BINARY,
    GopherItemType.GIF,
    GopherItemType.IMAGE,
})

_LINK_TYPES = frozenset({
    GopherItemType.TEXT_FILE,
    GopherItemType.DIRECTORY,
    GopherItemType.SEARCH,
    GopherItemType.HTML,
    GopherItemType.GIF,
    GopherItemType.IMAGE,
})


class GopherContentKind(Enum):
    """What a gopher response body was interpreted as."""

    MENU = "menu"
    TEXT = "text"
    HTML = "html"


class GeminiStatusCategory(Enum):
    """Outcome category derived from the first digit of a Gemini status."""

    INPUT = 1
    SUCCESS = 2
    REDIRECT = 3
    TEMPORARY_FAILURE = 4
    PERMANENT_FAILURE = 5
    CERT_REQUIRED = 6

    @classmethod
    def from_status(cls, status: int) -> Optional["GeminiStatusCategory"]:
        try:
            return cls(status // 10)
        except ValueError:
            return None


class TrustDecision(Enum):
    """Result of checking a certificate fingerprint against the trust store."""

    FIRST_USE = "first_use"
    MATCH = "match"
    MISMATCH = "mismatch"


class FetchOutcome(Enum):
    """Terminal outcome of an orchestrated fetch."""

    DOCUMENT = "document"
    INPUT_REQUIRED = "input_required"
    CROSS_PROTOCOL_REDIRECT = "cross_protocol_redirect"
    ERROR = "error"


class ErrorCode(Enum):
    """Error codes for fetch failures."""

    INVALID_URL = "invalid_url"
    DNS_FAILURE = "dns_failure"
    CONNECTION_FAILED = "connection_failed"
    TLS_ERROR = "tls_error"
    TIMEOUT = "timeout"
    CERTIFICATE_MISMATCH = "certificate_mismatch"
    OVERSIZED_RESPONSE = "oversized_response"
    REDIRECT_LOOP = "redirect_loop"
    PROTOCOL_STATUS = "protocol_status"
    MALFORMED_RESPONSE = "malformed_response"
    MALFORMED_MENU = "malformed_menu"
    BINARY_CONTENT = "binary_content"
    PERSISTENCE_ERROR = "persistence_error"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}
