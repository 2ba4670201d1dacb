"""
Data models for the gemgopher client.

This module defines the data structures used for request descriptors, trust
entries, protocol responses, menu records and converted documents.
"""

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

from .enums import (
    FetchOutcome,
    GeminiStatusCategory,
    GopherContentKind,
    GopherItemType,
    Scheme,
)
from .exceptions import CertificateMismatchError, FetchError


@dataclass(frozen=True)
class RequestUrl:
    """A validated, scheme-specific request descriptor."""

    scheme: Scheme
    host: str
    port: int
    path: str  # Gemini path or Gopher selector, verbatim
    query: Optional[str] = None  # Gemini query string or Gopher search terms
    item_type: Optional[str] = None  # Gopher type character from the URL path

    @property
    def host_port(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def netloc_host(self) -> str:
        """Host as written in a URL, with IPv6 literals in brackets."""
        return f"[{self.host}]" if ":" in self.host else self.host

    def to_url(self) -> str:
        """Serialize back into an absolute URL."""
        if self.scheme is Scheme.GOPHER:
            url = f"gopher://{self.netloc_host}:{self.port}/{self.item_type or '1'}{self.path}"
            if self.query is not None:
                url += "%09" + quote(self.query, safe="")
            return url

        netloc = self.netloc_host
        if self.port != Scheme.GEMINI.default_port:
            netloc = f"{self.netloc_host}:{self.port}"
        url = f"gemini://{netloc}{self.path or '/'}"
        if self.query is not None:
            url += f"?{self.query}"
        return url


@dataclass
class TrustEntry:
    """A certificate fingerprint trusted on first use for one host and port."""

    host: str
    port: int
    fingerprint: str  # Hex SHA-256 of the leaf certificate (DER)
    first_seen: str
    last_seen: str

    @property
    def key(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class RawResponse:
    """Bytes read from the server, bounded by the response size ceiling."""

    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass
class GeminiResponse:
    """Terminal Gemini response after any redirects were followed."""

    status: int
    meta: str
    url: str
    body: Optional[bytes] = None  # Only present for 2x
    redirects: list[str] = field(default_factory=list)

    @property
    def category(self) -> GeminiStatusCategory:
        return GeminiStatusCategory(self.status // 10)

    @property
    def mime_type(self) -> str:
        """MIME type of a 2x response without parameters, lowercased."""
        return self.meta.split(";", 1)[0].strip().lower()

    @property
    def charset(self) -> str:
        for param in self.meta.split(";")[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"')
        return "utf-8"


@dataclass
class GopherItem:
    """One record from a gopher menu, in source order."""

    item_type: GopherItemType
    type_char: str  # Raw discriminant, kept for UNKNOWN types
    display: str
    selector: str = ""
    host: str = ""
    port: int = 0


@dataclass
class MalformedLine:
    """A menu line that was skipped during parsing."""

    line_number: int
    raw: str
    reason: str


@dataclass
class GopherMenu:
    """Parsed gopher menu: usable items plus any skipped lines."""

    items: list[GopherItem] = field(default_factory=list)
    skipped: list[MalformedLine] = field(default_factory=list)


@dataclass
class GopherResponse:
    """A decoded gopher response."""

    kind: GopherContentKind
    url: str
    text: str
    menu: Optional[GopherMenu] = None


@dataclass
class InputRequest:
    """The server wants user text before it can answer."""

    prompt: str
    sensitive: bool
    url: str


@dataclass
class ConvertedDocument:
    """Markdown produced from a protocol response, ready for rendering."""

    markdown: str
    title: str
    url: str
    source_format: str  # 'gemtext', 'gophermap', 'text'


@dataclass
class FetchResult:
    """Result of an orchestrated fetch."""

    outcome: FetchOutcome
    url: str
    document: Optional[ConvertedDocument] = None
    input_request: Optional[InputRequest] = None
    redirect_url: Optional[str] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.DOCUMENT

    @property
    def is_security_warning(self) -> bool:
        """True when the failure implies a possible interception attempt."""
        return isinstance(self.error, CertificateMismatchError)
