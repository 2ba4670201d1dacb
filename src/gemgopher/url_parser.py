"""
URL parsing and validation module.

Turns raw gemini:// and gopher:// strings into RequestUrl descriptors and
rejects anything malformed, oversized, of the wrong scheme, or pointing at a
disallowed private address. Parsing never touches the network.
"""

import ipaddress
import re
import urllib.parse
from typing import Optional
from urllib.parse import quote, unquote, urljoin, urlsplit, urlunsplit

import idna

from gemgopher.config import DEFAULT_MAX_URL_LENGTH
from gemgopher.enums import GopherItemType, Scheme
from gemgopher.exceptions import InvalidUrlError
from gemgopher.models import GopherItem, RequestUrl


# urljoin only resolves relative references for registered schemes
for _scheme in (Scheme.GEMINI.value, Scheme.GOPHER.value):
    if _scheme not in urllib.parse.uses_relative:
        urllib.parse.uses_relative.append(_scheme)
    if _scheme not in urllib.parse.uses_netloc:
        urllib.parse.uses_netloc.append(_scheme)


# Control characters would let a URL smuggle extra lines into the request
FORBIDDEN_CHARS_PATTERN = re.compile(r'[\x00-\x1f\x7f]')

# Host names after IDNA encoding: letters, digits, hyphen, underscore, dot
HOST_PATTERN = re.compile(r'^[a-z0-9_]([a-z0-9_-]*[a-z0-9_])?(\.[a-z0-9_]([a-z0-9_-]*[a-z0-9_])?)*\.?$')

# RFC 4266 separator between a gopher selector and its search terms
GOPHER_SEARCH_SEPARATOR = "%09"

ABSOLUTE_URL_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*:')

LOCAL_HOST_NAMES = ("localhost",)


def is_disallowed_address(address: str) -> bool:
    """
    Check whether an IP address is private, loopback or otherwise local.

    Args:
        address: IPv4 or IPv6 address string

    Returns:
        True if connecting to this address should be refused by the guard
    """
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False

    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped

    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_unspecified
        or ip.is_multicast
    )


def is_disallowed_host(host: str) -> bool:
    """Check a host name or literal address against the private-host guard."""
    name = host.lower().rstrip(".")
    if name in LOCAL_HOST_NAMES or name.endswith(".localhost"):
        return True
    return is_disallowed_address(name)


class UrlParser:
    """
    Parses and validates scheme-specific URLs.

    Handles:
    - Exact scheme matching and mandatory host
    - Default ports (1965 for gemini, 70 for gopher)
    - Length limits on the raw and serialized URL
    - IDNA encoding of international host names
    - The optional private/loopback address guard
    - Byte-for-byte preservation of Gemini paths and Gopher selectors
    """

    def __init__(
        self,
        max_url_length: int = DEFAULT_MAX_URL_LENGTH,
        allow_private_hosts: bool = False,
    ) -> None:
        """
        Initialize the parser.

        Args:
            max_url_length: Maximum URL length in bytes
            allow_private_hosts: Permit loopback/private targets
        """
        self._max_url_length = max_url_length
        self._allow_private_hosts = allow_private_hosts

    @property
    def allow_private_hosts(self) -> bool:
        return self._allow_private_hosts

    def parse(self, raw_url: str, expected_scheme: Scheme) -> RequestUrl:
        """
        Parse a raw URL that must use the expected scheme.

        Args:
            raw_url: The URL as typed or linked
            expected_scheme: Scheme the caller is prepared to handle

        Returns:
            RequestUrl descriptor

        Raises:
            InvalidUrlError: If the URL is malformed, oversized, uses another
                scheme, or targets a disallowed host
        """
        if not raw_url or not raw_url.strip():
            raise InvalidUrlError(raw_url or "", "URL is empty")

        url = raw_url.strip()

        if len(url.encode("utf-8")) > self._max_url_length:
            raise InvalidUrlError(
                url[:64] + "...",
                f"URL is longer than {self._max_url_length} bytes",
            )

        if FORBIDDEN_CHARS_PATTERN.search(url):
            raise InvalidUrlError(url, "URL contains control characters")

        scheme = self.scheme_of(url)
        if scheme != expected_scheme.value:
            raise InvalidUrlError(
                url,
                f"expected {expected_scheme.value}:// but got {scheme or 'no'} scheme",
            )

        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise InvalidUrlError(url, str(e))
        if "@" in parts.netloc:
            raise InvalidUrlError(url, "user information is not allowed in the URL")

        if not parts.hostname:
            raise InvalidUrlError(url, "URL has no host")

        try:
            port = parts.port
        except ValueError:
            raise InvalidUrlError(url, "port is not a number between 1 and 65535")
        if port is None:
            port = expected_scheme.default_port
        elif not 1 <= port <= 65535:
            raise InvalidUrlError(url, "port is not a number between 1 and 65535")

        host = self.normalize_host(parts.hostname, url)

        if not self._allow_private_hosts and is_disallowed_host(host):
            raise InvalidUrlError(url, f"host {host} is a private or loopback address")

        if expected_scheme is Scheme.GEMINI:
            request = RequestUrl(
                scheme=Scheme.GEMINI,
                host=host,
                port=port,
                path=parts.path or "/",
                query=parts.query or None,
            )
        else:
            # Everything after the authority, untouched by urlsplit's
            # query/fragment handling
            authority_end = url.find("/", len("gopher://"))
            remainder = url[authority_end:] if authority_end != -1 else ""
            request = self._parse_gopher_path(host, port, remainder)

        if len(request.to_url().encode("utf-8")) > self._max_url_length:
            raise InvalidUrlError(
                url, f"URL is longer than {self._max_url_length} bytes"
            )

        return request

    @staticmethod
    def scheme_of(url: str) -> str:
        """Return the lowercased scheme of a URL, or '' if it has none."""
        scheme, sep, _ = url.strip().partition("://")
        return scheme.lower() if sep else ""

    def normalize_host(self, host: str, url: str = "") -> str:
        """
        Convert a host name to its canonical ASCII form.

        Raises:
            InvalidUrlError: If IDNA encoding fails or the host has invalid
                characters
        """
        host = host.lower()

        if ":" in host:
            # IPv6 literal, urlsplit already removed the brackets
            try:
                ipaddress.IPv6Address(host.split("%", 1)[0])
            except ValueError:
                raise InvalidUrlError(url or host, f"invalid IPv6 address {host}")
            return host

        if any(ord(c) > 127 for c in host):
            try:
                host = idna.encode(host, uts46=True).decode("ascii")
            except idna.IDNAError as e:
                raise InvalidUrlError(url or host, f"IDNA encoding failed: {e}")

        if not HOST_PATTERN.match(host):
            raise InvalidUrlError(url or host, f"invalid host name {host}")

        return host

    def _parse_gopher_path(self, host: str, port: int, remainder: str) -> RequestUrl:
        # gopher://host[:port]/<type><selector>[%09<search>]
        path = remainder[1:] if remainder.startswith("/") else remainder
        if not path:
            return RequestUrl(
                scheme=Scheme.GOPHER,
                host=host,
                port=port,
                path="",
                item_type=GopherItemType.DIRECTORY.value,
            )

        item_type = path[0]
        selector = path[1:]
        query: Optional[str] = None
        if GOPHER_SEARCH_SEPARATOR in selector:
            selector, _, search = selector.partition(GOPHER_SEARCH_SEPARATOR)
            query = unquote(search)

        return RequestUrl(
            scheme=Scheme.GOPHER,
            host=host,
            port=port,
            path=selector,
            query=query,
            item_type=item_type,
        )


def build_gopher_url(item: GopherItem) -> str:
    """
    Build an absolute gopher URL for a menu item.

    The selector is appended verbatim after the type character, so a
    selector of "/docs" on a directory item yields gopher://host:port/1/docs.
    """
    port = item.port or Scheme.GOPHER.default_port
    host = f"[{item.host}]" if ":" in item.host else item.host
    return f"gopher://{host}:{port}/{item.type_char}{item.selector}"


def resolve_url(base_url: str, relative_url: str) -> str:
    """
    Resolve a link found on a page against the page's URL.

    Absolute URLs of any scheme are returned unchanged.
    """
    if not relative_url:
        return base_url
    if ABSOLUTE_URL_PATTERN.match(relative_url):
        return relative_url
    return urljoin(base_url, relative_url)


def with_query(url: str, text: str) -> str:
    """
    Replace the query component of a Gemini URL with percent-encoded input.

    Used to answer a 1x input prompt.
    """
    parts = urlsplit(url)
    return urlunsplit((
        parts.scheme,
        parts.netloc,
        parts.path or "/",
        quote(text, safe=""),
        "",
    ))
