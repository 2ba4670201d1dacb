"""
Transport Connector module.

Opens TCP connections for gopher and TLS connections for gemini. Gemini
certificates are never checked against a CA: the SHA-256 fingerprint of the
leaf certificate is handed to the TrustStore, which accepts it on first use
and rejects any later change.
"""

import asyncio
import hashlib
import socket
import ssl
from dataclasses import dataclass
from typing import Optional

from .enums import Scheme, TrustDecision
from .exceptions import (
    CertificateMismatchError,
    ConnectionFailedError,
    DnsResolutionError,
    TlsHandshakeError,
)
from .fetch_logger import FetchLogger
from .models import RequestUrl
from .trust_store import TrustStore
from .url_parser import is_disallowed_address


def create_ssl_context() -> ssl.SSLContext:
    """Return a TLS client context suitable for self-signed Gemini servers."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def certificate_fingerprint(der: bytes) -> str:
    """Lowercase hex SHA-256 of a DER-encoded certificate."""
    return hashlib.sha256(der).hexdigest()


@dataclass
class Connection:
    """An open stream to a server, TLS-wrapped for gemini."""

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    address: str
    fingerprint: Optional[str] = None

    async def send(self, line: str) -> None:
        """Write one CRLF-terminated request line."""
        self.writer.write(line.encode("utf-8") + b"\r\n")
        await self.writer.drain()

    async def close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (OSError, ssl.SSLError):
            # Peer already dropped the connection
            pass


class Connector:
    """
    Opens connections and enforces TOFU trust for gemini.

    The per-host lock from the TrustStore is held from the TCP connect until
    the fingerprint decision, so two concurrent first visits to one server
    cannot both record a certificate.
    """

    COMPONENT = "transport"

    def __init__(
        self,
        trust_store: TrustStore,
        allow_private_hosts: bool = False,
        logger: Optional[FetchLogger] = None,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> None:
        """
        Initialize the connector.

        Args:
            trust_store: Store consulted after every gemini handshake
            allow_private_hosts: Permit names resolving to private addresses
            logger: Optional logger for connection events
            ssl_context: TLS context, defaults to create_ssl_context()
        """
        self._trust_store = trust_store
        self._allow_private_hosts = allow_private_hosts
        self._logger = logger
        self._ssl_context = ssl_context or create_ssl_context()

    async def open(self, url: RequestUrl) -> Connection:
        """
        Connect to the server named by url.

        Raises:
            DnsResolutionError: Host name does not resolve
            ConnectionFailedError: Refused, unreachable, or a disallowed
                resolved address
            TlsHandshakeError: Handshake failed or no certificate presented
            CertificateMismatchError: Certificate differs from the trusted one
        """
        address = await self.resolve(url.host, url.port)

        if url.scheme is Scheme.GOPHER:
            reader, writer = await self._connect(url, address, None)
            self._debug("Connected", {"host": url.host, "port": url.port, "address": address})
            return Connection(reader=reader, writer=writer, address=address)

        async with self._trust_store.acquire(url.host, url.port):
            reader, writer = await self._connect(url, address, self._ssl_context)
            connection = Connection(reader=reader, writer=writer, address=address)
            try:
                connection.fingerprint = self._peer_fingerprint(url, writer)
                trusted = self._trust_store.lookup(url.host, url.port)
                decision = self._trust_store.verify(url.host, url.port, connection.fingerprint)
            except BaseException:
                await connection.close()
                raise

            if decision is TrustDecision.MISMATCH:
                await connection.close()
                raise CertificateMismatchError(
                    url.host,
                    url.port,
                    trusted.fingerprint if trusted else "",
                    connection.fingerprint,
                )

        self._debug("TLS connection established", {
            "host": url.host,
            "port": url.port,
            "address": address,
            "trust": decision.value,
        })
        return connection

    async def resolve(self, host: str, port: int) -> str:
        """
        Resolve host to the address that will be connected to.

        Every resolved address is checked against the private-host guard, so
        a public name pointing at a loopback address is refused as well.
        """
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise DnsResolutionError(host, port, str(e))

        if not infos:
            raise DnsResolutionError(host, port, "no addresses returned")

        addresses = [info[4][0] for info in infos]
        if not self._allow_private_hosts:
            for address in addresses:
                if is_disallowed_address(address):
                    raise ConnectionFailedError(
                        host, port, f"{address} is a private or loopback address"
                    )

        return addresses[0]

    async def _connect(
        self,
        url: RequestUrl,
        address: str,
        context: Optional[ssl.SSLContext],
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            if context is None:
                return await asyncio.open_connection(address, url.port)
            return await asyncio.open_connection(
                address, url.port, ssl=context, server_hostname=url.host
            )
        except ssl.SSLError as e:
            raise TlsHandshakeError(url.host, url.port, str(e))
        except OSError as e:
            raise ConnectionFailedError(url.host, url.port, e.strerror or str(e))

    @staticmethod
    def _peer_fingerprint(url: RequestUrl, writer: asyncio.StreamWriter) -> str:
        ssl_object = writer.get_extra_info("ssl_object")
        der = ssl_object.getpeercert(binary_form=True) if ssl_object else None
        if not der:
            raise TlsHandshakeError(url.host, url.port, "server presented no certificate")
        return certificate_fingerprint(der)

    def _debug(self, message: str, data: dict) -> None:
        if self._logger is not None:
            self._logger.debug(self.COMPONENT, message, data)
