"""
In-memory stand-ins for the network used by the property tests.

Nothing here opens a socket: replies are fed into asyncio.StreamReader
objects created inside the running event loop.
"""

import asyncio
from typing import Optional

from gemgopher.models import RequestUrl
from gemgopher.transport import Connection, Connector
from gemgopher.trust_store import TrustStore


class FakeSslObject:
    """Mimics ssl.SSLObject.getpeercert for a fixed DER certificate."""

    def __init__(self, der: Optional[bytes]) -> None:
        self._der = der

    def getpeercert(self, binary_form: bool = False) -> Optional[bytes]:
        return self._der if binary_form else {}


class FakeWriter:
    """Records everything written to it."""

    def __init__(self, ssl_object: Optional[FakeSslObject] = None) -> None:
        self.written = bytearray()
        self.closed = False
        self._ssl_object = ssl_object

    def write(self, data: bytes) -> None:
        self.written.extend(data)

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass

    def get_extra_info(self, name: str, default=None):
        if name == "ssl_object":
            return self._ssl_object
        return default


def make_reader(data: bytes) -> asyncio.StreamReader:
    """Reader that yields data then EOF. Must be called inside a running loop."""
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return reader


class ScriptedConnector:
    """
    Replays one canned reply per connection.

    The last reply is repeated once the script runs out, which is handy for
    servers that redirect forever.
    """

    def __init__(self, replies: list[bytes], error: Optional[Exception] = None) -> None:
        self._replies = list(replies)
        self._error = error
        self.requests: list[RequestUrl] = []
        self.writers: list[FakeWriter] = []

    async def open(self, url: RequestUrl) -> Connection:
        self.requests.append(url)
        if self._error is not None:
            raise self._error

        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        writer = FakeWriter()
        self.writers.append(writer)
        return Connection(reader=make_reader(reply), writer=writer, address="192.0.2.1")

    @property
    def sent(self) -> list[bytes]:
        """Request bytes written on each connection, in order."""
        return [bytes(writer.written) for writer in self.writers]


class OfflineConnector(Connector):
    """
    A real Connector whose DNS and socket layer are replaced.

    Each connection presents the next certificate from the list, so the TOFU
    logic in Connector.open runs unchanged.
    """

    def __init__(
        self,
        trust_store: TrustStore,
        certificates: list[bytes],
        reply: bytes = b"20 text/gemini\r\n# Hello\r\n",
    ) -> None:
        super().__init__(trust_store, allow_private_hosts=False)
        self._certificates = list(certificates)
        self._reply = reply
        self.writers: list[FakeWriter] = []

    async def resolve(self, host: str, port: int) -> str:
        return "192.0.2.1"

    async def _connect(self, url, address, context):
        der = self._certificates.pop(0) if len(self._certificates) > 1 else self._certificates[0]
        writer = FakeWriter(FakeSslObject(der) if context is not None else None)
        self.writers.append(writer)
        return make_reader(self._reply), writer


class HangingConnector(ScriptedConnector):
    """Accepts the connection attempt and then never answers."""

    def __init__(self) -> None:
        super().__init__([b""])

    async def open(self, url: RequestUrl) -> Connection:
        self.requests.append(url)
        await asyncio.Event().wait()


class StalledConnector(OfflineConnector):
    """An OfflineConnector whose TLS handshake never completes."""

    def __init__(self, trust_store: TrustStore) -> None:
        super().__init__(trust_store, [b"never-presented"])
        self.handshake_started = asyncio.Event()

    async def _connect(self, url, address, context):
        self.handshake_started.set()
        await asyncio.Event().wait()
