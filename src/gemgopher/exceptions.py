"""
Exception classes for the gemgopher client.

All exceptions inherit from FetchError and provide structured error
information with codes, messages, and optional details. Messages are looked
up in the i18n catalog so the same error can be shown in any supported
language.
"""

from typing import Optional

from .enums import ErrorCode
from .i18n import DEFAULT_LANGUAGE, get_message


class FetchError(Exception):
    """Base exception for all fetch errors."""

    message_key = "error.generic"

    def __init__(
        self,
        code: ErrorCode,
        message: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.details = details or {}
        self.message = message or get_message(
            self.message_key, DEFAULT_LANGUAGE, **self.details
        )
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value!r}, message={self.message!r})"

    def localized(self, language: str) -> str:
        """Return the message in another language."""
        return get_message(self.message_key, language, **self.details)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidUrlError(FetchError):
    """Malformed, oversized or wrong-scheme URL. Raised before any I/O."""

    message_key = "error.invalid_url"

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(
            ErrorCode.INVALID_URL,
            details={"url": url, "reason": reason},
        )


class ConnectError(FetchError):
    """Raised when a connection to the server cannot be established."""

    message_key = "error.connection_failed"
    error_code = ErrorCode.CONNECTION_FAILED

    def __init__(self, host: str, port: int, reason: str) -> None:
        super().__init__(
            self.error_code,
            details={"host": host, "port": port, "reason": reason},
        )


class DnsResolutionError(ConnectError):
    """Raised when the host name cannot be resolved."""

    message_key = "error.dns_failure"
    error_code = ErrorCode.DNS_FAILURE


class ConnectionFailedError(ConnectError):
    """Raised when the TCP connection is refused, reset or unreachable."""


class TlsHandshakeError(FetchError):
    """Raised when the TLS handshake fails for a reason other than trust."""

    message_key = "error.tls_error"

    def __init__(self, host: str, port: int, reason: str) -> None:
        super().__init__(
            ErrorCode.TLS_ERROR,
            details={"host": host, "port": port, "reason": reason},
        )


class FetchTimeoutError(FetchError):
    """Raised when connect, handshake and read together exceed the deadline."""

    message_key = "error.timeout"

    def __init__(self, host: str, port: int, timeout_seconds: float) -> None:
        super().__init__(
            ErrorCode.TIMEOUT,
            details={"host": host, "port": port, "timeout": timeout_seconds},
        )


class CertificateMismatchError(FetchError):
    """
    Raised when a server presents a certificate that differs from the one
    trusted on first use.

    This indicates a possible interception attempt, not a transient network
    problem, and must be shown to the user as a security warning.
    """

    message_key = "error.certificate_mismatch"

    def __init__(
        self,
        host: str,
        port: int,
        trusted_fingerprint: str,
        presented_fingerprint: str,
    ) -> None:
        super().__init__(
            ErrorCode.CERTIFICATE_MISMATCH,
            details={
                "host": host,
                "port": port,
                "trusted_fingerprint": trusted_fingerprint,
                "presented_fingerprint": presented_fingerprint,
            },
        )

    @property
    def host(self) -> str:
        return self.details["host"]

    @property
    def port(self) -> int:
        return self.details["port"]


class OversizedResponseError(FetchError):
    """Raised when a response exceeds the byte ceiling. Partial data is dropped."""

    message_key = "error.oversized_response"

    def __init__(self, limit: int) -> None:
        super().__init__(ErrorCode.OVERSIZED_RESPONSE, details={"limit": limit})


class RedirectLoopError(FetchError):
    """Raised when a Gemini redirect chain exceeds the hop limit."""

    message_key = "error.redirect_loop"

    def __init__(self, max_redirects: int, chain: list[str]) -> None:
        super().__init__(
            ErrorCode.REDIRECT_LOOP,
            details={"max_redirects": max_redirects, "chain": chain},
        )


class ProtocolStatusError(FetchError):
    """Raised for Gemini 4x, 5x and 6x responses."""

    message_key = "error.protocol_status"

    def __init__(self, status: int, meta: str, url: str) -> None:
        super().__init__(
            ErrorCode.PROTOCOL_STATUS,
            details={"status": status, "meta": meta, "url": url},
        )

    @property
    def status(self) -> int:
        return self.details["status"]

    @property
    def meta(self) -> str:
        return self.details["meta"]

    @property
    def client_certificate_required(self) -> bool:
        return self.status // 10 == 6


class MalformedResponseError(FetchError):
    """Raised when a Gemini response header cannot be parsed."""

    message_key = "error.malformed_response"

    def __init__(self, reason: str) -> None:
        super().__init__(ErrorCode.MALFORMED_RESPONSE, details={"reason": reason})


class MalformedMenuLineError(FetchError):
    """Raised for a single unusable menu line. Always recovered by the parser."""

    message_key = "error.malformed_menu"

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(
            ErrorCode.MALFORMED_MENU,
            details={"line": line, "reason": reason},
        )


class BinaryContentError(FetchError):
    """Raised when a response is not renderable as text."""

    message_key = "error.binary_content"

    def __init__(self, url: str, content_type: str) -> None:
        super().__init__(
            ErrorCode.BINARY_CONTENT,
            details={"url": url, "content_type": content_type},
        )


class PersistenceError(FetchError):
    """Raised when the trust store file cannot be written."""

    message_key = "error.persistence"

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            ErrorCode.PERSISTENCE_ERROR,
            details={"file_path": file_path, "reason": reason},
        )
