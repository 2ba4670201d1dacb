"""
Configuration dataclasses for the gemgopher client.

This module defines the configuration structures used throughout the system:
network limits, the trust store location, and logging.
"""

from dataclasses import dataclass, field
from pathlib import Path


DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_RESPONSE_SIZE = 5 * 1024 * 1024
DEFAULT_MAX_URL_LENGTH = 1024
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_CONFIG_DIR = Path.home() / ".gemgopher"


@dataclass
class NetworkConfig:
    """Limits applied to every request."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE
    max_url_length: int = DEFAULT_MAX_URL_LENGTH
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    # Permit loopback/private/link-local targets (e.g. a capsule on localhost)
    allow_private_hosts: bool = False


@dataclass
class TrustConfig:
    """TOFU trust store location."""

    known_hosts_path: Path = field(
        default_factory=lambda: DEFAULT_CONFIG_DIR / "known_hosts.json"
    )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    enabled: bool = False
    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class ClientConfig:
    """Main client configuration combining all sub-configurations."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    trust: TrustConfig = field(default_factory=TrustConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    language: str = "en"  # 'en' or 'nb'
