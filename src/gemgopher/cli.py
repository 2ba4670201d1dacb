"""
Command-line interface for the gemgopher client.

This module provides the main CLI entry point with commands for:
- fetch: Fetch a gemini:// or gopher:// URL and print it as Markdown
- input: Answer a Gemini input prompt
- search: Run a Gopher search
- known-hosts: List or forget trusted certificates
- config: Configuration management
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional, TextIO

from . import __version__
from .config import (
    DEFAULT_CONFIG_DIR,
    ClientConfig,
    LoggingConfig,
    NetworkConfig,
    TrustConfig,
)
from .enums import FetchOutcome, LogLevel
from .fetch_logger import FetchLogger
from .i18n import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES, get_message
from .models import FetchResult
from .orchestrator import FetchOrchestrator
from .trust_store import TrustStore


DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.json"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NEEDS_ACTION = 2

WARNING_RULE = "!" * 60


def create_default_config(
    language: str = DEFAULT_LANGUAGE,
    known_hosts_path: Optional[Path] = None,
    allow_private_hosts: bool = False,
) -> ClientConfig:
    """
    Create a default client configuration.

    Args:
        language: Output language ('en' or 'nb')
        known_hosts_path: Path to the TOFU trust store
        allow_private_hosts: Permit loopback/private targets

    Returns:
        ClientConfig with default settings
    """
    trust = TrustConfig()
    if known_hosts_path is not None:
        trust = TrustConfig(known_hosts_path=known_hosts_path)

    return ClientConfig(
        network=NetworkConfig(allow_private_hosts=allow_private_hosts),
        trust=trust,
        logging=LoggingConfig(level="info", output_format="text"),
        language=language,
    )


def load_config_from_file(config_path: Path) -> Optional[ClientConfig]:
    """
    Load configuration from a JSON file.

    Missing sections and keys take their default values.

    Args:
        config_path: Path to the configuration file

    Returns:
        ClientConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error reading config: {e}", file=sys.stderr)
        return None

    try:
        defaults = NetworkConfig()
        network_data = data.get("network", {})
        network = NetworkConfig(
            timeout_seconds=float(network_data.get("timeout_seconds", defaults.timeout_seconds)),
            max_response_size=int(network_data.get("max_response_size", defaults.max_response_size)),
            max_url_length=int(network_data.get("max_url_length", defaults.max_url_length)),
            max_redirects=int(network_data.get("max_redirects", defaults.max_redirects)),
            allow_private_hosts=bool(network_data.get("allow_private_hosts", False)),
        )

        trust_data = data.get("trust", {})
        trust = TrustConfig()
        if trust_data.get("known_hosts_path"):
            trust = TrustConfig(known_hosts_path=Path(trust_data["known_hosts_path"]).expanduser())

        logging_data = data.get("logging", {})
        logging = LoggingConfig(
            enabled=bool(logging_data.get("enabled", False)),
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )

        language = data.get("language", DEFAULT_LANGUAGE)
        if language not in SUPPORTED_LANGUAGES:
            language = DEFAULT_LANGUAGE
    except (AttributeError, TypeError, ValueError) as e:
        print(f"Error parsing config: {e}", file=sys.stderr)
        return None

    return ClientConfig(
        network=network,
        trust=trust,
        logging=logging,
        language=language,
    )


def save_config_to_file(config: ClientConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Args:
        config: ClientConfig to save
        config_path: Path to save the configuration

    Returns:
        True if successful, False otherwise
    """
    try:
        # Ensure parent directory exists
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "network": {
                "timeout_seconds": config.network.timeout_seconds,
                "max_response_size": config.network.max_response_size,
                "max_url_length": config.network.max_url_length,
                "max_redirects": config.network.max_redirects,
                "allow_private_hosts": config.network.allow_private_hosts,
            },
            "trust": {
                "known_hosts_path": str(config.trust.known_hosts_path),
            },
            "logging": {
                "enabled": config.logging.enabled,
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
            "language": config.language,
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def resolve_config(args: argparse.Namespace) -> Optional[ClientConfig]:
    """Load the configuration named on the command line and apply overrides."""
    if args.config:
        config = load_config_from_file(Path(args.config))
        if config is None:
            print(f"Error: Could not load config from {args.config}", file=sys.stderr)
            return None
    else:
        config = load_config_from_file(DEFAULT_CONFIG_PATH) or create_default_config()

    if getattr(args, "language", None):
        config.language = args.language
    if getattr(args, "allow_private", False):
        config.network.allow_private_hosts = True
    return config


def create_logger(config: ClientConfig, verbose: bool = False) -> Optional[FetchLogger]:
    """Create a logger writing to stderr, or None if logging is off."""
    if verbose:
        return FetchLogger(output_format=config.logging.output_format, min_level=LogLevel.DEBUG)
    if config.logging.enabled:
        return FetchLogger.from_level_name(config.logging.level, config.logging.output_format)
    return None


def print_result(
    result: FetchResult,
    language: str = DEFAULT_LANGUAGE,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """
    Print a fetch result.

    Returns:
        Exit code (0 document, 2 input or cross-protocol redirect, 1 error)
    """
    out = out or sys.stdout
    err = err or sys.stderr

    if result.outcome is FetchOutcome.DOCUMENT and result.document is not None:
        out.write(result.document.markdown)
        if not result.document.markdown.endswith("\n"):
            out.write("\n")
        return EXIT_OK

    if result.outcome is FetchOutcome.INPUT_REQUIRED and result.input_request is not None:
        key = "cli.sensitive_input_required" if result.input_request.sensitive else "cli.input_required"
        print(get_message(key, language, prompt=result.input_request.prompt), file=out)
        print(result.input_request.url, file=out)
        return EXIT_NEEDS_ACTION

    if result.outcome is FetchOutcome.CROSS_PROTOCOL_REDIRECT:
        print(get_message("cli.cross_protocol_redirect", language, url=result.redirect_url), file=out)
        return EXIT_NEEDS_ACTION

    message = result.error.localized(language) if result.error else get_message("error.generic", language)
    if result.is_security_warning:
        print(WARNING_RULE, file=err)
        print(f"⚠️  {get_message('cli.security_warning', language)}", file=err)
        print(WARNING_RULE, file=err)
        print(message, file=err)
        print(WARNING_RULE, file=err)
    else:
        print(f"Error: {message}", file=err)
    return EXIT_ERROR


async def run_fetch(
    config: ClientConfig,
    action: Callable[[FetchOrchestrator], Awaitable[FetchResult]],
    verbose: bool = False,
) -> int:
    """Run one orchestrator operation and print its result."""
    logger = create_logger(config, verbose)
    async with FetchOrchestrator(config=config, logger=logger) as orchestrator:
        result = await action(orchestrator)
    return print_result(result, config.language)


def cmd_fetch(args: argparse.Namespace) -> int:
    """Handle the 'fetch' command."""
    config = resolve_config(args)
    if config is None:
        return EXIT_ERROR
    return asyncio.run(run_fetch(
        config,
        lambda orchestrator: orchestrator.fetch(args.url),
        verbose=args.verbose,
    ))


def cmd_input(args: argparse.Namespace) -> int:
    """Handle the 'input' command."""
    config = resolve_config(args)
    if config is None:
        return EXIT_ERROR
    return asyncio.run(run_fetch(
        config,
        lambda orchestrator: orchestrator.submit_input(args.url, args.text),
        verbose=args.verbose,
    ))


def cmd_search(args: argparse.Namespace) -> int:
    """Handle the 'search' command."""
    config = resolve_config(args)
    if config is None:
        return EXIT_ERROR
    return asyncio.run(run_fetch(
        config,
        lambda orchestrator: orchestrator.gopher_search(args.url, args.query),
        verbose=args.verbose,
    ))


def cmd_known_hosts(args: argparse.Namespace) -> int:
    """Handle the 'known-hosts' command."""
    config = resolve_config(args)
    if config is None:
        return EXIT_ERROR

    language = config.language
    store = TrustStore(config.trust.known_hosts_path)
    store.load()

    if args.action == "list":
        entries = store.entries()
        if not entries:
            print(get_message("cli.known_hosts_empty", language))
            return EXIT_OK
        for entry in entries:
            print(f"{entry.key}  {entry.fingerprint}")
            if args.verbose:
                print(f"  first seen: {entry.first_seen}")
                print(f"  last seen:  {entry.last_seen}")
        return EXIT_OK

    if not args.host:
        print("Error: 'forget' needs a HOST", file=sys.stderr)
        return EXIT_ERROR

    if store.forget(args.host, args.port):
        print(get_message("cli.host_forgotten", language, host=args.host, port=args.port))
        return EXIT_OK

    print(get_message("cli.host_not_known", language, host=args.host, port=args.port), file=sys.stderr)
    return EXIT_ERROR


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return EXIT_ERROR

        print(f"Configuration from: {config_path}")
        print(f"  Language: {config.language}")
        print(f"  Timeout: {config.network.timeout_seconds}s")
        print(f"  Max response size: {config.network.max_response_size} bytes")
        print(f"  Max redirects: {config.network.max_redirects}")
        print(f"  Allow private hosts: {config.network.allow_private_hosts}")
        print(f"  Known hosts: {config.trust.known_hosts_path}")
        print(f"  Log level: {config.logging.level}")
        return EXIT_OK

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return EXIT_ERROR

        config = create_default_config(language=args.language or DEFAULT_LANGUAGE)
        if save_config_to_file(config, config_path):
            print(f"Configuration created at: {config_path}")
            return EXIT_OK
        return EXIT_ERROR

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return EXIT_ERROR

        print(f"Configuration at {config_path} is valid.")
        return EXIT_OK

    return EXIT_ERROR


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        help="Output language (default: from config, else en)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )


def _add_network_arguments(parser: argparse.ArgumentParser) -> None:
    _add_common_arguments(parser)
    parser.add_argument(
        "--allow-private",
        action="store_true",
        help="Allow loopback and private network addresses",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="gemgopher",
        description="Gemini and Gopher client that renders pages as Markdown",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'fetch' command
    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Fetch a gemini:// or gopher:// URL",
    )
    fetch_parser.add_argument(
        "url",
        help="URL to fetch (e.g., gemini://geminiprotocol.net/)",
    )
    _add_network_arguments(fetch_parser)
    fetch_parser.set_defaults(func=cmd_fetch)

    # 'input' command
    input_parser = subparsers.add_parser(
        "input",
        help="Answer a Gemini input prompt",
    )
    input_parser.add_argument(
        "url",
        help="URL that asked for input",
    )
    input_parser.add_argument(
        "text",
        help="Text to submit",
    )
    _add_network_arguments(input_parser)
    input_parser.set_defaults(func=cmd_input)

    # 'search' command
    search_parser = subparsers.add_parser(
        "search",
        help="Run a Gopher search",
    )
    search_parser.add_argument(
        "url",
        help="URL of the search item",
    )
    search_parser.add_argument(
        "query",
        help="Search terms",
    )
    _add_network_arguments(search_parser)
    search_parser.set_defaults(func=cmd_search)

    # 'known-hosts' command
    known_hosts_parser = subparsers.add_parser(
        "known-hosts",
        help="Manage trusted server certificates",
    )
    known_hosts_parser.add_argument(
        "action",
        choices=["list", "forget"],
        help="Known hosts action",
    )
    known_hosts_parser.add_argument(
        "host",
        nargs="?",
        help="Host to forget",
    )
    known_hosts_parser.add_argument(
        "--port", "-p",
        type=int,
        default=1965,
        help="Port of the host to forget (default: 1965)",
    )
    _add_common_arguments(known_hosts_parser)
    known_hosts_parser.set_defaults(func=cmd_known_hosts)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        help="Default language for new configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
