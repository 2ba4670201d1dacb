"""
Property-based tests for configuration and the command-line front end.

Uses Hypothesis for property-based testing to verify that configuration
files round-trip, that bad files are reported instead of raising, and that
results map to the documented exit codes.
"""

import json
import tempfile
from io import StringIO
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from gemgopher.cli import (
    EXIT_ERROR,
    EXIT_NEEDS_ACTION,
    EXIT_OK,
    create_default_config,
    create_parser,
    load_config_from_file,
    main,
    print_result,
    save_config_to_file,
)
from gemgopher.config import ClientConfig, LoggingConfig, NetworkConfig, TrustConfig
from gemgopher.enums import FetchOutcome
from gemgopher.exceptions import CertificateMismatchError, ProtocolStatusError
from gemgopher.models import ConvertedDocument, FetchResult, InputRequest
from gemgopher.trust_store import TrustStore


# Strategies for generating valid configuration objects

@st.composite
def network_config_strategy(draw) -> NetworkConfig:
    """Generate valid NetworkConfig objects."""
    return NetworkConfig(
        timeout_seconds=draw(st.floats(min_value=0.5, max_value=120.0, allow_nan=False)),
        max_response_size=draw(st.integers(min_value=1024, max_value=50 * 1024 * 1024)),
        max_url_length=draw(st.integers(min_value=64, max_value=4096)),
        max_redirects=draw(st.integers(min_value=0, max_value=20)),
        allow_private_hosts=draw(st.booleans()),
    )


@st.composite
def client_config_strategy(draw) -> ClientConfig:
    """Generate valid ClientConfig objects."""
    name = draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz_"),
        min_size=1,
        max_size=20,
    ))
    return ClientConfig(
        network=draw(network_config_strategy()),
        trust=TrustConfig(known_hosts_path=Path("/tmp") / f"{name}.json"),
        logging=LoggingConfig(
            enabled=draw(st.booleans()),
            level=draw(st.sampled_from(["debug", "info", "warn", "error"])),
            output_format=draw(st.sampled_from(["json", "text", "both"])),
        ),
        language=draw(st.sampled_from(["en", "nb"])),
    )


class TestConfigurationRoundTripProperty:
    """
    Property 38: Configuration round-trips without data loss.

    *For any* valid ClientConfig, saving it and loading it back SHALL give
    an equal configuration.
    """

    @given(config=client_config_strategy())
    @settings(max_examples=100)
    def test_config_round_trip_preserves_data(self, config: ClientConfig) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "nested" / "config.json"

            assert save_config_to_file(config, path)
            loaded = load_config_from_file(path)

        assert loaded == config

    @given(config=client_config_strategy())
    @settings(max_examples=50)
    def test_config_file_is_valid_json(self, config: ClientConfig) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            save_config_to_file(config, path)

            with open(path, "r", encoding="utf-8") as f:
                parsed = json.load(f)

        assert set(parsed.keys()) == {"network", "trust", "logging", "language"}

    def test_missing_keys_take_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text(json.dumps({"network": {"max_redirects": 2}}), encoding="utf-8")

            config = load_config_from_file(path)

        assert config.network.max_redirects == 2
        assert config.network.timeout_seconds == NetworkConfig().timeout_seconds
        assert config.network.allow_private_hosts is False
        assert config.language == "en"

    def test_unsupported_language_falls_back(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text(json.dumps({"language": "de"}), encoding="utf-8")

            assert load_config_from_file(path).language == "en"

    def test_missing_file_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert load_config_from_file(Path(tmpdir) / "absent.json") is None

    def test_corrupt_file_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text("{not json", encoding="utf-8")

            assert load_config_from_file(path) is None

    def test_wrong_types_return_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text(json.dumps({"network": {"timeout_seconds": "soon"}}), encoding="utf-8")

            assert load_config_from_file(path) is None

    def test_defaults(self) -> None:
        config = create_default_config(language="nb", allow_private_hosts=True)

        assert config.language == "nb"
        assert config.network.allow_private_hosts is True
        assert config.network.max_redirects == 5
        assert config.network.max_url_length == 1024


class TestExitCodeProperty:
    """
    Property 39: Each outcome maps to one exit code.

    Documents exit 0, prompts and cross-protocol redirects exit 2, errors
    exit 1; certificate mismatches print a highlighted warning.
    """

    def test_document(self) -> None:
        out = StringIO()
        result = FetchResult(
            outcome=FetchOutcome.DOCUMENT,
            url="gemini://example.com/",
            document=ConvertedDocument("# Hi", "Hi", "gemini://example.com/", "gemtext"),
        )

        assert print_result(result, out=out, err=StringIO()) == EXIT_OK
        assert out.getvalue() == "# Hi\n"

    @given(sensitive=st.booleans(), language=st.sampled_from(["en", "nb"]))
    @settings(max_examples=10)
    def test_input_required(self, sensitive: bool, language: str) -> None:
        out = StringIO()
        result = FetchResult(
            outcome=FetchOutcome.INPUT_REQUIRED,
            url="gemini://example.com/q",
            input_request=InputRequest("Name?", sensitive, "gemini://example.com/q"),
        )

        assert print_result(result, language, out=out, err=StringIO()) == EXIT_NEEDS_ACTION
        assert "Name?" in out.getvalue()
        assert "gemini://example.com/q" in out.getvalue()

    def test_cross_protocol_redirect(self) -> None:
        out = StringIO()
        result = FetchResult(
            outcome=FetchOutcome.CROSS_PROTOCOL_REDIRECT,
            url="gemini://example.com/",
            redirect_url="https://example.com/",
        )

        assert print_result(result, out=out, err=StringIO()) == EXIT_NEEDS_ACTION
        assert "https://example.com/" in out.getvalue()

    def test_error(self) -> None:
        err = StringIO()
        result = FetchResult(
            outcome=FetchOutcome.ERROR,
            url="gemini://example.com/",
            error=ProtocolStatusError(51, "Not found", "gemini://example.com/"),
        )

        assert print_result(result, out=StringIO(), err=err) == EXIT_ERROR
        assert err.getvalue().startswith("Error: ")
        assert "51" in err.getvalue()

    @given(language=st.sampled_from(["en", "nb"]))
    @settings(max_examples=4)
    def test_mismatch_is_highlighted(self, language: str) -> None:
        err = StringIO()
        error = CertificateMismatchError("example.com", 1965, "aa" * 32, "bb" * 32)
        result = FetchResult(outcome=FetchOutcome.ERROR, url="gemini://example.com/", error=error)

        assert print_result(result, language, out=StringIO(), err=err) == EXIT_ERROR
        text = err.getvalue()
        assert "!" * 60 in text
        assert "aa" * 32 in text
        assert "bb" * 32 in text
        assert ("SECURITY WARNING" if language == "en" else "SIKKERHETSADVARSEL") in text


class TestCommandLineProperty:
    """The parser and offline commands behave as documented."""

    def test_parser_commands(self) -> None:
        parser = create_parser()

        args = parser.parse_args(["fetch", "gemini://example.com/", "--allow-private", "-l", "nb"])

        assert args.command == "fetch"
        assert args.url == "gemini://example.com/"
        assert args.allow_private is True
        assert args.language == "nb"

    def test_no_command_prints_help(self, capsys) -> None:
        assert main([]) == EXIT_OK
        assert "gemgopher" in capsys.readouterr().out

    def test_config_init_and_validate(self, capsys) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = str(Path(tmpdir) / "config.json")

            assert main(["config", "init", "--path", path, "--language", "nb"]) == EXIT_OK
            assert main(["config", "init", "--path", path]) == EXIT_ERROR
            assert main(["config", "validate", "--path", path]) == EXIT_OK
            assert load_config_from_file(Path(path)).language == "nb"

    def test_known_hosts_list_and_forget(self, capsys) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            known_hosts = Path(tmpdir) / "known_hosts.json"
            config_path = Path(tmpdir) / "config.json"
            save_config_to_file(create_default_config(known_hosts_path=known_hosts), config_path)
            TrustStore(known_hosts).verify("example.com", 1965, "ab" * 32)

            assert main(["known-hosts", "list", "-c", str(config_path)]) == EXIT_OK
            assert "example.com:1965" in capsys.readouterr().out

            assert main(["known-hosts", "forget", "example.com", "-c", str(config_path)]) == EXIT_OK
            assert main(["known-hosts", "forget", "example.com", "-c", str(config_path)]) == EXIT_ERROR
            assert TrustStore(known_hosts).entries() == []

    def test_invalid_url_exits_with_error(self, capsys) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"
            save_config_to_file(
                create_default_config(known_hosts_path=Path(tmpdir) / "known_hosts.json"),
                config_path,
            )

            assert main(["fetch", "ftp://example.com/", "-c", str(config_path)]) == EXIT_ERROR
            assert "ftp://example.com/" in capsys.readouterr().err
