"""
Internationalization (i18n) module for the gemgopher client.

Provides translations for all user-facing messages in English (en) and
Norwegian Bokmål (nb).
"""

from typing import Optional


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"en", "nb"})
DEFAULT_LANGUAGE = "en"


# Translation dictionary with all messages
# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Fetch errors
    "error.generic": {
        "en": "The request failed",
        "nb": "Forespørselen feilet",
    },
    "error.invalid_url": {
        "en": "Invalid URL '{url}': {reason}",
        "nb": "Ugyldig URL '{url}': {reason}",
    },
    "error.dns_failure": {
        "en": "Could not resolve host {host}: {reason}",
        "nb": "Fant ikke verten {host}: {reason}",
    },
    "error.connection_failed": {
        "en": "Could not connect to {host}:{port}: {reason}",
        "nb": "Kunne ikke koble til {host}:{port}: {reason}",
    },
    "error.tls_error": {
        "en": "TLS handshake with {host}:{port} failed: {reason}",
        "nb": "TLS-handshake med {host}:{port} feilet: {reason}",
    },
    "error.timeout": {
        "en": "{host}:{port} did not respond within {timeout} seconds",
        "nb": "{host}:{port} svarte ikke innen {timeout} sekunder",
    },
    "error.certificate_mismatch": {
        "en": (
            "The certificate for {host}:{port} has changed since your last visit. "
            "This may indicate a man-in-the-middle attack.\n"
            "Trusted fingerprint: {trusted_fingerprint}\n"
            "Presented fingerprint: {presented_fingerprint}"
        ),
        "nb": (
            "Sertifikatet for {host}:{port} har endret seg siden forrige besøk. "
            "Dette kan indikere et man-in-the-middle-angrep.\n"
            "Gammelt fingerprint: {trusted_fingerprint}\n"
            "Nytt fingerprint: {presented_fingerprint}"
        ),
    },
    "error.oversized_response": {
        "en": "Response too large (over {limit} bytes)",
        "nb": "Respons for stor (over {limit} bytes)",
    },
    "error.redirect_loop": {
        "en": "Too many redirects (max {max_redirects})",
        "nb": "For mange redirects (maks {max_redirects})",
    },
    "error.protocol_status": {
        "en": "Server returned status {status}: {meta}",
        "nb": "Serveren svarte med status {status}: {meta}",
    },
    "error.malformed_response": {
        "en": "Invalid response from server: {reason}",
        "nb": "Ugyldig respons fra serveren: {reason}",
    },
    "error.malformed_menu": {
        "en": "Skipped malformed menu line: {reason}",
        "nb": "Hoppet over ugyldig menylinje: {reason}",
    },
    "error.binary_content": {
        "en": "Content type '{content_type}' cannot be displayed as text",
        "nb": "Innholdstypen '{content_type}' kan ikke vises som tekst",
    },
    "error.persistence": {
        "en": "Could not write {file_path}: {reason}",
        "nb": "Kunne ikke skrive {file_path}: {reason}",
    },

    # Gopher menu annotations
    "gopher.telnet_unsupported": {
        "en": "Telnet, not supported",
        "nb": "Telnet, ikke støttet",
    },
    "gopher.type.0": {"en": "Text file", "nb": "Tekstfil"},
    "gopher.type.1": {"en": "Directory", "nb": "Mappe"},
    "gopher.type.2": {"en": "CSO phone book", "nb": "CSO-telefonbok"},
    "gopher.type.3": {"en": "Error", "nb": "Feil"},
    "gopher.type.4": {"en": "BinHex file", "nb": "BinHex-fil"},
    "gopher.type.5": {"en": "DOS binary", "nb": "DOS-binærfil"},
    "gopher.type.6": {"en": "UUencoded file", "nb": "UUencodet fil"},
    "gopher.type.7": {"en": "Search", "nb": "Søk"},
    "gopher.type.8": {"en": "Telnet", "nb": "Telnet"},
    "gopher.type.9": {"en": "Binary file", "nb": "Binærfil"},
    "gopher.type.g": {"en": "GIF image", "nb": "GIF-bilde"},
    "gopher.type.I": {"en": "Image", "nb": "Bilde"},
    "gopher.type.h": {"en": "HTML", "nb": "HTML"},
    "gopher.type.i": {"en": "Info", "nb": "Info"},
    "gopher.type.T": {"en": "Telnet 3270", "nb": "Telnet 3270"},
    "gopher.type.unknown": {
        "en": "Unknown type '{char}'",
        "nb": "Ukjent type '{char}'",
    },
    "gopher.search_prompt": {
        "en": "Search {selector}",
        "nb": "Søk i {selector}",
    },

    # CLI messages
    "cli.input_required": {
        "en": "The server asks for input: {prompt}",
        "nb": "Serveren ber om input: {prompt}",
    },
    "cli.sensitive_input_required": {
        "en": "The server asks for sensitive input: {prompt}",
        "nb": "Serveren ber om sensitiv input: {prompt}",
    },
    "cli.cross_protocol_redirect": {
        "en": "Redirected to another protocol: {url}",
        "nb": "Videresendt til en annen protokoll: {url}",
    },
    "cli.security_warning": {
        "en": "SECURITY WARNING",
        "nb": "SIKKERHETSADVARSEL",
    },
    "cli.known_hosts_empty": {
        "en": "No trusted hosts yet",
        "nb": "Ingen kjente verter ennå",
    },
    "cli.host_forgotten": {
        "en": "Removed {host}:{port} from known hosts",
        "nb": "Fjernet {host}:{port} fra kjente verter",
    },
    "cli.host_not_known": {
        "en": "{host}:{port} is not a known host",
        "nb": "{host}:{port} er ikke en kjent vert",
    },
}


def get_message(key: str, language: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'error.timeout')
        language: The language code ('en' or 'nb')
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message, or the key itself if the key
        is unknown.
    """
    translations: Optional[dict[str, str]] = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language)
    if message is None:
        message = translations.get(DEFAULT_LANGUAGE, key)

    if kwargs:
        try:
            message = message.format(**kwargs)
        except (KeyError, IndexError):
            # Leave the template unformatted rather than failing an error path
            pass

    return message


def get_all_message_keys() -> set[str]:
    """Get all available message keys."""
    return set(TRANSLATIONS.keys())


def get_missing_translations(language: str) -> set[str]:
    """
    Get all message keys that are missing translations for a language.

    Args:
        language: The language code to check

    Returns:
        Set of message keys missing translations for the specified language.
    """
    return {
        key for key, translations in TRANSLATIONS.items()
        if language not in translations
    }
