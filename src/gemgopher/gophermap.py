"""
Gopher menu to Markdown converter.

Linkable items become Markdown links prefixed with an icon; items the client
cannot follow are kept visible but not clickable.
"""

import dataclasses
import re
from dataclasses import dataclass
from typing import Optional

from .enums import GopherItemType
from .i18n import DEFAULT_LANGUAGE, get_message
from .models import GopherItem, RequestUrl
from .url_parser import build_gopher_url


ICONS = {
    GopherItemType.DIRECTORY: "📁",
    GopherItemType.TEXT_FILE: "📄",
    GopherItemType.SEARCH: "🔍",
    GopherItemType.HTML: "🌐",
    GopherItemType.GIF: "🖼️",
    GopherItemType.IMAGE: "🖼️",
}

ERROR_ICON = "⚠️"

HTML_URL_PREFIX = "URL:"

_BACKTICK_RUN = re.compile(r'`+')


@dataclass
class GophermapDocument:
    """Result of converting a gopher menu."""

    markdown: str
    title: Optional[str] = None


def type_name(item: GopherItem, language: str = DEFAULT_LANGUAGE) -> str:
    """Human-readable name of an item's type."""
    if item.item_type is GopherItemType.UNKNOWN:
        return get_message("gopher.type.unknown", language, char=item.type_char)
    if item.item_type in (GopherItemType.TELNET, GopherItemType.TELNET_3270):
        return get_message("gopher.telnet_unsupported", language)
    return get_message(f"gopher.type.{item.item_type.value}", language)


def item_link(item: GopherItem, base: Optional[RequestUrl] = None) -> Optional[str]:
    """
    Target URL for a linkable item.

    An item without a host lives on the server that sent the menu (base).
    Returns None when neither names a server.
    """
    if item.item_type is GopherItemType.HTML and item.selector.startswith(HTML_URL_PREFIX):
        return item.selector[len(HTML_URL_PREFIX):]
    if not item.host:
        if base is None:
            return None
        item = dataclasses.replace(item, host=base.host, port=item.port or base.port)
    return build_gopher_url(item)


def convert_item(
    item: GopherItem,
    language: str = DEFAULT_LANGUAGE,
    base: Optional[RequestUrl] = None,
) -> str:
    """Render a single menu item as one Markdown line."""
    if item.item_type is GopherItemType.INFO:
        return item.display

    if item.item_type is GopherItemType.ERROR:
        return f"{ERROR_ICON} {item.display}"

    icon = ICONS.get(item.item_type)
    link = item_link(item, base) if icon is not None else None
    if link is not None:
        return f"{icon} [{item.display}]({link})"

    return f"{item.display} *({type_name(item, language)})*"


def menu_to_markdown(
    items: list[GopherItem],
    language: str = DEFAULT_LANGUAGE,
    base: Optional[RequestUrl] = None,
) -> GophermapDocument:
    """
    Convert parsed menu items to Markdown.

    base is the URL the menu was fetched from.

    A blank line separates a run of info lines from the next item. The
    title is the first info line that is not blank.
    """
    lines: list[str] = []
    title: Optional[str] = None
    previous_was_info = False

    for item in items:
        is_info = item.item_type is GopherItemType.INFO

        if is_info:
            if title is None and item.display.strip():
                title = item.display.strip()
        elif previous_was_info:
            lines.append("")

        lines.append(convert_item(item, language, base))
        previous_was_info = is_info

    markdown = "\n".join(lines) + "\n" if lines else ""
    return GophermapDocument(markdown=markdown, title=title)


def text_to_markdown(text: str, info_string: str = "") -> str:
    """
    Wrap a plain text document in a fenced code block.

    The fence is longer than any backtick run in the text, so the content
    can never close it early.
    """
    longest = max((len(run) for run in _BACKTICK_RUN.findall(text)), default=0)
    fence = "`" * max(3, longest + 1)
    body = text if text.endswith("\n") or not text else text + "\n"
    return f"{fence}{info_string}\n{body}{fence}\n"
