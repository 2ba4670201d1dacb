"""
Gopher Menu Parser module.

Parses RFC 1436 menus into GopherItem records. Servers in the wild send
all sorts of broken lines, so a bad line is recorded and skipped rather than
failing the whole menu.
"""

from typing import Optional

from .enums import GopherItemType
from .exceptions import MalformedMenuLineError
from .fetch_logger import FetchLogger
from .models import GopherItem, GopherMenu, MalformedLine


FIELD_SEPARATOR = "\t"
END_OF_MENU = "."

# Types that carry no link and may legitimately omit every field after the
# display text
_TEXT_ONLY_TYPES = frozenset({GopherItemType.INFO, GopherItemType.ERROR})


def parse_port(text: str) -> int:
    """Parse a menu port field. Anything unusable becomes 0."""
    text = text.strip()
    if not text.isdigit():
        return 0
    port = int(text)
    return port if 0 < port <= 65535 else 0


def parse_menu_line(line: str) -> GopherItem:
    """
    Parse one menu line into a GopherItem.

    The line must already have its line terminator removed.

    Raises:
        MalformedMenuLineError: If the line is empty or a linkable item has
            no selector and host fields at all
    """
    line = line.rstrip("\r")
    if not line:
        raise MalformedMenuLineError(line, "empty line")

    type_char = line[0]
    item_type = GopherItemType.from_char(type_char)
    rest = line[1:]

    if FIELD_SEPARATOR not in rest and item_type not in _TEXT_ONLY_TYPES:
        raise MalformedMenuLineError(line, "line has no TAB-separated fields")

    fields = rest.split(FIELD_SEPARATOR)
    # Missing trailing fields default to empty / port 0
    fields += [""] * (4 - len(fields))
    display, selector, host, port_text = fields[:4]

    return GopherItem(
        item_type=item_type,
        type_char=type_char,
        display=display,
        selector=selector,
        host=host,
        port=parse_port(port_text),
    )


def parse_menu(text: str, logger: Optional[FetchLogger] = None) -> GopherMenu:
    """
    Parse a complete menu response.

    Lines are split on LF with any CR stripped. Empty lines are skipped and
    parsing stops at a lone '.' line. Malformed lines end up in
    GopherMenu.skipped in source order.

    Args:
        text: Decoded menu text
        logger: Optional logger for skipped lines

    Returns:
        GopherMenu with items in source order
    """
    menu = GopherMenu()

    for line_number, raw_line in enumerate(text.split("\n"), start=1):
        line = raw_line.rstrip("\r")

        if line == END_OF_MENU:
            break
        if not line:
            continue

        try:
            menu.items.append(parse_menu_line(line))
        except MalformedMenuLineError as e:
            reason = e.details["reason"]
            menu.skipped.append(MalformedLine(line_number=line_number, raw=line, reason=reason))
            if logger is not None:
                logger.debug("gopher_menu", "Skipped malformed menu line", {
                    "line_number": line_number,
                    "reason": reason,
                })

    return menu
