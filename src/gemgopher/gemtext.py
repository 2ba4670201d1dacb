"""
Gemtext to Markdown converter.

text/gemini is line oriented: the first characters of a line decide what it
is. Headings, quotes and plain text are already valid Markdown; links, list
items and preformatted toggles need rewriting.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from .url_parser import resolve_url


LINK_PREFIX = "=>"
LIST_PREFIX = "* "
PREFORMAT_TOGGLE = "```"

LINK_PATTERN = re.compile(r'^=>[ \t]*(\S+)(?:[ \t]+(.*))?$')
HEADING_PATTERN = re.compile(r'^#{1,3}(?!#)[ \t]*(.*)$')


@dataclass
class GemtextLink:
    """A link line found in a gemtext document."""

    url: str
    text: Optional[str] = None


@dataclass
class GemtextDocument:
    """Result of converting a gemtext document."""

    markdown: str
    title: Optional[str] = None
    links: list[GemtextLink] = field(default_factory=list)


def parse_link_line(line: str) -> Optional[GemtextLink]:
    """Split a '=>' line into target and optional label."""
    match = LINK_PATTERN.match(line.rstrip())
    if not match:
        return None
    label = (match.group(2) or "").strip()
    return GemtextLink(url=match.group(1), text=label or None)


def gemtext_to_markdown(text: str, base_url: Optional[str] = None) -> GemtextDocument:
    """
    Convert gemtext to Markdown.

    Args:
        text: Decoded text/gemini body
        base_url: URL of the document, used to resolve relative links

    Returns:
        GemtextDocument with the Markdown, the first heading as title, and
        every link in document order
    """
    lines: list[str] = []
    links: list[GemtextLink] = []
    title: Optional[str] = None
    preformatted = False

    for line in text.splitlines():
        if line.startswith(PREFORMAT_TOGGLE):
            if preformatted:
                lines.append(PREFORMAT_TOGGLE)
            else:
                # Alt text becomes the info string
                lines.append(PREFORMAT_TOGGLE + line[len(PREFORMAT_TOGGLE):].strip())
            preformatted = not preformatted
            continue

        if preformatted:
            lines.append(line)
            continue

        if line.startswith(LINK_PREFIX):
            link = parse_link_line(line)
            if link is None:
                lines.append(line)
                continue
            if base_url:
                link.url = resolve_url(base_url, link.url)
            links.append(link)
            lines.append(f"[{link.text or link.url}]({link.url})")
            continue

        if line.startswith(LIST_PREFIX):
            lines.append("- " + line[len(LIST_PREFIX):])
            continue

        if title is None and line.startswith("#"):
            match = HEADING_PATTERN.match(line)
            if match and match.group(1).strip():
                title = match.group(1).strip()

        lines.append(line)

    if preformatted:
        lines.append(PREFORMAT_TOGGLE)

    return GemtextDocument(markdown="\n".join(lines), title=title, links=links)
