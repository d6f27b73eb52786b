"""Favicon markup for an HTML document: build the tag block, drop stale tags, append the new ones.

Stale tags are located with html.parser and cut out of the original text, so the
rest of the document (PHP blocks, templates, formatting) is written back as is.
"""

from __future__ import annotations

import html.parser
import logging
import re
from pathlib import Path

from favicons.config.loader import NONE, FaviconOptions
from favicons.core.planner import (
    APPLE_TOUCH_ICON,
    COAST_ICON,
    FAVICON_ICO,
    FAVICON_PNG,
    apple_icon_name,
    apple_suffix,
    tile_name,
)

logger = logging.getLogger(__name__)

LINK_RELS = frozenset(("shortcut icon", "icon", "apple-touch-icon", "apple-touch-icon-precomposed"))
META_NAMES = frozenset(("msapplication-TileImage", "msapplication-TileColor"))
META_NAME_FRAGMENT = "msapplication-square"

# Newest iOS sizes first, 57x57 last
APPLE_LINK_ORDER = ("152x152", "120x120", "76x76", "60x60", "144x144", "114x114", "72x72")

_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)


def build_tag_block(options: FaviconOptions, tile_color: str = NONE) -> str:
    prefix = options.html_prefix
    elements = ""
    if options.windows_tile:
        for size in ("70x70", "150x150", "310x310"):
            elements += f'\t<meta name="msapplication-square{size}logo" content="{prefix}{tile_name(size)}"/>\n'
        elements += f'\t<meta name="msapplication-TileImage" content="{prefix}{tile_name("144x144")}"/>\n'
        if tile_color and tile_color != NONE:
            elements += f'\t<meta name="msapplication-TileColor" content="{tile_color}"/>\n'

    if options.apple:
        for size in APPLE_LINK_ORDER:
            rel = "apple-touch-icon" + apple_suffix(size, options.precomposed)
            href = prefix + apple_icon_name(size, options.precomposed)
            elements += f'\t<link rel="{rel}" sizes="{size}" href="{href}">\n'
        elements += f'\t<link rel="apple-touch-icon" sizes="57x57" href="{prefix}{APPLE_TOUCH_ICON}">\n'

    if options.coast:
        elements += f'\t<link rel="icon" sizes="228x228" href="{prefix}{COAST_ICON}" />\n'

    if options.regular:
        elements += f'\t<link rel="shortcut icon" href="{prefix}{FAVICON_ICO}" />\n'
        elements += f'\t<link rel="icon" type="image/png" sizes="64x64" href="{prefix}{FAVICON_PNG}" />\n'
    return elements


def _is_favicon_tag(tag: str, attrs: dict[str, str]) -> bool:
    if tag == "link":
        return attrs.get("rel") in LINK_RELS
    if tag == "meta":
        name = attrs.get("name")
        return bool(name) and (name in META_NAMES or META_NAME_FRAGMENT in name)
    return False


class _FaviconTagFinder(html.parser.HTMLParser):
    """Collects (start, end) offsets of favicon link/meta tags in the raw text."""

    def __init__(self, text: str) -> None:
        super().__init__(convert_charrefs=True)
        self.spans: list[tuple[int, int]] = []
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", text)]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        values = {k: v or "" for k, v in attrs}
        if not _is_favicon_tag(tag, values):
            return
        raw = self.get_starttag_text() or ""
        line, col = self.getpos()
        start = self._line_starts[line - 1] + col
        self.spans.append((start, start + len(raw)))


def _widen_to_line(text: str, start: int, end: int) -> tuple[int, int]:
    """Take the whole line when the tag is the only thing on it."""
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end < 0:
        line_end = len(text)
    if text[line_start:start].strip() or text[end:line_end].strip():
        return start, end
    return line_start, min(line_end + 1, len(text))


def strip_favicon_tags(document: str) -> str:
    finder = _FaviconTagFinder(document)
    finder.feed(document)
    finder.close()
    out = []
    pos = 0
    for start, end in finder.spans:
        start, end = _widen_to_line(document, start, end)
        if start < pos:
            start = pos
        out.append(document[pos:start])
        pos = end
    out.append(document[pos:])
    return "".join(out)


def is_blank(document: str) -> bool:
    return not " ".join(document.split())


def inject(document: str, elements: str) -> str:
    """Append elements at the end of <head>, or at the end of the document without one."""
    match = _HEAD_CLOSE.search(document)
    if match is None:
        if document and not document.endswith("\n"):
            document += "\n"
        return document + elements
    head = document[: match.start()]
    if head and not head.endswith("\n"):
        head += "\n"
    return head + elements + document[match.start():]


def update_html(document: str, options: FaviconOptions, tile_color: str = NONE) -> str:
    stripped = strip_favicon_tags(document)
    if is_blank(stripped):
        stripped = ""
    return inject(stripped, build_tag_block(options, tile_color))


def write_html(path: str | Path, options: FaviconOptions, tile_color: str = NONE) -> str:
    target = Path(path)
    contents = target.read_text(encoding="utf-8") if target.exists() else ""
    out = update_html(contents, options, tile_color)
    if target.suffix == ".php":
        # PHP blocks must reach the file unescaped
        out = re.sub(r"&lt;\?", "<?", out, flags=re.IGNORECASE)
        out = re.sub(r"\?&gt;", "?>", out, flags=re.IGNORECASE)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(out, encoding="utf-8")
    logger.info("Updated HTML %s", target)
    return out
