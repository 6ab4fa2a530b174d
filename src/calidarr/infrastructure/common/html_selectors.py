"""CSS-selector-based HTML extraction with fallback chains.

Every helper accepts a primary selector and optional *fallback_selectors*;
the first selector that yields a usable value wins, so minor layout
changes on the source site (renamed class, extra wrapper) degrade to a
fallback instead of an empty result.
"""

from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string with the ``lxml`` parser."""
    return BeautifulSoup(html, "lxml")


def select_items(
    root: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
) -> list[Tag]:
    """Elements matched by the first selector with at least one hit."""
    for sel in (selector, *fallback_selectors):
        items = root.select(sel)
        if items:
            return items
    return []


def extract_text(
    element: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Stripped text of the first matching child with non-empty text."""
    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            text = match.get_text(strip=True)
            if text:
                return text
    return default


def extract_attr(
    element: BeautifulSoup | Tag,
    selector: str,
    *attrs: str,
    default: str = "",
) -> str:
    """First non-empty attribute among *attrs* on the first match.

    With ``selector=""`` the attributes are read from *element* itself.
    """
    match = element if selector == "" else element.select_one(selector)
    if match is None:
        return default
    for attr in attrs:
        val = match.get(attr)
        if val:
            return str(val).strip()
    return default


def absolute_url(base_url: str, href: str) -> str:
    """Resolve protocol-relative and path-relative URLs against *base_url*."""
    if not href:
        return ""
    if href.startswith("//"):
        return f"https:{href}"
    return urljoin(base_url, href)
