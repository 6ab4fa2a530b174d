"""HTML parsing for CineCalidad listing, detail and magnet pages.

Pure functions over HTML strings; all network access lives in the client.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

import structlog
from bs4 import BeautifulSoup, Tag
from unidecode import unidecode

from calidarr.domain.entities import Release
from calidarr.domain.identifiers import is_valid_magnet_uri
from calidarr.infrastructure.common.html_selectors import (
    absolute_url,
    extract_attr,
    extract_text,
    parse_html,
    select_items,
)

log = structlog.get_logger(__name__)

ROW_SELECTOR = "article:has(a.absolute):has(img.rounded), .home_post_cont.post_box"
PAGINATION_SELECTOR = ".load_more_texto, .wp-pagenavi"
DETAIL_TITLE_SELECTOR = "#main_container > div.single_left > h1"
IMDB_LINK_SELECTOR = "#imdb-box > a"
TORRENT_CANDIDATE_SELECTOR = '#panel_descarga [service="BitTorrent"]'
MAGNET_LINK_SELECTOR = "#texto > div > a"

_YEAR_RE = re.compile(r"\((\d{4})\)")
_IMDB_RE = re.compile(r"/title/(tt\d+)/")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_SPACES_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class DetailPage:
    """Fields scraped from a release detail page before magnet resolution."""

    title: str
    id: str
    year: str | None
    poster: str | None
    description: str | None
    imdb_id: str | None
    torrent_candidates: tuple[tuple[str, str], ...]  # (label, url)


def extract_movie_id(url: str) -> str:
    """Second-to-last path segment: ``.../dune-parte-dos/`` -> ``dune-parte-dos``."""
    parts = url.split("/")
    if len(parts) >= 2 and parts[-2]:
        return parts[-2]
    return parts[-1] or "unknown"


def extract_year(title: str) -> str | None:
    match = _YEAR_RE.search(title)
    return match.group(1) if match else None


def _fold(text: str) -> str:
    folded = _NON_WORD_RE.sub(" ", unidecode(text).lower())
    return _SPACES_RE.sub(" ", folded).strip()


def _significant_words(text: str) -> list[str]:
    return [w for w in _fold(text).split(" ") if len(w) > 2]


def title_matches_query(query: str, title: str) -> bool:
    """Every query word (>2 chars, accent-folded) is inside some title word."""
    if not query or not title:
        return True
    title_words = _significant_words(title)
    return all(
        any(word in title_word for title_word in title_words)
        for word in _significant_words(query)
    )


def has_more_pages(soup: BeautifulSoup) -> bool:
    return bool(soup.select(PAGINATION_SELECTOR))


def _row_title(row: Tag, link: Tag, img: Tag) -> str:
    title = extract_text(
        row,
        ".in_title",
        ".hover_caption_caption .in_title",
        ".home_post_content .in_title",
    )
    if title:
        return title
    for candidate in (
        link.get("title"),
        img.get("title"),
        img.get("alt"),
        link.get_text(strip=True),
    ):
        if candidate:
            return str(candidate).strip()
    return ""


def _parse_row(row: Tag, base_url: str, search: str) -> list[Release]:
    if row.select_one("div.selt"):
        return []

    link = row.select_one("a.absolute") or row.select_one("a")
    img = row.select_one("img.rounded") or row.select_one(".wp-post-image")
    if link is None or img is None:
        return []

    title = _row_title(row, link, img)
    if search and not title_matches_query(search, title):
        return []
    if not title:
        return []

    href = extract_attr(link, "", "href")
    if not href:
        return []

    details_link = absolute_url(base_url, href)
    movie_id = extract_movie_id(details_link)
    poster_src = extract_attr(img, "", "data-src", "src")
    poster = absolute_url(base_url, poster_src) if poster_src else None
    year = extract_year(title)

    releases = [
        Release(
            id=movie_id,
            title=title,
            original_title=title,
            year=year,
            poster=poster,
            details_link=details_link,
        )
    ]
    if row.select_one('a[aria-label="4K"]'):
        releases.append(
            Release(
                id=f"{movie_id}-4k",
                title=f"{title} (4K)",
                original_title=title,
                year=year,
                poster=poster,
                details_link=details_link,
                quality="2160p",
            )
        )
    return releases


def parse_listing(
    html: str, base_url: str, search: str = ""
) -> tuple[list[Release], bool]:
    """Releases on a listing/search page plus whether more pages follow."""
    soup = parse_html(html)
    releases: list[Release] = []
    for row in select_items(soup, ROW_SELECTOR):
        releases.extend(_parse_row(row, base_url, search))
    log.debug("cinecalidad_listing_parsed", releases=len(releases))
    return releases, has_more_pages(soup)


def unwrap_candidate_url(href: str) -> str:
    """ouo.io shortener links carry the real target in ``?s=``."""
    if "ouo.io" in href and "?s=" in href:
        target = parse_qs(urlparse(href).query).get("s")
        if target and target[0]:
            return target[0]
    return href


def parse_detail_page(html: str, url: str, base_url: str) -> DetailPage | None:
    """Parse a detail page; None when the page has no title."""
    soup = parse_html(html)
    title = extract_text(soup, DETAIL_TITLE_SELECTOR)
    if not title:
        return None

    imdb_href = extract_attr(soup, IMDB_LINK_SELECTOR, "href")
    imdb_match = _IMDB_RE.search(imdb_href) if imdb_href else None

    poster = extract_attr(soup, ".poster img", "src") or extract_attr(
        soup, ".movie-poster img", "src"
    )
    if not poster:
        poster = extract_attr(soup, 'meta[property="og:image"]', "content")

    description = extract_text(soup, ".wp-content p") or extract_attr(
        soup, 'meta[property="og:description"]', "content"
    )

    candidates: list[tuple[str, str]] = []
    for element in soup.select(TORRENT_CANDIDATE_SELECTOR):
        href = extract_attr(element, "", "href", "data-url")
        if not href:
            continue
        label = element.get_text(strip=True) or "BitTorrent Download"
        target = absolute_url(base_url, unwrap_candidate_url(href))
        candidates.append((label, target))

    return DetailPage(
        title=title,
        id=extract_movie_id(url),
        year=extract_year(title),
        poster=absolute_url(base_url, poster) if poster else None,
        description=description or None,
        imdb_id=imdb_match.group(1) if imdb_match else None,
        torrent_candidates=tuple(candidates),
    )


def parse_magnet_page(html: str) -> str | None:
    """The magnet link on an intermediate download page, if valid."""
    href = extract_attr(parse_html(html), MAGNET_LINK_SELECTOR, "href")
    if href and is_valid_magnet_uri(href):
        return href
    return None
