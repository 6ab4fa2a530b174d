"""Tests for CineCalidad HTML parsing."""

from __future__ import annotations

import pytest

from calidarr.infrastructure.cinecalidad.parsers import (
    extract_movie_id,
    extract_year,
    parse_detail_page,
    parse_listing,
    parse_magnet_page,
    title_matches_query,
    unwrap_candidate_url,
)

BASE = "https://www.cinecalidad.rs"

_LISTING_HTML = """
<html><body>
<article>
  <a class="absolute" href="https://www.cinecalidad.rs/pelicula/dune-parte-dos/"></a>
  <img class="rounded" data-src="/wp-content/uploads/dune2.jpg"
       alt="Dune: Parte dos (2024)">
  <div class="in_title">Dune: Parte dos (2024)</div>
  <a aria-label="4K" href="#">4K</a>
</article>
<article>
  <a class="absolute" href="https://www.cinecalidad.rs/pelicula/oppenheimer/"></a>
  <img class="rounded" src="https://img.example.com/opp.jpg" title="Oppenheimer (2023)">
</article>
<article>
  <a class="absolute" href="https://www.cinecalidad.rs/serie/the-bear/"></a>
  <img class="rounded" src="https://img.example.com/bear.jpg">
  <div class="in_title">The Bear</div>
  <div class="selt">Serie</div>
</article>
<div class="wp-pagenavi"><a href="/page/2">2</a></div>
</body></html>
"""

_DETAIL_HTML = """
<html><head>
<meta property="og:image" content="https://img.example.com/og.jpg">
<meta property="og:description" content="Descripción desde og.">
</head><body>
<div id="main_container">
  <div class="single_left"><h1>Dune: Parte dos (2024)</h1></div>
</div>
<div id="imdb-box"><a href="https://www.imdb.com/title/tt15239678/">IMDb</a></div>
<div class="wp-content"><p>Paul Atreides se une a los Fremen.</p></div>
<div id="panel_descarga">
  <a service="BitTorrent" href="/descargar/?id=1">1080p</a>
  <a service="BitTorrent"
     data-url="https://ouo.io/go/x?s=https%3A%2F%2Fwww.cinecalidad.rs%2Fdl%2F2">4K</a>
  <a service="BitTorrent"></a>
  <a service="MEGA" href="https://mega.nz/file/abc">Mega</a>
</div>
</body></html>
"""

_MAGNET = "magnet:?xt=urn:btih:0123456789abcdef0123456789abcdef01234567&dn=Dune"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.cinecalidad.rs/pelicula/dune-parte-dos/", "dune-parte-dos"),
            ("https://www.cinecalidad.rs/pelicula/dune", "pelicula"),
        ],
    )
    def test_extract_movie_id(self, url: str, expected: str) -> None:
        assert extract_movie_id(url) == expected

    def test_extract_year(self) -> None:
        assert extract_year("Dune (2021)") == "2021"
        assert extract_year("Dune") is None

    @pytest.mark.parametrize(
        ("query", "title", "expected"),
        [
            ("dune", "Dune: Parte dos (2024)", True),
            ("pelicula", "Película de terror", True),
            ("dune parte", "Dune: Parte dos", True),
            ("oppenheimer", "Dune: Parte dos", False),
            ("el de la", "Cualquier cosa", True),  # only short words
            ("", "Dune", True),
        ],
    )
    def test_title_matches_query(self, query: str, title: str, expected: bool) -> None:
        assert title_matches_query(query, title) is expected

    def test_unwrap_ouo_link(self) -> None:
        href = "https://ouo.io/go/x?s=https%3A%2F%2Fexample.com%2Fdl"
        assert unwrap_candidate_url(href) == "https://example.com/dl"

    def test_unwrap_leaves_other_links(self) -> None:
        href = "https://example.com/?s=1"
        assert unwrap_candidate_url(href) == href


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class TestParseListing:
    def test_parses_movie_rows_and_skips_series(self) -> None:
        releases, more = parse_listing(_LISTING_HTML, BASE)

        assert more is True
        assert [r.id for r in releases] == [
            "dune-parte-dos",
            "dune-parte-dos-4k",
            "oppenheimer",
        ]

    def test_row_fields(self) -> None:
        releases, _ = parse_listing(_LISTING_HTML, BASE)
        dune = releases[0]

        assert dune.title == "Dune: Parte dos (2024)"
        assert dune.year == "2024"
        assert dune.poster == "https://www.cinecalidad.rs/wp-content/uploads/dune2.jpg"
        assert dune.details_link == f"{BASE}/pelicula/dune-parte-dos/"
        assert dune.quality == "1080p"

    def test_4k_variant(self) -> None:
        releases, _ = parse_listing(_LISTING_HTML, BASE)
        uhd = releases[1]

        assert uhd.quality == "2160p"
        assert uhd.title == "Dune: Parte dos (2024) (4K)"
        assert uhd.details_link == releases[0].details_link

    def test_title_falls_back_to_image_title(self) -> None:
        releases, _ = parse_listing(_LISTING_HTML, BASE)
        assert releases[2].title == "Oppenheimer (2023)"
        assert releases[2].poster == "https://img.example.com/opp.jpg"

    def test_search_filters_by_title_words(self) -> None:
        releases, _ = parse_listing(_LISTING_HTML, BASE, search="oppenheimer")
        assert [r.id for r in releases] == ["oppenheimer"]

    def test_no_pagination_marker(self) -> None:
        _, more = parse_listing("<html><body></body></html>", BASE)
        assert more is False


# ---------------------------------------------------------------------------
# Detail + magnet pages
# ---------------------------------------------------------------------------


class TestParseDetailPage:
    def test_fields(self) -> None:
        url = "https://www.cinecalidad.rs/pelicula/dune-parte-dos/"
        page = parse_detail_page(_DETAIL_HTML, url, BASE)

        assert page is not None
        assert page.title == "Dune: Parte dos (2024)"
        assert page.id == "dune-parte-dos"
        assert page.year == "2024"
        assert page.imdb_id == "tt15239678"
        assert page.poster == "https://img.example.com/og.jpg"
        assert page.description == "Paul Atreides se une a los Fremen."

    def test_torrent_candidates(self) -> None:
        page = parse_detail_page(_DETAIL_HTML, "https://x/pelicula/dune/", BASE)

        assert page is not None
        assert page.torrent_candidates == (
            ("1080p", "https://www.cinecalidad.rs/descargar/?id=1"),
            ("4K", "https://www.cinecalidad.rs/dl/2"),
        )

    def test_missing_title_returns_none(self) -> None:
        assert parse_detail_page("<html><body></body></html>", "u", BASE) is None

    def test_missing_imdb_is_allowed(self) -> None:
        html = (
            '<div id="main_container"><div class="single_left">'
            "<h1>Sin IMDb</h1></div></div>"
        )
        page = parse_detail_page(html, "https://x/pelicula/sin-imdb/", BASE)
        assert page is not None
        assert page.imdb_id is None
        assert page.torrent_candidates == ()


class TestParseMagnetPage:
    def test_valid_magnet(self) -> None:
        html = f'<div id="texto"><div><a href="{_MAGNET}">Magnet</a></div></div>'
        assert parse_magnet_page(html) == _MAGNET

    def test_invalid_magnet(self) -> None:
        html = '<div id="texto"><div><a href="magnet:?xt=urn:btih:x">M</a></div></div>'
        assert parse_magnet_page(html) is None

    def test_no_link(self) -> None:
        assert parse_magnet_page("<html></html>") is None
