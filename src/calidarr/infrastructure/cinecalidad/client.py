"""CineCalidad site client (ReleaseListerPort over httpx)."""

from __future__ import annotations

import asyncio
from urllib.parse import quote

import httpx
import structlog

from calidarr.domain.entities import (
    DownloadLink,
    MovieDetails,
    Release,
    ReleaseQuery,
    ScrapingError,
)
from calidarr.domain.identifiers import is_valid_magnet_uri
from calidarr.infrastructure.cinecalidad.parsers import (
    parse_detail_page,
    parse_listing,
    parse_magnet_page,
)

log = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://www.cinecalidad.rs"


class CineCalidadClient:
    """Paginates listing/search pages and scrapes detail pages.

    Pages are fetched strictly one after another with a short pause in
    between; magnet pages for one detail page are fetched concurrently.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = DEFAULT_BASE_URL,
        max_latest_pages: int = 3,
        max_search_pages: int = 6,
        page_delay_seconds: float = 0.5,
    ) -> None:
        self._http = http_client
        self.base_url = base_url.rstrip("/")
        self._max_latest_pages = max_latest_pages
        self._max_search_pages = max_search_pages
        self._page_delay = page_delay_seconds

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _fetch_html(self, url: str) -> str:
        try:
            resp = await self._http.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ScrapingError(
                f"HTTP {e.response.status_code} fetching {url}"
            ) from e
        except httpx.HTTPError as e:
            raise ScrapingError(f"{type(e).__name__} fetching {url}: {e}") from e
        return resp.text

    def page_url(self, page: int, search: str = "") -> str:
        path = f"/page/{page}" if page > 1 else "/"
        url = f"{self.base_url}{path}"
        if search:
            url += f"?s={quote(search)}"
        return url

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def query(self, query: ReleaseQuery) -> list[Release]:
        search = query.search.strip()
        max_pages = self._max_search_pages if search else self._max_latest_pages
        releases: list[Release] = []

        for page in range(1, max_pages + 1):
            url = self.page_url(page, search)
            try:
                html = await self._fetch_html(url)
            except ScrapingError as e:
                log.warning(
                    "cinecalidad_page_failed", page=page, url=url, error=str(e)
                )
                if page == 1:
                    break
                continue

            page_releases, more = parse_listing(html, self.base_url, search)
            releases.extend(page_releases)
            log.debug(
                "cinecalidad_page_fetched",
                page=page,
                releases=len(page_releases),
                has_more=more,
            )

            if not more:
                break
            if search and not page_releases:
                break
            if page < max_pages:
                await asyncio.sleep(self._page_delay)

        end = query.skip + query.limit if query.limit else None
        result = releases[query.skip : end]
        log.info(
            "cinecalidad_query_done",
            search=search or None,
            total=len(releases),
            returned=len(result),
        )
        return result

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    async def get_details(self, details_link: str) -> MovieDetails | None:
        html = await self._fetch_html(details_link)
        page = parse_detail_page(html, details_link, self.base_url)
        if page is None:
            raise ScrapingError(f"Detail page without title: {details_link}")

        results = await asyncio.gather(
            *(self._resolve_magnet(url) for _, url in page.torrent_candidates),
            return_exceptions=True,
        )
        links: list[DownloadLink] = []
        for (label, url), result in zip(page.torrent_candidates, results):
            if isinstance(result, BaseException):
                log.warning(
                    "cinecalidad_magnet_page_failed", url=url, error=str(result)
                )
                continue
            if result is not None:
                links.append(DownloadLink(name=label, url=result, type="magnet"))

        log.info(
            "cinecalidad_details_parsed",
            id=page.id,
            imdb_id=page.imdb_id,
            candidates=len(page.torrent_candidates),
            magnets=len(links),
        )
        return MovieDetails(
            title=page.title,
            id=page.id,
            imdb_id=page.imdb_id,
            year=page.year,
            poster=page.poster,
            description=page.description,
            source_url=details_link,
            download_links=tuple(links),
        )

    async def _resolve_magnet(self, page_url: str) -> str | None:
        if page_url.startswith("magnet:"):
            return page_url if is_valid_magnet_uri(page_url) else None
        html = await self._fetch_html(page_url)
        return parse_magnet_page(html)
