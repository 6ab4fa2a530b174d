"""Port for the source site (listing + detail pages)."""

from __future__ import annotations

from typing import Protocol

from calidarr.domain.entities import MovieDetails, Release, ReleaseQuery


class ReleaseListerPort(Protocol):
    """Async interface to the release site.

    Both calls may raise ``ScrapingError``; callers treat that as
    "source unavailable for this attempt".
    """

    async def query(self, query: ReleaseQuery) -> list[Release]:
        """Paginate the listing/search pages, then apply skip/limit."""
        ...

    async def get_details(self, details_link: str) -> MovieDetails | None:
        """Scrape a release detail page (title, IMDb id, download links)."""
        ...
