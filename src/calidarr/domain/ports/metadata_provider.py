"""Port for external metadata lookups keyed by IMDb id."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from calidarr.domain.entities import ExternalMetadata


@runtime_checkable
class MetadataProviderPort(Protocol):
    async def get_movie_metadata(
        self, imdb_id: str, content_type: str = "movie"
    ) -> ExternalMetadata | None:
        """Fetch canonical metadata.

        Returns None if the id is unknown; raises ``ExternalServiceError``
        if the provider is unreachable or answers garbage.
        """
        ...
