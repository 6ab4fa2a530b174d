"""Protocol-facing metadata records (Stremio ``meta`` and ``metaPreview``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

MetaType = Literal["movie"]


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop ``None`` values and empty lists."""
    return {
        key: value
        for key, value in data.items()
        if value is not None and not (isinstance(value, list) and not value)
    }


@dataclass(frozen=True)
class CanonicalMeta:
    """Normalized movie metadata returned to Stremio.

    Every optional field is either ``None`` / empty (and omitted from
    ``to_dict``) or already validated by the metadata builder.
    """

    id: str
    name: str
    type: MetaType = "movie"
    poster: str | None = None
    background: str | None = None
    year: int | None = None
    description: str | None = None
    genres: list[str] = field(default_factory=list)
    cast: list[str] = field(default_factory=list)
    director: list[str] = field(default_factory=list)
    writer: list[str] = field(default_factory=list)
    imdb_rating: float | None = None
    imdb_id: str | None = None
    release_info: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "type": self.type,
                "name": self.name,
                "poster": self.poster,
                "background": self.background,
                "year": self.year,
                "description": self.description,
                "genres": list(self.genres),
                "cast": list(self.cast),
                "director": list(self.director),
                "writer": list(self.writer),
                "imdbRating": self.imdb_rating,
                "imdbId": self.imdb_id,
                "releaseInfo": self.release_info,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CanonicalMeta:
        return cls(
            id=data["id"],
            name=data["name"],
            poster=data.get("poster"),
            background=data.get("background"),
            year=data.get("year"),
            description=data.get("description"),
            genres=list(data.get("genres") or []),
            cast=list(data.get("cast") or []),
            director=list(data.get("director") or []),
            writer=list(data.get("writer") or []),
            imdb_rating=data.get("imdbRating"),
            imdb_id=data.get("imdbId"),
            release_info=data.get("releaseInfo"),
        )


@dataclass(frozen=True)
class MetaPreview:
    """Catalog entry (Stremio MetaPreview object)."""

    id: str  # "cc_<slug>" or an IMDb id
    name: str
    type: MetaType = "movie"
    poster: str | None = None
    year: int | None = None
    description: str = ""
    genres: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "type": self.type,
                "name": self.name,
                "poster": self.poster,
                "year": self.year,
                "description": self.description,
                "genres": list(self.genres),
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetaPreview:
        return cls(
            id=data["id"],
            name=data["name"],
            poster=data.get("poster"),
            year=data.get("year"),
            description=data.get("description", ""),
            genres=list(data.get("genres") or []),
        )
