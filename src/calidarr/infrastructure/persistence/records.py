"""JSON (de)serialization of persisted movie records and torrent info."""

from __future__ import annotations

import json
from typing import Any

from calidarr.domain.entities import (
    CanonicalMeta,
    DownloadLink,
    ExternalMetadata,
    MovieDetails,
    MovieRecord,
    Release,
    TorrentFile,
    TorrentInfo,
)


def _release_to_dict(release: Release) -> dict[str, Any]:
    return {
        "id": release.id,
        "title": release.title,
        "original_title": release.original_title,
        "year": release.year,
        "poster": release.poster,
        "details_link": release.details_link,
        "quality": release.quality,
        "category": release.category,
        "size": release.size,
        "imdb_id": release.imdb_id,
    }


def _release_from_dict(d: dict[str, Any]) -> Release:
    return Release(
        id=d["id"],
        title=d.get("title", ""),
        original_title=d.get("original_title", ""),
        year=d.get("year"),
        poster=d.get("poster"),
        details_link=d.get("details_link", ""),
        quality=d.get("quality", "1080p"),
        category=d.get("category", "movie"),
        size=d.get("size"),
        imdb_id=d.get("imdb_id"),
    )


def _external_to_dict(ext: ExternalMetadata) -> dict[str, Any]:
    return {
        "imdb": ext.imdb,
        "title": ext.title,
        "original_title": ext.original_title,
        "year": ext.year,
        "poster": ext.poster,
        "background": ext.background,
        "description": ext.description,
        "genres": ext.genres,
        "cast": ext.cast,
        "director": ext.director,
        "writer": ext.writer,
        "imdb_rating": ext.imdb_rating,
    }


def _external_from_dict(d: dict[str, Any]) -> ExternalMetadata:
    return ExternalMetadata(
        imdb=d.get("imdb"),
        title=d.get("title"),
        original_title=d.get("original_title"),
        year=d.get("year"),
        poster=d.get("poster"),
        background=d.get("background"),
        description=d.get("description"),
        genres=d.get("genres"),
        cast=d.get("cast"),
        director=d.get("director"),
        writer=d.get("writer"),
        imdb_rating=d.get("imdb_rating"),
    )


def _details_to_dict(details: MovieDetails) -> dict[str, Any]:
    return {
        "title": details.title,
        "id": details.id,
        "imdb_id": details.imdb_id,
        "year": details.year,
        "poster": details.poster,
        "description": details.description,
        "source_url": details.source_url,
        "download_links": [
            {"name": link.name, "url": link.url, "type": link.type}
            for link in details.download_links
        ],
        "external_meta": (
            _external_to_dict(details.external_meta)
            if details.external_meta is not None
            else None
        ),
    }


def _details_from_dict(d: dict[str, Any]) -> MovieDetails:
    external = d.get("external_meta")
    return MovieDetails(
        title=d["title"],
        id=d.get("id"),
        imdb_id=d.get("imdb_id"),
        year=d.get("year"),
        poster=d.get("poster"),
        description=d.get("description"),
        source_url=d.get("source_url", ""),
        download_links=tuple(
            DownloadLink(
                name=link.get("name", ""),
                url=link["url"],
                type=link.get("type", "magnet"),
            )
            for link in d.get("download_links") or []
        ),
        external_meta=_external_from_dict(external) if external else None,
    )


def serialize_record(record: MovieRecord) -> str:
    return json.dumps(
        {
            "release": (
                _release_to_dict(record.release) if record.release else None
            ),
            "movie_details": (
                _details_to_dict(record.movie_details)
                if record.movie_details
                else None
            ),
            "external_meta": (
                _external_to_dict(record.external_meta)
                if record.external_meta
                else None
            ),
            "meta": record.meta.to_dict() if record.meta else None,
            "last_updated": record.last_updated,
        }
    )


def deserialize_record(data: str) -> MovieRecord:
    d = json.loads(data)
    return MovieRecord(
        release=_release_from_dict(d["release"]) if d.get("release") else None,
        movie_details=(
            _details_from_dict(d["movie_details"]) if d.get("movie_details") else None
        ),
        external_meta=(
            _external_from_dict(d["external_meta"]) if d.get("external_meta") else None
        ),
        meta=CanonicalMeta.from_dict(d["meta"]) if d.get("meta") else None,
        last_updated=d.get("last_updated", ""),
    )


# --- Torrent info ---


def _file_to_dict(f: TorrentFile) -> dict[str, Any]:
    return {
        "name": f.name,
        "size": f.size,
        "index": f.index,
        "size_label": f.size_label,
    }


def _file_from_dict(d: dict[str, Any]) -> TorrentFile:
    return TorrentFile(
        name=d["name"],
        size=d.get("size", 0),
        index=d.get("index", 0),
        size_label=d.get("size_label", ""),
    )


def serialize_torrent(info: TorrentInfo) -> str:
    return json.dumps(
        {
            "info_hash": info.info_hash,
            "display_name": info.display_name,
            "total_size": info.total_size,
            "size_label": info.size_label,
            "files": [_file_to_dict(f) for f in info.files],
            "main_video_file": (
                _file_to_dict(info.main_video_file) if info.main_video_file else None
            ),
            "trackers": list(info.trackers),
            "quality": info.quality,
            "source": info.source,
            "codec": info.codec,
            "language": info.language,
            "group": info.group,
        }
    )


def deserialize_torrent(data: str) -> TorrentInfo:
    d = json.loads(data)
    main = d.get("main_video_file")
    return TorrentInfo(
        info_hash=d["info_hash"],
        display_name=d.get("display_name", "Unknown"),
        total_size=d.get("total_size", 0),
        size_label=d.get("size_label", ""),
        files=tuple(_file_from_dict(f) for f in d.get("files") or []),
        main_video_file=_file_from_dict(main) if main else None,
        trackers=tuple(d.get("trackers") or []),
        quality=d.get("quality", "1080p"),
        source=d.get("source"),
        codec=d.get("codec"),
        language=d.get("language", "Multi"),
        group=d.get("group"),
    )
