"""Torrent metadata and Stremio stream descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Playback is restricted to Latin-American + Spanish markets.
COUNTRY_WHITELIST: tuple[str, ...] = (
    "MX",
    "ES",
    "AR",
    "CO",
    "PE",
    "CL",
    "VE",
    "EC",
    "BO",
    "PY",
    "UY",
)


@dataclass(frozen=True)
class TorrentFile:
    name: str
    size: int
    index: int
    size_label: str = ""


@dataclass(frozen=True)
class TorrentInfo:
    """Structured result of inspecting a magnet URI.

    Treated as immutable once fetched; persisted without expiry.
    """

    info_hash: str
    display_name: str = "Unknown"
    total_size: int = 0
    size_label: str = ""  # "4.37 GB" or an estimate like "~2-4 GB"
    files: tuple[TorrentFile, ...] = ()
    main_video_file: TorrentFile | None = None
    trackers: tuple[str, ...] = ()
    quality: str = "1080p"
    source: str | None = None
    codec: str | None = None
    language: str = "Multi"
    group: str | None = None

    @property
    def file_count(self) -> int:
        return len(self.files)


@dataclass(frozen=True)
class BehaviorHints:
    binge_group: str
    country_whitelist: tuple[str, ...] = COUNTRY_WHITELIST


@dataclass(frozen=True)
class StreamDescriptor:
    """Stremio Stream object (torrent or external download)."""

    name: str
    description: str
    behavior_hints: BehaviorHints
    title: str | None = None
    info_hash: str | None = None
    file_idx: int | None = None
    sources: list[str] = field(default_factory=list)
    video_size: int | None = None
    filename: str | None = None
    external_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.title is not None:
            data["title"] = self.title
        data["description"] = self.description
        if self.info_hash is not None:
            data["infoHash"] = self.info_hash
        if self.file_idx is not None:
            data["fileIdx"] = self.file_idx
        if self.sources:
            data["sources"] = list(self.sources)
        if self.video_size:
            data["videoSize"] = self.video_size
        if self.filename:
            data["filename"] = self.filename
        if self.external_url is not None:
            data["externalUrl"] = self.external_url
        data["behaviorHints"] = {
            "bingeGroup": self.behavior_hints.binge_group,
            "countryWhitelist": list(self.behavior_hints.country_whitelist),
        }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StreamDescriptor:
        hints = data.get("behaviorHints") or {}
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            behavior_hints=BehaviorHints(
                binge_group=hints.get("bingeGroup", ""),
                country_whitelist=tuple(
                    hints.get("countryWhitelist") or COUNTRY_WHITELIST
                ),
            ),
            title=data.get("title"),
            info_hash=data.get("infoHash"),
            file_idx=data.get("fileIdx"),
            sources=list(data.get("sources") or []),
            video_size=data.get("videoSize"),
            filename=data.get("filename"),
            external_url=data.get("externalUrl"),
        )
