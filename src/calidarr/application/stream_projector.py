"""Convert resolved torrents and direct links into Stremio stream descriptors."""

from __future__ import annotations

from collections.abc import Sequence

from calidarr.domain.entities import (
    BehaviorHints,
    DownloadLink,
    MovieRecord,
    StreamDescriptor,
    TorrentFile,
    TorrentInfo,
)

BINGE_GROUP_PREFIX = "cinecalidad-"

VIDEO_EXTENSIONS: frozenset[str] = frozenset(
    {"mp4", "mkv", "avi", "mov", "wmv", "flv", "m4v", "webm"}
)

_DISPLAY_NAME_LIMIT = 50


def binge_group_id(record: MovieRecord | None, request_id: str) -> str:
    """External IMDb id, then scraped IMDb id, then the request id."""
    details = record.movie_details if record is not None else None
    if details is not None:
        if details.external_meta is not None and details.external_meta.imdb:
            return details.external_meta.imdb
        if details.imdb_id:
            return details.imdb_id
    return request_id


def _hints(group_id: str) -> BehaviorHints:
    return BehaviorHints(binge_group=f"{BINGE_GROUP_PREFIX}{group_id}")


def is_video_file(name: str) -> bool:
    return name.lower().rsplit(".", 1)[-1] in VIDEO_EXTENSIONS


def _tags(info: TorrentInfo) -> tuple[str, str]:
    """Return (``"1080p BluRay x264"``, ``" - GROUP"``) label fragments."""
    label = info.quality or "Unknown"
    if info.source:
        label += f" {info.source}"
    if info.codec:
        label += f" {info.codec}"
    group = f" - {info.group}" if info.group else ""
    return label, group


def _sources(trackers: Sequence[str]) -> list[str]:
    return [f"tracker:{t.strip()}" for t in trackers if t and t.strip()]


def _labels(info: TorrentInfo, size_label: str) -> tuple[str, str]:
    tags, group = _tags(info)
    name = f"🎬 {tags} {info.language} | {size_label}{group}"
    title = f"{tags} • {info.language} • {size_label}"
    return name, title


def _file_stream(
    info: TorrentInfo, file: TorrentFile, hints: BehaviorHints
) -> StreamDescriptor:
    name, title = _labels(info, file.size_label)
    return StreamDescriptor(
        name=name,
        title=title,
        description=f"{file.name} ({file.size_label})",
        info_hash=info.info_hash,
        file_idx=file.index,
        sources=_sources(info.trackers),
        video_size=file.size or None,
        filename=file.name or None,
        behavior_hints=hints,
    )


def _single_stream(info: TorrentInfo, hints: BehaviorHints) -> StreamDescriptor:
    main = info.main_video_file
    name, title = _labels(info, info.size_label)
    if main is not None:
        description = f"{main.name} ({main.size_label})"
    else:
        description = info.display_name[:_DISPLAY_NAME_LIMIT]
        if len(info.display_name) > _DISPLAY_NAME_LIMIT:
            description += "..."
    return StreamDescriptor(
        name=name,
        title=title,
        description=description,
        info_hash=info.info_hash,
        file_idx=main.index if main is not None else 0,
        sources=_sources(info.trackers),
        video_size=(main.size if main is not None else info.total_size) or None,
        filename=(main.name if main is not None else info.display_name) or None,
        behavior_hints=hints,
    )


def project_torrent(
    info: TorrentInfo, record: MovieRecord | None, request_id: str
) -> list[StreamDescriptor]:
    """One descriptor per video file, else one for the whole torrent."""
    hints = _hints(binge_group_id(record, request_id))
    video_files = [f for f in info.files if is_video_file(f.name)]
    if video_files:
        return [_file_stream(info, f, hints) for f in video_files]
    return [_single_stream(info, hints)]


def infer_link_quality(label: str | None) -> str:
    name = (label or "").upper()
    if "4K" in name or "2160P" in name:
        return "4K"
    if "720P" in name:
        return "720p"
    return "1080p"


def project_download_link(
    link: DownloadLink, record: MovieRecord | None, request_id: str
) -> StreamDescriptor:
    """Direct-download links bypass torrent inspection entirely."""
    quality = infer_link_quality(link.name)
    return StreamDescriptor(
        name=f"📥 Cinecalidad {quality} - Download",
        description=link.name or "Download",
        external_url=link.url,
        behavior_hints=_hints(binge_group_id(record, request_id)),
    )
