"""Port for magnet URI inspection."""

from __future__ import annotations

from typing import Protocol

from calidarr.domain.entities import TorrentInfo


class TorrentInspectorPort(Protocol):
    async def get_torrent_info(self, magnet_uri: str) -> TorrentInfo | None:
        """Structured torrent metadata, or None for an invalid magnet."""
        ...
