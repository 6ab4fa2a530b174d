from .cache import CachePort
from .metadata_provider import MetadataProviderPort
from .movie_store import MovieStorePort
from .release_lister import ReleaseListerPort
from .torrent_inspector import TorrentInspectorPort

__all__ = [
    "CachePort",
    "MetadataProviderPort",
    "MovieStorePort",
    "ReleaseListerPort",
    "TorrentInspectorPort",
]
