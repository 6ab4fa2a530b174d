from .errors import (
    AddonError,
    DatabaseError,
    DataNotFoundError,
    ExternalServiceError,
    InvalidInputError,
    ScrapingError,
    UnsupportedIdTypeError,
)
from .meta import CanonicalMeta, MetaPreview
from .movie import (
    DownloadLink,
    ExternalMetadata,
    MovieDetails,
    MovieRecord,
    Release,
    ReleaseQuery,
)
from .torrent import (
    COUNTRY_WHITELIST,
    BehaviorHints,
    StreamDescriptor,
    TorrentFile,
    TorrentInfo,
)

__all__ = [
    "COUNTRY_WHITELIST",
    "AddonError",
    "BehaviorHints",
    "CanonicalMeta",
    "DataNotFoundError",
    "DatabaseError",
    "DownloadLink",
    "ExternalMetadata",
    "ExternalServiceError",
    "InvalidInputError",
    "MetaPreview",
    "MovieDetails",
    "MovieRecord",
    "Release",
    "ReleaseQuery",
    "ScrapingError",
    "StreamDescriptor",
    "TorrentFile",
    "TorrentInfo",
    "UnsupportedIdTypeError",
]
