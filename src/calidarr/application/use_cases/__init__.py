from .stremio_catalog import StremioCatalogUseCase
from .stremio_meta import StremioMetaUseCase
from .stremio_stream import StremioStreamUseCase

__all__ = [
    "StremioCatalogUseCase",
    "StremioMetaUseCase",
    "StremioStreamUseCase",
]
