"""Cache Infrastructure - request-level cache over the persisted store."""

from .cache_layer import CacheLayer, CacheStats

__all__ = ["CacheLayer", "CacheStats"]
