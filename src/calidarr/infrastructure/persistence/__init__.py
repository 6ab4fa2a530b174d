from .diskcache_store import DiskcacheMovieStore

__all__ = ["DiskcacheMovieStore"]
