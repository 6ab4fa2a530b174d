from .client import CinemetaClient

__all__ = ["CinemetaClient"]
