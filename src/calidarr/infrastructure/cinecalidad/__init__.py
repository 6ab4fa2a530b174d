from .client import CineCalidadClient

__all__ = ["CineCalidadClient"]
