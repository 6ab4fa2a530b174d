from .magnet_inspector import MagnetInspector

__all__ = ["MagnetInspector"]
