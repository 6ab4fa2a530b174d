from __future__ import annotations

from .load import load_config
from .schema import AddonConfig, AppConfig, EnvOverrides

__all__ = ["AddonConfig", "AppConfig", "EnvOverrides", "load_config"]
