"""
Configuration module for assetref.

Exports the main components for convenient imports.
"""

from .loader import load_config
from .schema import (
    AppConfig,
    BundledConfig,
    DiskConfig,
    LoggingConfig,
    MediaConfig,
)

__all__ = [
    "load_config",
    "AppConfig",
    "BundledConfig",
    "DiskConfig",
    "LoggingConfig",
    "MediaConfig",
]
