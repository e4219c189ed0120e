"""
assetref - Resolution of symbolic picture references to loadable URLs.

Two sources of pictures:
- Bundled: enumerated by build tooling and shipped with the application
- Disk: scanned at runtime from a folder chosen by the user
"""

__version__ = "1.0.0"

from .index import AssetIndex, DiskIndexCache, FileRecord, build_bundled_index, build_disk_index
from .paths import file_url_from_abs, normalize_sep
from .resolver import AssetResolver, resolve_ref

__all__ = [
    "__version__",
    "AssetIndex",
    "AssetResolver",
    "DiskIndexCache",
    "FileRecord",
    "build_bundled_index",
    "build_disk_index",
    "file_url_from_abs",
    "normalize_sep",
    "resolve_ref",
]
