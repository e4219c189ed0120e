"""
Módulo index - Índices de imágenes (bundled y disk).

Cada fuente produce un AssetIndex inmutable con un árbol de directorios
y un mapa plano referencia → FileRecord.
"""

from .bundled import (
    AssetEnumerationProvider,
    AssetValue,
    DirectoryWalkProvider,
    StaticManifestProvider,
    StringValue,
    WrappedValue,
    asset_url,
    asset_value_from_raw,
    build_bundled_index,
    detect_provider,
)
from .cache import DISK_ROOT_KEYS, DiskIndexCache
from .disk import build_disk_index
from .tree import (
    AssetIndex,
    DirectoryNode,
    FileRecord,
    IndexOrigin,
    add_path,
    format_tree,
    index_summary,
    iter_records,
    node_at,
)

__all__ = [
    "AssetEnumerationProvider",
    "AssetIndex",
    "AssetValue",
    "DISK_ROOT_KEYS",
    "DirectoryNode",
    "DirectoryWalkProvider",
    "DiskIndexCache",
    "FileRecord",
    "IndexOrigin",
    "StaticManifestProvider",
    "StringValue",
    "WrappedValue",
    "add_path",
    "asset_url",
    "asset_value_from_raw",
    "build_bundled_index",
    "build_disk_index",
    "detect_provider",
    "format_tree",
    "index_summary",
    "iter_records",
    "node_at",
]
