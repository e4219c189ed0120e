"""
In-process cache for the disk index.

Walking a large pictures folder on every resolution would be too slow, so
the last disk index is kept together with the root it was built from. The
index is rebuilt only when the configured root changes, or on an explicit
refresh(). Changes on disk stay invisible until then.

Typical usage:
    cache = DiskIndexCache(JsonPreferenceStore())
    index = cache.get_disk_index()   # None if no root is configured
"""

import threading
from dataclasses import dataclass
from typing import Callable

import structlog

from ..fs import FileSystem, default_filesystem
from ..prefs import PreferenceStore
from .disk import build_disk_index
from .tree import AssetIndex

logger = structlog.get_logger()

# Legacy preference keys, tried in order. The first one is where new
# values are written.
DISK_ROOT_KEYS: tuple[str, ...] = (
    "epic3d.productPictures.diskRoot.v1",
    "epic3d.productPicturesRoot.v1",
)

DiskIndexBuilder = Callable[[str, FileSystem], AssetIndex]


@dataclass(frozen=True)
class _CacheEntry:
    root: str
    index: AssetIndex


class DiskIndexCache:
    """Holds the most recent disk index, keyed by its root path.

    The compare-rebuild-store sequence runs under a lock and the cached
    (root, index) pair is swapped as a whole, so concurrent readers never
    see a half-built index and two threads never rebuild at the same time.
    """

    def __init__(
        self,
        prefs: PreferenceStore,
        fs: FileSystem | None = None,
        keys: tuple[str, ...] = DISK_ROOT_KEYS,
        builder: DiskIndexBuilder = build_disk_index,
    ) -> None:
        """Initialize the cache.

        Args:
            prefs: Store holding the configured disk root
            fs: Filesystem primitives. Defaults to the local filesystem.
            keys: Preference keys for the root, first non-empty wins
            builder: Function building an index for a root
        """
        self.prefs = prefs
        self.fs = fs or default_filesystem()
        self.keys = tuple(keys)
        self._builder = builder
        self._entry: _CacheEntry | None = None
        self._lock = threading.Lock()

    def configured_root(self) -> str | None:
        """Root path from the preference store, or None if unset."""
        return self.prefs.first_non_empty(self.keys)

    def get_disk_index(self) -> AssetIndex | None:
        """Current disk index, rebuilding it if the configured root changed.

        Returns:
            AssetIndex, or None if the filesystem is unavailable or no root
            is configured.
        """
        if not self.fs.available:
            return None

        root = self.configured_root()
        if not root:
            return None

        entry = self._entry
        if entry is not None and entry.root == root:
            return entry.index

        with self._lock:
            entry = self._entry
            if entry is None or entry.root != root:
                entry = self._rebuild(root)
            return entry.index

    def refresh(self) -> AssetIndex | None:
        """Rebuild the index for the configured root even if unchanged."""
        if not self.fs.available:
            return None
        root = self.configured_root()
        if not root:
            return None
        with self._lock:
            return self._rebuild(root).index

    def set_root(self, root: str) -> None:
        """Persist a new disk root under the primary key."""
        self.prefs.set(self.keys[0], root)

    def clear(self) -> None:
        """Forget the cached index."""
        with self._lock:
            self._entry = None

    @property
    def cached_root(self) -> str | None:
        entry = self._entry
        return entry.root if entry else None

    def _rebuild(self, root: str) -> _CacheEntry:
        previous = self._entry.root if self._entry else None
        entry = _CacheEntry(root=root, index=self._builder(root, self.fs))
        self._entry = entry
        logger.info(
            "disk_cache.rebuilt",
            root=root,
            previous_root=previous,
            count=entry.index.count,
        )
        return entry
