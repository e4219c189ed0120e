"""
Reference resolver - turns a stored picture reference into a loadable URL.

Rules, first match wins:
1. Empty ref -> ""
2. Already a URL (data:, blob:, http://, https://, file://) -> unchanged
3. "@pp/..." -> disk index, then bundled index; missing in both -> ""
4. "@media/..." -> file:// URL under <cwd>/data/media/ ("" without filesystem)
5. Anything else -> unchanged

An empty result means "asset missing". Resolution never raises.
"""

from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from .fs import FileSystem, UnavailableFileSystem, default_filesystem
from .index.bundled import AssetEnumerationProvider, build_bundled_index, detect_provider
from .index.cache import DiskIndexCache
from .index.tree import AssetIndex
from .paths import MEDIA_PREFIX, REF_PREFIX, RESOLVED_PREFIXES, file_url_from_abs
from .prefs import JsonPreferenceStore

if TYPE_CHECKING:
    from .config.schema import AppConfig

logger = structlog.get_logger()

DEFAULT_MEDIA_DIR = "data/media/"


def resolve_ref(
    ref: str | None,
    bundled_index: AssetIndex | None,
    disk_index: AssetIndex | None,
    fs: FileSystem | None = None,
    cwd: str | None = None,
    media_dir: str = DEFAULT_MEDIA_DIR,
) -> str:
    """Resolve a picture reference to a URL.

    Args:
        ref: Stored reference (may be empty or None)
        bundled_index: Index of the pictures shipped with the build
        disk_index: Index of the local pictures folder, or None
        fs: Filesystem primitives, used for @media/ refs
        cwd: Base directory for @media/ refs. Defaults to the process cwd.
        media_dir: Relative directory replacing the @media/ prefix

    Returns:
        The URL, or "" if the asset cannot be found.
    """
    r = str(ref) if ref else ""
    if not r:
        return ""

    if r.startswith(RESOLVED_PREFIXES):
        return r

    if r.startswith(REF_PREFIX):
        # Disk first: a user-configured folder overrides bundled defaults
        for index in (disk_index, bundled_index):
            if index is None:
                continue
            record = index.get(r)
            if record is not None:
                return record.url
        return ""

    if r.startswith(MEDIA_PREFIX):
        return _resolve_media(r, fs or default_filesystem(), cwd, media_dir)

    return r


def _resolve_media(ref: str, fs: FileSystem, cwd: str | None, media_dir: str) -> str:
    if not fs.available:
        return ""
    if not media_dir.endswith("/"):
        media_dir += "/"
    try:
        base = cwd if cwd is not None else fs.cwd()
        abs_path = fs.join(base, media_dir + ref[len(MEDIA_PREFIX):])
    except OSError as e:
        logger.warning("resolver.media_failed", ref=ref, error=str(e))
        return ""
    return file_url_from_abs(abs_path)


class AssetResolver:
    """Resolves references against the bundled index and the disk cache.

    The bundled index is built once, when the resolver is created, and
    shared read-only afterwards. The disk index comes from the cache on
    every call, so a new pictures folder is picked up as soon as the
    preference changes.
    """

    def __init__(
        self,
        provider: AssetEnumerationProvider | None,
        disk_cache: DiskIndexCache | None = None,
        fs: FileSystem | None = None,
        cwd: str | None = None,
        media_dir: str = DEFAULT_MEDIA_DIR,
    ) -> None:
        self.fs = fs or default_filesystem()
        self.disk_cache = disk_cache
        self.cwd = cwd
        self.media_dir = media_dir
        self._bundled = build_bundled_index(provider)

    @classmethod
    def from_config(cls, config: "AppConfig") -> "AssetResolver":
        """Wire provider, preference store and filesystem from the configuration."""
        provider = detect_provider(
            manifest_path=config.bundled.manifest,
            bundle_dir=config.bundled.bundle_dir,
            asset_root=config.bundled.asset_root,
            url_prefix=config.bundled.url_prefix,
        )
        fs: FileSystem = default_filesystem() if config.disk.enabled else UnavailableFileSystem()
        prefs = JsonPreferenceStore(config.disk.preferences_file)
        cache = DiskIndexCache(prefs, fs=fs, keys=tuple(config.disk.root_keys))
        cwd = str(Path(config.media.cwd).resolve()) if config.media.cwd else None
        logger.debug(
            "resolver.configured",
            provider=provider.method if provider else "none",
            disk_enabled=config.disk.enabled,
        )
        return cls(provider, cache, fs=fs, cwd=cwd, media_dir=config.media.dir)

    @property
    def bundled_index(self) -> AssetIndex:
        return self._bundled

    @property
    def disk_index(self) -> AssetIndex | None:
        if self.disk_cache is None:
            return None
        return self.disk_cache.get_disk_index()

    def resolve(self, ref: str | None) -> str:
        """Resolve a reference with the current indexes."""
        return resolve_ref(
            ref,
            self._bundled,
            self.disk_index,
            fs=self.fs,
            cwd=self.cwd,
            media_dir=self.media_dir,
        )
