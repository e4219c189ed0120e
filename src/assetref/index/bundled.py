"""
Bundled index - images shipped with the application build.

Build tooling enumerates the bundled pictures as ``relative path -> value``
pairs. The value is opaque to us: either the URL string itself or a wrapper
object exposing it under ``default``. Two enumeration providers exist and
one of them is selected once at startup:

- StaticManifestProvider: a JSON manifest written by the build
- DirectoryWalkProvider: a directory of pictures served under a URL prefix

Building never raises. Environment problems surface as an empty index with
a diagnostic ``error``; an enumeration that simply has no pictures yields
an empty index with ``error=None``.
"""

import json
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import structlog

from ..paths import REF_PREFIX, is_image_file, normalize_sep
from .tree import AssetIndex, IndexBuilder, IndexOrigin, empty_index

logger = structlog.get_logger()

DEFAULT_ASSET_ROOT = "productPictures"

NO_ENUMERATION_ERROR = "no bundled asset enumeration available"

_LEADING_DOT_SLASH_RE = re.compile(r"^(?:\./)+")


# --- Asset values ---

@dataclass(frozen=True)
class StringValue:
    """Enumeration value that already is the URL."""

    url: str


@dataclass(frozen=True)
class WrappedValue:
    """Module-style value exposing the URL under ``default``."""

    default: str


AssetValue = Union[StringValue, WrappedValue]


def asset_value_from_raw(raw: Any) -> AssetValue | None:
    """Convert a raw build-tooling value. None if the shape is not recognized."""
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, dict) and isinstance(raw.get("default"), str):
        return WrappedValue(raw["default"])
    return None


def asset_url(value: AssetValue | None) -> str:
    """Unwrap an asset value into its URL ("" for unrecognized values)."""
    match value:
        case StringValue(url=url):
            return url
        case WrappedValue(default=default):
            return default
        case _:
            return ""


# --- Enumeration providers ---

class AssetEnumerationProvider(ABC):
    """Source of ``relative path -> asset value`` pairs for bundled pictures."""

    method: str = "none"
    # Structural prefix stripped from every key ("productPictures" -> "a/b.png")
    asset_root: str = ""

    @abstractmethod
    def entries(self) -> dict[str, AssetValue | None]:
        """Enumerate the bundled pictures. May raise; the builder handles it."""


class StaticManifestProvider(AssetEnumerationProvider):
    """Reads a JSON manifest produced at build time.

    Format::

        {
          "./productPictures/room/lamp.png": "/static/media/lamp.3f2a.png",
          "./productPictures/room/sofa.JPG": {"default": "/static/media/sofa.91c.jpg"}
        }
    """

    method = "static-manifest"

    def __init__(self, manifest_path: Path, asset_root: str = DEFAULT_ASSET_ROOT) -> None:
        self.manifest_path = Path(manifest_path)
        self.asset_root = asset_root

    def entries(self) -> dict[str, AssetValue | None]:
        data = json.loads(self.manifest_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(
                f"manifest must be a JSON object, got {type(data).__name__}"
            )
        return {
            str(key): asset_value_from_raw(raw)
            for key, raw in data.items()
            if is_image_file(str(key))
        }


class DirectoryWalkProvider(AssetEnumerationProvider):
    """Enumerates pictures in a directory shipped next to the application.

    Each picture is served as ``url_prefix + relative path``.
    """

    method = "directory-walk"

    def __init__(self, bundle_dir: Path, url_prefix: str = "/static/productPictures/") -> None:
        self.bundle_dir = Path(bundle_dir)
        self.url_prefix = url_prefix if url_prefix.endswith("/") else url_prefix + "/"

    def entries(self) -> dict[str, AssetValue | None]:
        if not self.bundle_dir.is_dir():
            raise NotADirectoryError(f"bundle directory not found: {self.bundle_dir}")

        result: dict[str, AssetValue | None] = {}
        for dirpath, dirnames, filenames in os.walk(self.bundle_dir):
            dirnames.sort()
            for filename in sorted(filenames):
                if not is_image_file(filename):
                    continue
                rel = Path(dirpath, filename).relative_to(self.bundle_dir).as_posix()
                result[f"./{rel}"] = StringValue(self.url_prefix + rel)
        return result


def detect_provider(
    manifest_path: Path | None = None,
    bundle_dir: Path | None = None,
    asset_root: str = DEFAULT_ASSET_ROOT,
    url_prefix: str = "/static/productPictures/",
) -> AssetEnumerationProvider | None:
    """Pick the enumeration provider once, in fixed priority order.

    1. Static manifest, if the file exists
    2. Directory walk, if the directory exists
    3. None (no enumeration mechanism in this environment)
    """
    if manifest_path is not None and Path(manifest_path).is_file():
        return StaticManifestProvider(Path(manifest_path), asset_root=asset_root)
    if bundle_dir is not None and Path(bundle_dir).is_dir():
        return DirectoryWalkProvider(Path(bundle_dir), url_prefix=url_prefix)
    return None


# --- Builder ---

def strip_asset_root(key: str, asset_root: str = "") -> str:
    """Canonical relative path of an enumeration key.

    ``./productPictures/a/b.png`` -> ``a/b.png`` when asset_root is
    ``productPictures``.
    """
    rel = _LEADING_DOT_SLASH_RE.sub("", normalize_sep(key))
    root = normalize_sep(asset_root).strip("/")
    if root and rel.startswith(root + "/"):
        rel = rel[len(root) + 1:]
    return rel


def build_bundled_index(provider: AssetEnumerationProvider | None) -> AssetIndex:
    """Build the bundled index from an enumeration provider.

    Args:
        provider: Provider chosen by detect_provider(), or None if the
            environment has no enumeration mechanism.

    Returns:
        AssetIndex with origin BUNDLED. Never raises.
    """
    if provider is None:
        logger.info("bundled_index.unavailable")
        return empty_index(IndexOrigin.BUNDLED, "none", NO_ENUMERATION_ERROR)

    try:
        entries = provider.entries()
    except Exception as e:
        logger.warning("bundled_index.failed", method=provider.method, error=str(e))
        return empty_index(
            IndexOrigin.BUNDLED,
            provider.method,
            f"bundled index failed: {e}",
        )

    builder = IndexBuilder(IndexOrigin.BUNDLED, provider.method)
    for key in sorted(entries):
        rel = strip_asset_root(key, provider.asset_root)
        if not rel:
            continue
        url = asset_url(entries[key])
        if not url:
            logger.warning("bundled_index.malformed_value", key=key)
        if builder.add(rel, REF_PREFIX + rel, url) is None:
            logger.debug("bundled_index.duplicate_ref", key=key, rel=rel)

    index = builder.build()
    logger.info("bundled_index.built", method=index.method, count=index.count)
    return index
