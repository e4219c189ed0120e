"""
Disk index - pictures scanned from a user-chosen local directory.

Walks an absolute root recursively and indexes every supported image as a
``file://`` URL. A directory that cannot be listed (permissions, I/O error,
symlink cycle, missing root) is treated as empty and recorded in
``AssetIndex.skipped``; its siblings are still indexed.
"""

from dataclasses import dataclass
from typing import Iterator

import structlog

from ..fs import DirEntry, FileSystem, default_filesystem
from ..paths import REF_PREFIX, file_url_from_abs, is_image_file, normalize_sep
from .tree import AssetIndex, IndexBuilder, IndexOrigin, empty_index

logger = structlog.get_logger()

DISK_METHOD = "fs-scan"
FS_UNAVAILABLE_ERROR = "fs unavailable"


def build_disk_index(abs_root: str, fs: FileSystem | None = None) -> AssetIndex:
    """Build the disk index for an absolute directory.

    Args:
        abs_root: Absolute path of the pictures folder (any separator style)
        fs: Filesystem primitives. Defaults to the local filesystem.

    Returns:
        AssetIndex with origin DISK. Never raises.
    """
    fs = fs or default_filesystem()
    if not fs.available:
        return empty_index(IndexOrigin.DISK, DISK_METHOD, FS_UNAVAILABLE_ERROR)

    builder = IndexBuilder(IndexOrigin.DISK, DISK_METHOD)
    _walk(fs, str(abs_root), builder)

    index = builder.build()
    logger.info(
        "disk_index.built",
        root=str(abs_root),
        count=index.count,
        skipped=len(index.skipped),
    )
    return index


@dataclass
class _OpenDir:
    """A listed directory on the current branch of the walk."""

    identity: str
    abs_path: str
    rel_path: str
    entries: Iterator[DirEntry]


def _walk(fs: FileSystem, abs_root: str, builder: IndexBuilder) -> None:
    """Index a directory tree depth-first, entries in name order.

    Open directories live on an explicit stack, so depth is not limited by
    the interpreter's recursion limit. ``ancestors`` holds the real paths of
    the directories on the current branch; meeting one again means a
    symlink cycle.
    """
    ancestors: set[str] = set()
    stack: list[_OpenDir] = []
    _push_dir(fs, abs_root, "", builder, ancestors, stack)

    while stack:
        current = stack[-1]
        entry = next(current.entries, None)
        if entry is None:
            stack.pop()
            ancestors.discard(current.identity)
            continue

        full = fs.join(current.abs_path, entry.name)
        rel = normalize_sep(
            f"{current.rel_path}/{entry.name}" if current.rel_path else entry.name
        )
        if entry.is_dir:
            _push_dir(fs, full, rel, builder, ancestors, stack)
        elif is_image_file(entry.name):
            builder.add(rel, REF_PREFIX + rel, file_url_from_abs(full))


def _push_dir(
    fs: FileSystem,
    dir_abs: str,
    rel_path: str,
    builder: IndexBuilder,
    ancestors: set[str],
    stack: list[_OpenDir],
) -> None:
    try:
        identity = fs.real_path(dir_abs)
        if identity in ancestors:
            raise OSError(f"symlink cycle at {dir_abs}")
        entries = fs.list_dir(dir_abs)
    except OSError as e:
        builder.skip(dir_abs)
        logger.warning("disk_index.dir_skipped", path=dir_abs, error=str(e))
        return

    ancestors.add(identity)
    stack.append(
        _OpenDir(
            identity=identity,
            abs_path=dir_abs,
            rel_path=rel_path,
            entries=iter(sorted(entries, key=lambda e: e.name)),
        )
    )
