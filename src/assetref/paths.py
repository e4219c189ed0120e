"""
Path helpers shared by every asset source.

All paths are canonicalized to forward slashes before they are combined,
compared or stored, so Windows and POSIX spellings index identically.
"""

import re

REF_PREFIX = "@pp/"
MEDIA_PREFIX = "@media/"

IMAGE_EXTENSIONS: frozenset[str] = frozenset({".png", ".jpg", ".jpeg", ".webp", ".gif"})

# Refs with these prefixes are already loadable URLs
RESOLVED_PREFIXES: tuple[str, ...] = ("data:", "blob:", "http://", "https://", "file://")

_WINDOWS_DRIVE_RE = re.compile(r"^[A-Za-z]:/")


def normalize_sep(path: str | None) -> str:
    """Replace every backslash with a forward slash. Never raises."""
    if not path:
        return ""
    return str(path).replace("\\", "/")


def file_url_from_abs(abs_path: str) -> str:
    """Convert an absolute path to a ``file://`` URL.

    ``C:\\root\\x.png`` -> ``file:///C:/root/x.png`` (drive letter kept),
    ``/srv/x.png`` -> ``file:///srv/x.png``.
    """
    p = normalize_sep(abs_path)
    if _WINDOWS_DRIVE_RE.match(p):
        return f"file:///{p}"
    return f"file://{p}"


def is_image_file(name: str | None) -> bool:
    """True if the name ends with a supported image extension (any case)."""
    lowered = normalize_sep(name).lower()
    return any(lowered.endswith(ext) for ext in IMAGE_EXTENSIONS)


def split_segments(path: str | None) -> list[str]:
    """Split a path into its non-empty segments."""
    return [seg for seg in normalize_sep(path).split("/") if seg]


def basename(path: str | None) -> str:
    segments = split_segments(path)
    return segments[-1] if segments else ""
