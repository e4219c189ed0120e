"""
Filesystem primitives used by the disk index and the resolver.

The host either exposes a real filesystem (LocalFileSystem) or none at all
(UnavailableFileSystem). Builders only ever talk to the FileSystem interface,
which keeps them testable with in-memory fakes.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DirEntry:
    """One entry of a directory listing."""

    name: str
    is_dir: bool


class FileSystem(ABC):
    """Minimal set of filesystem operations the asset indexes need."""

    available: bool = True

    @abstractmethod
    def list_dir(self, path: str) -> list[DirEntry]:
        """List a directory.

        Raises:
            OSError: If the directory cannot be listed.
        """

    @abstractmethod
    def join(self, *parts: str) -> str:
        """Join path components using the host's rules.

        The result is normalized: ``..`` segments and repeated separators
        are collapsed.
        """

    @abstractmethod
    def real_path(self, path: str) -> str:
        """Canonical identity of a directory (symlinks resolved)."""

    @abstractmethod
    def cwd(self) -> str:
        """Current working directory of the process."""


class LocalFileSystem(FileSystem):
    """FileSystem backed by ``os``."""

    available = True

    def list_dir(self, path: str) -> list[DirEntry]:
        entries: list[DirEntry] = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    is_dir = False
                entries.append(DirEntry(name=entry.name, is_dir=is_dir))
        return entries

    def join(self, *parts: str) -> str:
        return os.path.normpath(os.path.join(*parts))

    def real_path(self, path: str) -> str:
        return os.path.realpath(path)

    def cwd(self) -> str:
        return os.getcwd()


class UnavailableFileSystem(FileSystem):
    """Stand-in for hosts without filesystem access. Every operation fails."""

    available = False

    def list_dir(self, path: str) -> list[DirEntry]:
        raise OSError("filesystem unavailable")

    def join(self, *parts: str) -> str:
        raise OSError("filesystem unavailable")

    def real_path(self, path: str) -> str:
        raise OSError("filesystem unavailable")

    def cwd(self) -> str:
        raise OSError("filesystem unavailable")


def default_filesystem() -> FileSystem:
    return LocalFileSystem()
