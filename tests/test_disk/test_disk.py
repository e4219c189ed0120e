"""
Tests para el índice disk.

Cubre:
- build_disk_index sobre el filesystem real (tmp_path)
- Rutas estilo Windows con un filesystem en memoria (ntpath)
- Subárboles inaccesibles, ciclos de symlinks, raíz inexistente
- Árboles profundos y nombres con backslash
- Filesystem no disponible
"""

import ntpath
import os
import posixpath
from pathlib import Path

import pytest

from assetref.fs import DirEntry, FileSystem, LocalFileSystem, UnavailableFileSystem
from assetref.index.disk import FS_UNAVAILABLE_ERROR, build_disk_index
from assetref.index.tree import (
    IndexOrigin,
    count_files,
    find_in_tree,
    format_tree,
    index_summary,
    iter_records,
)


class FakeWindowsFileSystem(FileSystem):
    """Filesystem en memoria con semántica de rutas Windows.

    ``tree`` es un dict anidado: dict = directorio, None = archivo.
    Los directorios listados en ``broken`` fallan al listarse.
    """

    available = True

    def __init__(self, root: str, tree: dict, broken: set[str] | None = None) -> None:
        self.root = ntpath.normpath(root)
        self.tree = tree
        self.broken = {ntpath.normpath(p) for p in (broken or set())}

    def _lookup(self, path: str):
        path = ntpath.normpath(path)
        if path in self.broken:
            raise PermissionError(f"access denied: {path}")
        if not path.lower().startswith(self.root.lower()):
            raise FileNotFoundError(path)
        rest = path[len(self.root):].strip("\\")
        node = self.tree
        for part in [p for p in rest.split("\\") if p]:
            if not isinstance(node, dict) or part not in node:
                raise FileNotFoundError(path)
            node = node[part]
        if not isinstance(node, dict):
            raise NotADirectoryError(path)
        return node

    def list_dir(self, path: str) -> list[DirEntry]:
        node = self._lookup(path)
        return [DirEntry(name=k, is_dir=isinstance(v, dict)) for k, v in node.items()]

    def join(self, *parts: str) -> str:
        return ntpath.normpath(ntpath.join(*parts))

    def real_path(self, path: str) -> str:
        return ntpath.normpath(path).lower()

    def cwd(self) -> str:
        return "C:\\work"


class DeepFileSystem(FileSystem):
    """Filesystem en memoria: una cadena de ``depth`` directorios ``d``
    con ``x.png`` al fondo.
    """

    available = True

    def __init__(self, depth: int) -> None:
        self.depth = depth

    def list_dir(self, path: str) -> list[DirEntry]:
        if path.count("/d") < self.depth:
            return [DirEntry(name="d", is_dir=True)]
        return [DirEntry(name="x.png", is_dir=False)]

    def join(self, *parts: str) -> str:
        return posixpath.normpath(posixpath.join(*parts))

    def real_path(self, path: str) -> str:
        return path

    def cwd(self) -> str:
        return "/"


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def pictures(tmp_path: Path) -> Path:
    root = tmp_path / "pictures"
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "sub" / "deep" / "photo.PNG").write_bytes(b"")
    (root / "sub" / "notes.txt").write_text("x", encoding="utf-8")
    (root / "a.jpg").write_bytes(b"")
    (root / ".hidden.webp").write_bytes(b"")
    (root / "folder.png").mkdir()
    (root / "folder.png" / "inner.gif").write_bytes(b"")
    return root


# ── Tests: filesystem real ────────────────────────────────────────────────


class TestBuildDiskIndex:
    """Tests de build_disk_index sobre tmp_path."""

    def test_uppercase_extension_single_record(self, tmp_path: Path):
        root = tmp_path / "pics"
        (root / "sub" / "deep").mkdir(parents=True)
        (root / "sub" / "deep" / "photo.PNG").write_bytes(b"")

        index = build_disk_index(str(root))

        assert index.count == 1
        record = index.get("@pp/sub/deep/photo.PNG")
        assert record is not None
        assert record.name == "photo.PNG"
        assert record.rel_path == "sub/deep/photo.PNG"

    def test_metadata(self, pictures: Path):
        index = build_disk_index(str(pictures))
        assert index.origin is IndexOrigin.DISK
        assert index.method == "fs-scan"
        assert index.error is None
        assert index.skipped == ()

    def test_extension_is_the_only_filter(self, pictures: Path):
        index = build_disk_index(str(pictures))
        assert sorted(index.by_ref) == [
            "@pp/.hidden.webp",
            "@pp/a.jpg",
            "@pp/folder.png/inner.gif",
            "@pp/sub/deep/photo.PNG",
        ]

    def test_urls_are_file_urls(self, pictures: Path):
        index = build_disk_index(str(pictures))
        url = index.get("@pp/a.jpg").url
        expected = Path(pictures, "a.jpg").as_posix()
        assert url.startswith("file://")
        assert url.endswith(expected)

    def test_tree_matches_map(self, pictures: Path):
        index = build_disk_index(str(pictures))
        assert count_files(index.root) == index.count
        for record in index.by_ref.values():
            assert find_in_tree(index.root, record.rel_path) is record

    def test_rebuild_is_equivalent(self, pictures: Path):
        first = build_disk_index(str(pictures))
        second = build_disk_index(str(pictures))
        assert first is not second
        assert first.root == second.root

    def test_missing_root_recorded_as_skipped(self, tmp_path: Path):
        missing = tmp_path / "does-not-exist"
        index = build_disk_index(str(missing))
        assert index.count == 0
        assert index.error is None
        assert index.skipped == (str(missing),)

    def test_empty_root(self, tmp_path: Path):
        index = build_disk_index(str(tmp_path))
        assert index.count == 0
        assert index.skipped == ()

    @pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="symlinks")
    def test_symlink_cycle_is_skipped(self, tmp_path: Path):
        root = tmp_path / "pics"
        (root / "a").mkdir(parents=True)
        (root / "a" / "x.png").write_bytes(b"")
        os.symlink(root, root / "a" / "loop")

        index = build_disk_index(str(root))

        assert index.count == 1
        assert index.get("@pp/a/x.png") is not None
        assert str(root / "a" / "loop") in index.skipped

    @pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="symlinks")
    def test_symlinked_sibling_is_indexed(self, tmp_path: Path):
        shared = tmp_path / "shared"
        shared.mkdir()
        (shared / "s.png").write_bytes(b"")
        root = tmp_path / "pics"
        root.mkdir()
        os.symlink(shared, root / "one")
        os.symlink(shared, root / "two")

        index = build_disk_index(str(root))

        assert sorted(index.by_ref) == ["@pp/one/s.png", "@pp/two/s.png"]

    def test_unavailable_filesystem(self):
        index = build_disk_index("C:\\anything", fs=UnavailableFileSystem())
        assert index.count == 0
        assert index.error == FS_UNAVAILABLE_ERROR
        assert index.method == "fs-scan"

    def test_explicit_local_filesystem(self, pictures: Path):
        index = build_disk_index(str(pictures), fs=LocalFileSystem())
        assert index.count == 4

    @pytest.mark.skipif(os.name == "nt", reason="backslash es separador en Windows")
    def test_backslash_in_name_is_normalized(self, tmp_path: Path):
        root = tmp_path / "pics"
        root.mkdir()
        (root / "a\\b.png").write_bytes(b"")

        index = build_disk_index(str(root))

        record = index.get("@pp/a/b.png")
        assert record is not None
        assert record.rel_path == "a/b.png"
        assert record.ref == "@pp/" + record.rel_path
        assert find_in_tree(index.root, "a/b.png") is record


class TestDeepTrees:
    """Árboles más profundos que el límite de recursión."""

    def test_deep_tree_is_indexed(self):
        depth = 1100
        index = build_disk_index("/root", fs=DeepFileSystem(depth))

        rel = "/".join(["d"] * depth + ["x.png"])
        assert index.count == 1
        assert index.skipped == ()
        assert index.get("@pp/" + rel).rel_path == rel
        assert count_files(index.root) == 1

    def test_deep_tree_summary_and_render(self):
        depth = 1100
        index = build_disk_index("/root", fs=DeepFileSystem(depth))

        rel = "/".join(["d"] * depth + ["x.png"])
        assert index_summary(index)["sample"] == ["@pp/" + rel]
        lines = format_tree(index.root).splitlines()
        assert len(lines) == depth + 1
        assert lines[-1].endswith("x.png")

    def test_order_is_depth_first_by_name(self):
        fs = FakeWindowsFileSystem(
            "C:\\r",
            {"b.png": None, "a": {"z.png": None, "m": {"n.png": None}}, "c": {"c.png": None}},
        )
        index = build_disk_index("C:\\r", fs=fs)
        assert list(index.by_ref) == ["@pp/a/m/n.png", "@pp/a/z.png", "@pp/b.png", "@pp/c/c.png"]


# ── Tests: semántica Windows ──────────────────────────────────────────────


class TestWindowsPaths:
    """Tests con un filesystem en memoria estilo Windows."""

    @pytest.fixture
    def fs(self) -> FakeWindowsFileSystem:
        return FakeWindowsFileSystem(
            "C:\\root",
            {
                "a": {"b.jpg": None, "c.txt": None},
                "locked": {"hidden.png": None},
                "zeta": {"z.GIF": None},
                "top.png": None,
            },
            broken={"C:\\root\\locked"},
        )

    def test_file_urls_keep_drive_letter(self, fs):
        index = build_disk_index("C:\\root", fs=fs)
        assert index.get("@pp/a/b.jpg").url == "file:///C:/root/a/b.jpg"
        assert index.get("@pp/top.png").url == "file:///C:/root/top.png"

    def test_relative_paths_use_forward_slashes(self, fs):
        index = build_disk_index("C:\\root", fs=fs)
        assert index.get("@pp/zeta/z.GIF").rel_path == "zeta/z.GIF"

    def test_inaccessible_subtree_does_not_abort_siblings(self, fs):
        index = build_disk_index("C:\\root", fs=fs)
        assert sorted(index.by_ref) == ["@pp/a/b.jpg", "@pp/top.png", "@pp/zeta/z.GIF"]
        assert index.skipped == ("C:\\root\\locked",)

    def test_deterministic_order(self, fs):
        index = build_disk_index("C:\\root", fs=fs)
        assert [r.ref for r in iter_records(index.root)] == [
            "@pp/a/b.jpg",
            "@pp/zeta/z.GIF",
            "@pp/top.png",
        ]
