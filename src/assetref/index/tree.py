"""
Árbol de índice - estructuras compartidas por los índices bundled y disk.

Un índice combina dos vistas del mismo conjunto de imágenes:
- Árbol jerárquico de directorios (para navegar carpetas en la UI)
- Mapa plano referencia → FileRecord (para resolver referencias en O(1))

Invariante: cada entrada de by_ref es alcanzable desde root siguiendo los
segmentos de su rel_path, y ambas colecciones tienen el mismo tamaño.

Los índices son inmutables una vez construidos; reconstruir produce un
AssetIndex nuevo que reemplaza al anterior.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping

from ..paths import basename, normalize_sep, split_segments


class IndexOrigin(Enum):
    """Fuente de la que proviene un índice."""

    BUNDLED = "bundled"
    DISK = "disk"


# --- Estructuras de datos ---

@dataclass(frozen=True)
class FileRecord:
    """Una imagen indexada."""

    name: str
    rel_path: str      # Relativo a la raíz del índice, siempre con '/'
    ref: str           # "@pp/" + rel_path
    url: str


@dataclass
class DirectoryNode:
    """Directorio del árbol. La raíz tiene name vacío."""

    name: str
    dirs: dict[str, "DirectoryNode"] = field(default_factory=dict)
    files: list[FileRecord] = field(default_factory=list)


@dataclass(frozen=True)
class AssetIndex:
    """Índice completo de una fuente de imágenes."""

    origin: IndexOrigin
    method: str                          # Diagnóstico: "static-manifest", "fs-scan", ...
    root: DirectoryNode
    by_ref: Mapping[str, FileRecord]     # Solo lectura
    error: str | None = None
    skipped: tuple[str, ...] = ()        # Directorios que no se pudieron listar

    @property
    def count(self) -> int:
        return len(self.by_ref)

    def get(self, ref: str) -> FileRecord | None:
        return self.by_ref.get(ref)


# --- Construcción ---

def add_path(root: DirectoryNode, rel_path: str, record: FileRecord) -> None:
    """Inserta record en el árbol bajo el directorio padre de rel_path.

    Crea los directorios intermedios que falten (idempotente para los que
    ya existen). Los segmentos vacíos se descartan, así que '//' o una '/'
    final no generan nodos espurios.
    """
    parts = split_segments(rel_path)
    node = root
    for seg in parts[:-1]:
        node = node.dirs.setdefault(seg, DirectoryNode(seg))
    node.files.append(record)


class IndexBuilder:
    """Acumula records en árbol y mapa, y produce el AssetIndex final.

    Los builders deben llamar a add() en orden determinista (claves
    ordenadas) para que dos construcciones de la misma fuente sean
    equivalentes.
    """

    def __init__(self, origin: IndexOrigin, method: str) -> None:
        self.origin = origin
        self.method = method
        self.root = DirectoryNode("")
        self._by_ref: dict[str, FileRecord] = {}
        self._skipped: list[str] = []

    def add(self, rel_path: str, ref: str, url: str) -> FileRecord | None:
        """Añade un record. Retorna None si la referencia ya existía."""
        rel_path = normalize_sep(rel_path)
        if ref in self._by_ref:
            return None
        record = FileRecord(
            name=basename(rel_path),
            rel_path=rel_path,
            ref=ref,
            url=url,
        )
        self._by_ref[ref] = record
        add_path(self.root, rel_path, record)
        return record

    def skip(self, path: str) -> None:
        self._skipped.append(path)

    def build(self, error: str | None = None) -> AssetIndex:
        return AssetIndex(
            origin=self.origin,
            method=self.method,
            root=self.root,
            by_ref=MappingProxyType(dict(self._by_ref)),
            error=error,
            skipped=tuple(self._skipped),
        )


def empty_index(origin: IndexOrigin, method: str, error: str | None = None) -> AssetIndex:
    """Índice vacío (entorno no disponible o enumeración fallida)."""
    return IndexBuilder(origin, method).build(error=error)


# --- Consultas ---

def iter_records(node: DirectoryNode) -> Iterator[FileRecord]:
    """Recorre el árbol en profundidad: subdirectorios por nombre, luego archivos.

    Usa una pila explícita; la profundidad no depende del límite de recursión.
    """
    stack: list[tuple[DirectoryNode, Iterator[str]]] = [(node, iter(sorted(node.dirs)))]
    while stack:
        current, names = stack[-1]
        name = next(names, None)
        if name is None:
            stack.pop()
            yield from current.files
            continue
        child = current.dirs[name]
        stack.append((child, iter(sorted(child.dirs))))


def node_at(root: DirectoryNode, rel_dir: str) -> DirectoryNode | None:
    """Navega hasta un subdirectorio. None si algún segmento no existe."""
    node = root
    for seg in split_segments(rel_dir):
        child = node.dirs.get(seg)
        if child is None:
            return None
        node = child
    return node


def find_in_tree(root: DirectoryNode, rel_path: str) -> FileRecord | None:
    """Busca el record de rel_path siguiendo sus segmentos en el árbol."""
    parts = split_segments(rel_path)
    if not parts:
        return None
    parent = node_at(root, "/".join(parts[:-1]))
    if parent is None:
        return None
    for record in parent.files:
        if split_segments(record.rel_path) == parts:
            return record
    return None


def count_files(node: DirectoryNode) -> int:
    """Cuenta archivos en un nodo y todos sus subdirectorios."""
    total = 0
    pending = [node]
    while pending:
        current = pending.pop()
        total += len(current.files)
        pending.extend(current.dirs.values())
    return total


# --- Formato ---

def format_tree(node: DirectoryNode) -> str:
    """Genera la representación en árbol de un directorio."""
    if not node.dirs and not node.files:
        return "(sin imágenes)"

    lines: list[str] = []
    stack: list[tuple[Iterator[tuple[bool, DirectoryNode | FileRecord]], str]] = [
        (_children(node), "")
    ]
    while stack:
        items, prefix = stack[-1]
        entry = next(items, None)
        if entry is None:
            stack.pop()
            continue

        is_last, item = entry
        connector = "└── " if is_last else "├── "
        if isinstance(item, DirectoryNode):
            n_files = count_files(item)
            lines.append(f"{prefix}{connector}{item.name}/ ({n_files} archivos)")
            stack.append((_children(item), prefix + ("    " if is_last else "│   ")))
        else:
            lines.append(f"{prefix}{connector}{item.name}")
    return "\n".join(lines)


def _children(node: DirectoryNode) -> Iterator[tuple[bool, DirectoryNode | FileRecord]]:
    """Hijos de un nodo en orden de render, marcando el último."""
    items: list[DirectoryNode | FileRecord] = [node.dirs[k] for k in sorted(node.dirs)]
    items.extend(sorted(node.files, key=lambda r: r.name))
    return ((i == len(items) - 1, item) for i, item in enumerate(items))


# --- Diagnóstico ---

def index_summary(index: AssetIndex, sample: int = 10) -> dict:
    """Resumen serializable del índice (contadores y muestra de referencias)."""
    return {
        "origin": index.origin.value,
        "method": index.method,
        "count": index.count,
        "error": index.error,
        "skipped": list(index.skipped),
        "sample": [record.ref for record in iter_records(index.root)][:sample],
    }
