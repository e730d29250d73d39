"""
In-memory backend.
Keeps every item in a dict. Used for tests and throwaway vaults.
"""

from dataclasses import dataclass

from cryptvault.backends.base import Backend, ItemKind
from cryptvault.errors import BackendError, ItemExistsError, ItemNotFoundError


@dataclass(frozen=True)
class MemoryRef:
    """Reference into a MemoryBackend: the item's path from the root."""
    path: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.path[-1] if self.path else ""


@dataclass
class _Node:
    kind: ItemKind
    data: bytes = b""


class MemoryBackend(Backend[MemoryRef]):
    """Dict-backed storage. Nothing is persisted."""

    def __init__(self):
        self._items: dict[tuple[str, ...], _Node] = {(): _Node(ItemKind.FOLDER)}

    def _node(self, ref: MemoryRef) -> _Node:
        node = self._items.get(ref.path)
        if node is None:
            raise ItemNotFoundError(f"no such item: {'/'.join(ref.path)!r}")
        return node

    def _folder(self, ref: MemoryRef) -> _Node:
        node = self._node(ref)
        if node.kind is not ItemKind.FOLDER:
            raise BackendError(f"not a folder: {'/'.join(ref.path)!r}")
        return node

    def _file(self, ref: MemoryRef) -> _Node:
        node = self._node(ref)
        if node.kind is not ItemKind.FILE:
            raise BackendError(f"not a file: {'/'.join(ref.path)!r}")
        return node

    def root(self) -> MemoryRef:
        return MemoryRef(())

    def list(self, where: MemoryRef) -> list[MemoryRef]:
        self._folder(where)
        depth = len(where.path) + 1
        return sorted(
            (MemoryRef(path) for path in self._items
             if len(path) == depth and path[:-1] == where.path),
            key=lambda ref: ref.name,
        )

    def ref(self, where: MemoryRef, name: str) -> MemoryRef:
        self._folder(where)
        ref = MemoryRef(where.path + (name,))
        self._node(ref)
        return ref

    def create(self, where: MemoryRef, name: str, kind: ItemKind) -> MemoryRef:
        self._folder(where)
        ref = MemoryRef(where.path + (name,))
        if ref.path in self._items:
            raise ItemExistsError(f"item already exists: {'/'.join(ref.path)!r}")
        self._items[ref.path] = _Node(kind)
        return ref

    def read(self, file: MemoryRef) -> bytes:
        return self._file(file).data

    def write(self, file: MemoryRef, data: bytes) -> None:
        self._file(file).data = bytes(data)

    def delete(self, item: MemoryRef) -> None:
        if not item.path:
            raise BackendError("cannot delete the root folder")
        self._node(item)
        prefix = len(item.path)
        for path in [p for p in self._items if p[:prefix] == item.path]:
            del self._items[path]
