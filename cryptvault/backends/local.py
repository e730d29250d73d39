"""
Local filesystem backend.
Items are plain files and directories under one root directory.

This is the simplest real backend: no server, no network. Point a vault
at a directory that is synced elsewhere and only ciphertext leaves the
machine.
"""

import errno
import shutil
from dataclasses import dataclass
from pathlib import Path

from cryptvault.backends.base import Backend, ItemKind
from cryptvault.errors import BackendError, ItemExistsError, ItemNotFoundError


@dataclass(frozen=True)
class LocalRef:
    """Reference into a LocalBackend: a path and whether it is the root."""
    path: Path
    is_root: bool = False

    @property
    def name(self) -> str:
        return "" if self.is_root else self.path.name


def _wrap(e: OSError, path: Path) -> BackendError:
    if isinstance(e, FileNotFoundError):
        return ItemNotFoundError(f"no such item: {str(path)!r}")
    if isinstance(e, FileExistsError):
        return ItemExistsError(f"item already exists: {str(path)!r}")
    return BackendError(f"{errno.errorcode.get(e.errno, 'error')} on {str(path)!r}: {e.strerror or e}")


class LocalBackend(Backend[LocalRef]):
    """
    Filesystem storage rooted at one directory.

    Args:
        root_dir: Directory holding the items. Created if missing.
    """

    def __init__(self, root_dir: str | Path):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def root(self) -> LocalRef:
        return LocalRef(self.root_dir, is_root=True)

    def list(self, where: LocalRef) -> list[LocalRef]:
        try:
            entries = sorted(where.path.iterdir(), key=lambda p: p.name)
        except NotADirectoryError:
            raise BackendError(f"not a folder: {str(where.path)!r}")
        except OSError as e:
            raise _wrap(e, where.path) from e
        return [LocalRef(p) for p in entries]

    def ref(self, where: LocalRef, name: str) -> LocalRef:
        path = where.path / name
        if not path.exists():
            raise ItemNotFoundError(f"no such item: {str(path)!r}")
        return LocalRef(path)

    def create(self, where: LocalRef, name: str, kind: ItemKind) -> LocalRef:
        path = where.path / name
        try:
            if kind is ItemKind.FOLDER:
                path.mkdir()
            else:
                # "x" fails if the file already exists
                with path.open("xb"):
                    pass
        except OSError as e:
            raise _wrap(e, path) from e
        return LocalRef(path)

    def read(self, file: LocalRef) -> bytes:
        try:
            return file.path.read_bytes()
        except IsADirectoryError:
            raise BackendError(f"not a file: {str(file.path)!r}")
        except OSError as e:
            raise _wrap(e, file.path) from e

    def write(self, file: LocalRef, data: bytes) -> None:
        if not file.path.exists():
            raise ItemNotFoundError(f"no such item: {str(file.path)!r}")
        if file.path.is_dir():
            raise BackendError(f"not a file: {str(file.path)!r}")
        # Write beside the target, then rename over it, so a crash never
        # leaves a half-written file behind.
        tmp = file.path.with_name(file.path.name + ".tmp")
        try:
            tmp.write_bytes(data)
            tmp.replace(file.path)
        except OSError as e:
            # A stray .tmp would be a foreign item in the folder
            tmp.unlink(missing_ok=True)
            raise _wrap(e, file.path) from e

    def delete(self, item: LocalRef) -> None:
        if item.is_root:
            raise BackendError("cannot delete the root folder")
        try:
            if item.path.is_dir():
                shutil.rmtree(item.path)
            else:
                item.path.unlink()
        except OSError as e:
            raise _wrap(e, item.path) from e
