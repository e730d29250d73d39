"""
Base class for all storage backends.
Every store the vault can sit on implements this interface.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Generic, Protocol, TypeVar


class ItemKind(Enum):
    """What kind of item a reference points at."""
    FILE = "file"
    FOLDER = "folder"


class ItemRef(Protocol):
    """Anything a backend hands out as a reference. Only `name` is required."""

    @property
    def name(self) -> str: ...


RefT = TypeVar("RefT", bound=ItemRef)


class Backend(ABC, Generic[RefT]):
    """
    Abstract item-reference-addressed storage.

    A backend hands out references of its own type RefT. Callers treat
    them as opaque handles and only read their `name`. The vault itself
    implements this interface, so vaults can be stacked on any backend.
    """

    @abstractmethod
    def root(self) -> RefT:
        """Reference to the root folder."""

    @abstractmethod
    def list(self, where: RefT) -> list[RefT]:
        """
        List the items directly inside a folder.

        Raises:
            BackendError: If `where` is not a folder.
        """

    @abstractmethod
    def ref(self, where: RefT, name: str) -> RefT:
        """
        Look up an item by name inside a folder.

        Raises:
            ItemNotFoundError: If no item has that name.
        """

    @abstractmethod
    def create(self, where: RefT, name: str, kind: ItemKind) -> RefT:
        """
        Create an empty file or folder.

        Raises:
            ItemExistsError: If an item with that name already exists.
        """

    @abstractmethod
    def read(self, file: RefT) -> bytes:
        """Read the whole contents of a file."""

    @abstractmethod
    def write(self, file: RefT, data: bytes) -> None:
        """Replace the whole contents of a file."""

    @abstractmethod
    def delete(self, item: RefT) -> None:
        """Delete a file, or a folder with everything inside it."""
