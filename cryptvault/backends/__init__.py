"""
Storage backends the vault can decorate.
Each backend implements the same item-reference interface.
"""

from cryptvault.backends.base import Backend, ItemKind, ItemRef
from cryptvault.backends.memory import MemoryBackend, MemoryRef
from cryptvault.backends.local import LocalBackend, LocalRef

__all__ = [
    "Backend",
    "ItemKind",
    "ItemRef",
    "MemoryBackend",
    "MemoryRef",
    "LocalBackend",
    "LocalRef",
]
