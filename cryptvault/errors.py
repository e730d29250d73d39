"""
Vault Errors
Every failure the vault reports derives from VaultError.

The kind of the exception tells the caller what went wrong:
a bad configuration, a bad key, a wrong-sized buffer, corrupted data,
a broken random source, or a failure in the storage backend.
"""


class VaultError(Exception):
    """Base class for all cryptvault errors."""


class ConfigurationError(VaultError):
    """The vault configuration (crypt.json) is missing or malformed."""


class VaultKeyError(VaultError):
    """A derived or supplied key has the wrong length."""


class SizeError(VaultError, ValueError):
    """A buffer is not exactly the mandated size."""


class CorruptionError(VaultError):
    """
    Ciphertext or an encrypted name could not be decoded.

    Also what a wrong password looks like once the vault is open:
    the key is wrong, so everything decrypts to garbage.
    """

    def __init__(self, message: str, item: str | None = None, superblock: int | None = None):
        self.item = item
        self.superblock = superblock
        context = []
        if item is not None:
            context.append(f"item={item!r}")
        if superblock is not None:
            context.append(f"superblock={superblock}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class RandomnessError(VaultError):
    """The secure random source failed. Encryption must not continue."""


class BackendError(VaultError):
    """Failure reported by the storage backend."""


class ItemNotFoundError(BackendError):
    """The backend has no item with the requested name."""


class ItemExistsError(BackendError):
    """The backend already has an item with the requested name."""
