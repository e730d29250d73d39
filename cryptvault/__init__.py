"""
cryptvault — Password-Protected Encrypted File Vault
Transparent encryption of file names and contents over any storage backend.

Two layers:
1. Codecs — files become sequences of independent 256-byte superblocks
   (AES-256-CBC, fresh IV each); names are sealed with AES-SIV
2. Vault — a decorator that speaks the same Backend interface as the store
   it wraps, encrypting on the way in and decrypting on the way out

The key comes from your password via Argon2id. Only the salt and KDF
parameters are stored, in crypt.json at the backend root.

Usage:
    from cryptvault import LocalBackend, ItemKind, init_vault, open_vault
    vault = init_vault(LocalBackend("./my-vault"), "my-passphrase")
    notes = vault.create(vault.root(), "notes.txt", ItemKind.FILE)
    vault.write(notes, b"hello")
"""

from cryptvault.errors import (
    VaultError,
    ConfigurationError,
    VaultKeyError,
    SizeError,
    CorruptionError,
    RandomnessError,
    BackendError,
    ItemNotFoundError,
    ItemExistsError,
)
from cryptvault.kdf import KDFParameters, VaultSettings, derive_key
from cryptvault.superblock import SuperblockEncrypter, SuperblockDecrypter, SUPERBLOCK_SIZE
from cryptvault.files import FileEncrypter, FileDecrypter, block_count
from cryptvault.filenames import FilenameCodec
from cryptvault.backends import Backend, ItemKind, MemoryBackend, LocalBackend
from cryptvault.vault import CryptVault, VaultRef, open_vault, init_vault, CONFIG_NAME

__version__ = "0.1.0"
__all__ = [
    "VaultError",
    "ConfigurationError",
    "VaultKeyError",
    "SizeError",
    "CorruptionError",
    "RandomnessError",
    "BackendError",
    "ItemNotFoundError",
    "ItemExistsError",
    "KDFParameters",
    "VaultSettings",
    "derive_key",
    "SuperblockEncrypter",
    "SuperblockDecrypter",
    "SUPERBLOCK_SIZE",
    "FileEncrypter",
    "FileDecrypter",
    "block_count",
    "FilenameCodec",
    "Backend",
    "ItemKind",
    "MemoryBackend",
    "LocalBackend",
    "CryptVault",
    "VaultRef",
    "open_vault",
    "init_vault",
    "CONFIG_NAME",
]
