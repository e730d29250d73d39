"""
Vault — Encrypted View of Any Backend
Wraps a storage backend and encrypts everything that crosses into it.

The vault implements the same Backend interface it wraps. Addressing is
left to the inner backend; the vault only swaps names and contents at
the boundary:

  name     → FilenameCodec → encrypted name   → backend
  contents → FileEncrypter → superblocks      → backend

The backend root holds one unencrypted item, crypt.json, with the salt
and KDF parameters. Opening a vault reads it once and derives the key:

  Password + crypt.json → Argon2id → Key → codecs

Neither the password nor the key touches the backend.
"""

import logging
from dataclasses import dataclass
from typing import Generic

from cryptvault.backends.base import Backend, ItemKind, RefT
from cryptvault.errors import BackendError, ConfigurationError, CorruptionError, ItemNotFoundError
from cryptvault.filenames import FilenameCodec
from cryptvault.files import FileDecrypter, FileEncrypter
from cryptvault.kdf import KDFParameters, VaultSettings, derive_key

logger = logging.getLogger("cryptvault.vault")

CONFIG_NAME = "crypt.json"


@dataclass(frozen=True)
class VaultRef(Generic[RefT]):
    """
    A vault item: the inner backend's reference plus the decrypted name.

    The pairing is fixed for the life of the reference.
    """
    inner: RefT
    name: str


class CryptVault(Backend[VaultRef[RefT]]):
    """
    Encrypted decorator over any Backend.

    Build one with open_vault() or init_vault() rather than directly.
    Not safe for concurrent use; callers that share a vault across
    threads must lock around it.

    Args:
        inner: The backend holding the ciphertext.
        key: The 32-byte vault key.
        minimal_diff: On write, reuse superblocks of the current
            ciphertext whose plaintext did not change.
    """

    def __init__(self, inner: Backend[RefT], key: bytes, minimal_diff: bool = False):
        self.inner = inner
        self.minimal_diff = minimal_diff
        self._names = FilenameCodec(key)
        self._encrypter = FileEncrypter(key, minimal_diff=minimal_diff)
        self._decrypter = FileDecrypter(key)

    def _wrap(self, inner_ref: RefT) -> VaultRef[RefT]:
        """Pair an inner reference with its decrypted name."""
        return VaultRef(inner=inner_ref, name=self._names.decrypt(inner_ref.name))

    def _check_key(self, item: VaultRef[RefT]):
        """
        Re-authenticate the item's stored name before touching its content.

        File content carries no integrity check, so this is what stops a
        vault opened with the wrong password from returning garbage or
        overwriting a file under the wrong key.

        Raises:
            CorruptionError: If the stored name does not decrypt to the
                reference's name under this vault's key.
        """
        if item.name == "":
            return
        if self._names.decrypt(item.inner.name) != item.name:
            raise CorruptionError("stored name does not match the reference", item=item.name)

    def root(self) -> VaultRef[RefT]:
        return VaultRef(inner=self.inner.root(), name="")

    def list(self, where: VaultRef[RefT]) -> list[VaultRef[RefT]]:
        """
        List a folder, decrypting every name.

        Raises:
            CorruptionError: If any single name fails to decrypt. The whole
                listing fails rather than silently hiding the entry.
        """
        inner_refs = self.inner.list(where.inner)
        if where.name == "":
            inner_refs = [r for r in inner_refs if r.name != CONFIG_NAME]
        items = [self._wrap(r) for r in inner_refs]
        logger.debug("Listed %d items", len(items))
        return items

    def ref(self, where: VaultRef[RefT], name: str) -> VaultRef[RefT]:
        """
        Look up an item by its plaintext name.

        Names encrypt deterministically, so this asks the inner backend
        for the encrypted name directly instead of listing the folder.

        Raises:
            ItemNotFoundError: If the folder has no item with that name.
            CorruptionError: If the name is missing and the folder holds
                entries this key cannot decrypt, which is what a wrong
                password looks like.
        """
        try:
            inner_ref = self.inner.ref(where.inner, self._names.encrypt(name))
        except ItemNotFoundError:
            # Listing raises CorruptionError on the first foreign name
            self.list(where)
            raise
        return self._wrap(inner_ref)

    def create(self, where: VaultRef[RefT], name: str, kind: ItemKind) -> VaultRef[RefT]:
        """Create an item under an encrypted name."""
        inner_ref = self.inner.create(where.inner, self._names.encrypt(name), kind)
        # Decrypting the name the backend returns doubles as a round-trip check
        return self._wrap(inner_ref)

    def read(self, file: VaultRef[RefT]) -> bytes:
        self._check_key(file)
        ciphertext = self.inner.read(file.inner)
        return self._decrypter.decrypt_file(ciphertext, item=file.name)

    def write(self, file: VaultRef[RefT], data: bytes) -> None:
        self._check_key(file)
        existing = self.inner.read(file.inner) if self.minimal_diff else None
        ciphertext = self._encrypter.encrypt_file(data, existing)
        self.inner.write(file.inner, ciphertext)

    def delete(self, item: VaultRef[RefT]) -> None:
        self.inner.delete(item.inner)


def read_settings(backend: Backend) -> VaultSettings:
    """
    Read and validate crypt.json from the backend root.

    Raises:
        ConfigurationError: If crypt.json is missing, unreadable or malformed.
    """
    try:
        config_ref = backend.ref(backend.root(), CONFIG_NAME)
        raw = backend.read(config_ref)
    except ItemNotFoundError as e:
        raise ConfigurationError(f"no {CONFIG_NAME} in the backend root") from e
    except BackendError as e:
        raise ConfigurationError(f"could not read {CONFIG_NAME}: {e}") from e
    return VaultSettings.from_json(raw)


def open_vault(backend: Backend[RefT], password: str | bytes, minimal_diff: bool = False) -> CryptVault[RefT]:
    """
    Open an existing vault.

    Key derivation is deliberately slow (seconds with default parameters).
    A wrong password is not detected here: the vault opens, and listing,
    lookup, reading or writing then fails with CorruptionError.

    Raises:
        ConfigurationError: If crypt.json is missing or malformed.
        VaultKeyError: If the derived key has the wrong size.
    """
    settings = read_settings(backend)
    key = derive_key(password, settings.salt, settings.kdf_parameters)
    vault = CryptVault(backend, key, minimal_diff=minimal_diff)
    logger.info("Opened vault")
    return vault


def init_vault(
    backend: Backend[RefT],
    password: str | bytes,
    kdf_parameters: KDFParameters | None = None,
    minimal_diff: bool = False,
) -> CryptVault[RefT]:
    """
    Create a new vault in the backend root and open it.

    Writes crypt.json with a fresh salt. Refuses to touch a backend that
    already holds one.

    Raises:
        ConfigurationError: If the backend already contains crypt.json.
    """
    root = backend.root()
    try:
        backend.ref(root, CONFIG_NAME)
    except ItemNotFoundError:
        pass
    else:
        raise ConfigurationError(f"backend already contains {CONFIG_NAME}")

    settings = VaultSettings.generate(kdf_parameters)
    config_ref = backend.create(root, CONFIG_NAME, ItemKind.FILE)
    try:
        backend.write(config_ref, settings.to_json())
    except BackendError:
        # An empty crypt.json would block both init and open
        backend.delete(config_ref)
        raise
    logger.info("Initialized vault (kdf=%s)", settings.kdf_parameters.algorithm)

    key = derive_key(password, settings.salt, settings.kdf_parameters)
    return CryptVault(backend, key, minimal_diff=minimal_diff)
