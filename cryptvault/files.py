"""
File Codec
Splits whole files into superblocks and puts them back together.

  plaintext → 239-byte chunks → one superblock each → concatenated ciphertext

A file of N bytes becomes ceil(N / 239) superblocks, exactly 256 bytes
each. An empty file has no superblocks at all.
"""

import logging

from cryptvault.errors import CorruptionError
from cryptvault.superblock import (
    CONTENT_SIZE,
    MAX_LENGTH_BYTE,
    SUPERBLOCK_SIZE,
    SuperblockDecrypter,
    SuperblockEncrypter,
)

logger = logging.getLogger("cryptvault.files")


def block_count(plaintext_length: int) -> int:
    """Number of superblocks needed for a plaintext of this length."""
    return -(-plaintext_length // CONTENT_SIZE)


def _check_ciphertext_length(ciphertext: bytes, item: str | None = None):
    if len(ciphertext) % SUPERBLOCK_SIZE:
        raise CorruptionError(
            f"ciphertext length {len(ciphertext)} is not a multiple of {SUPERBLOCK_SIZE}",
            item=item,
        )


class FileEncrypter:
    """
    Encrypts whole files.

    With minimal_diff enabled, encrypt_file() accepts the file's current
    ciphertext and copies over every superblock whose plaintext did not
    change. Synced or versioned backends then only see the changed
    superblocks. Off by default: reused superblocks keep their old IVs,
    which tells an observer which parts of a file stayed the same.

    Args:
        key: The 32-byte vault key.
        minimal_diff: Reuse unchanged superblocks from a previous version.
    """

    def __init__(self, key: bytes, minimal_diff: bool = False):
        self.minimal_diff = minimal_diff
        self._blocks = SuperblockEncrypter(key)
        self._previous = SuperblockDecrypter(key) if minimal_diff else None

    def encrypt_file(self, plaintext: bytes, existing: bytes | None = None) -> bytes:
        """
        Encrypt a whole file.

        Args:
            plaintext: File contents, any length.
            existing: Current ciphertext of the same file. Only consulted
                when the encrypter was built with minimal_diff=True. Ignored
                when its length is not a whole number of superblocks.

        Returns:
            Ciphertext of exactly block_count(len(plaintext)) * 256 bytes.

        Raises:
            RandomnessError: If no IV could be generated.
        """
        blocks = block_count(len(plaintext))
        ciphertext = bytearray(blocks * SUPERBLOCK_SIZE)
        out = memoryview(ciphertext)

        use_existing = self.minimal_diff and existing is not None
        if use_existing and len(existing) % SUPERBLOCK_SIZE:
            # A damaged file must still be rewritable
            logger.debug("Ignoring existing ciphertext of %d bytes: not whole superblocks", len(existing))
            use_existing = False
        if use_existing:
            previous_blocks = len(existing) // SUPERBLOCK_SIZE
        reused = 0

        for index in range(blocks):
            chunk = plaintext[index * CONTENT_SIZE:(index + 1) * CONTENT_SIZE]
            dst = out[index * SUPERBLOCK_SIZE:(index + 1) * SUPERBLOCK_SIZE]

            if use_existing and index < previous_blocks:
                old = existing[index * SUPERBLOCK_SIZE:(index + 1) * SUPERBLOCK_SIZE]
                if self._unchanged(old, chunk):
                    dst[:] = old
                    reused += 1
                    continue

            self._blocks.encrypt_into(dst, chunk)

        logger.debug("Encrypted %d bytes into %d superblocks (%d reused)", len(plaintext), blocks, reused)
        return bytes(ciphertext)

    def _unchanged(self, old_superblock: bytes, chunk: bytes) -> bool:
        content = bytearray(CONTENT_SIZE)
        length = self._previous.decrypt_into(content, old_superblock)
        return length == len(chunk) and content[:length] == chunk


class FileDecrypter:
    """
    Decrypts whole files.

    Args:
        key: The 32-byte vault key.
    """

    def __init__(self, key: bytes):
        self._blocks = SuperblockDecrypter(key)

    def decrypt_file(self, ciphertext: bytes, item: str | None = None) -> bytes:
        """
        Decrypt a whole file.

        Args:
            ciphertext: Concatenated superblocks.
            item: Name used in error messages.

        Raises:
            CorruptionError: If the length is not a multiple of 256 or any
                length byte exceeds 239. The error names the superblock.
        """
        _check_ciphertext_length(ciphertext, item)

        plaintext = bytearray()
        content = bytearray(CONTENT_SIZE)
        src = memoryview(ciphertext)
        for index in range(len(ciphertext) // SUPERBLOCK_SIZE):
            length = self._blocks.decrypt_into(
                content, src[index * SUPERBLOCK_SIZE:(index + 1) * SUPERBLOCK_SIZE]
            )
            if length > MAX_LENGTH_BYTE:
                raise CorruptionError(
                    f"superblock length byte {length} exceeds {MAX_LENGTH_BYTE}",
                    item=item,
                    superblock=index,
                )
            plaintext += content[:length]
        return bytes(plaintext)

    def decrypt_superblock_at(self, ciphertext: bytes, index: int) -> bytes:
        """
        Decrypt only superblock `index` of a file's ciphertext.

        Raises:
            IndexError: If the file has no such superblock.
            CorruptionError: As for decrypt_file().
        """
        _check_ciphertext_length(ciphertext)
        total = len(ciphertext) // SUPERBLOCK_SIZE
        if not 0 <= index < total:
            raise IndexError(f"superblock {index} out of range (file has {total})")
        start = index * SUPERBLOCK_SIZE
        return self._blocks.decrypt(ciphertext[start:start + SUPERBLOCK_SIZE], index=index)
