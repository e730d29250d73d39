"""
Superblock Codec
Encrypts and decrypts one fixed-size unit of a file.

Each file is divided into superblocks that are 256 bytes on disk:

  [IV 16B][AES-256-CBC ciphertext 240B]

The 240 ciphertext bytes (15 AES blocks) decrypt to one length byte
followed by 239 bytes of content, zero-padded past the length. Storage
overhead over plaintext is about 7.1%.

Every superblock carries its own random IV, so any superblock can be
decrypted without touching the others, and corruption never spreads
past 239 bytes of plaintext.

Confidentiality only: CBC has no integrity check. A flipped ciphertext
bit is only noticed when it pushes the length byte out of range.
"""

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from cryptvault.errors import CorruptionError, SizeError, VaultKeyError
from cryptvault.kdf import KEY_SIZE, random_bytes

IV_SIZE = 16
SUPERBLOCK_SIZE = 256
CIPHERTEXT_SIZE = SUPERBLOCK_SIZE - IV_SIZE   # 240
CONTENT_SIZE = CIPHERTEXT_SIZE - 1            # 239
MAX_LENGTH_BYTE = CONTENT_SIZE


def _check_key(key: bytes):
    if len(key) != KEY_SIZE:
        raise VaultKeyError(f"incorrect key size: {len(key)} bytes, expected {KEY_SIZE}")


class SuperblockEncrypter:
    """
    Encrypts single superblocks under one key.

    Not safe for concurrent use from several threads.

    Args:
        key: The 32-byte vault key.
    """

    def __init__(self, key: bytes):
        _check_key(key)
        # The algorithm object is reused; the CBC context is rebuilt per
        # superblock because the library offers no way to reset its IV.
        self._algorithm = algorithms.AES(key)

    def encrypt_into(self, dst, plaintext: bytes):
        """
        Encrypt up to 239 bytes of plaintext into a 256-byte buffer.

        Args:
            dst: Writable buffer (bytearray or memoryview) of exactly 256 bytes.
            plaintext: At most 239 bytes.

        Raises:
            SizeError: If dst is not 256 bytes or plaintext exceeds 239.
            RandomnessError: If no IV could be generated.
        """
        if len(dst) != SUPERBLOCK_SIZE:
            raise SizeError(f"superblock destination must be {SUPERBLOCK_SIZE} bytes, got {len(dst)}")
        if len(plaintext) > CONTENT_SIZE:
            raise SizeError(f"superblock plaintext must be at most {CONTENT_SIZE} bytes, got {len(plaintext)}")

        iv = random_bytes(IV_SIZE)
        block = bytes([len(plaintext)]) + bytes(plaintext) + bytes(CONTENT_SIZE - len(plaintext))

        encryptor = Cipher(self._algorithm, modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(block) + encryptor.finalize()

        dst[:IV_SIZE] = iv
        dst[IV_SIZE:] = ciphertext

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt up to 239 bytes into a new 256-byte superblock."""
        out = bytearray(SUPERBLOCK_SIZE)
        self.encrypt_into(out, plaintext)
        return bytes(out)


class SuperblockDecrypter:
    """
    Decrypts single superblocks under one key.

    Calls share no state, so superblocks may be decoded in any order.

    Args:
        key: The 32-byte vault key.
    """

    def __init__(self, key: bytes):
        _check_key(key)
        self._algorithm = algorithms.AES(key)

    def decrypt_into(self, dst, src: bytes) -> int:
        """
        Decrypt one 256-byte superblock.

        Writes the 239 content bytes (including padding) into dst and
        returns the length byte. The length byte is not validated here.

        Args:
            dst: Writable buffer of exactly 239 bytes.
            src: Exactly 256 bytes of superblock.

        Returns:
            The recovered length byte (0-255).

        Raises:
            SizeError: If dst or src has the wrong size.
        """
        if len(src) != SUPERBLOCK_SIZE or len(dst) != CONTENT_SIZE:
            raise SizeError(
                f"incorrect size for src or dst: src={len(src)} (want {SUPERBLOCK_SIZE}), "
                f"dst={len(dst)} (want {CONTENT_SIZE})"
            )

        src = bytes(src)
        iv = src[:IV_SIZE]
        decryptor = Cipher(self._algorithm, modes.CBC(iv)).decryptor()
        block = decryptor.update(src[IV_SIZE:]) + decryptor.finalize()

        dst[:] = block[1:]
        return block[0]

    def decrypt(self, src: bytes, index: int | None = None) -> bytes:
        """
        Decrypt one superblock and return only its meaningful content.

        Raises:
            SizeError: If src is not 256 bytes.
            CorruptionError: If the length byte exceeds 239.
        """
        content = bytearray(CONTENT_SIZE)
        length = self.decrypt_into(content, src)
        if length > MAX_LENGTH_BYTE:
            raise CorruptionError(
                f"superblock length byte {length} exceeds {MAX_LENGTH_BYTE}",
                superblock=index,
            )
        return bytes(content[:length])
