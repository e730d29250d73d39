"""
Filename Codec
Encrypts item names before they reach the backend.

  name → UTF-8 → AES-SIV → base32 (lowercase, unpadded) → backend name

AES-SIV is deterministic: the same name always encrypts to the same
backend name under one key. That is what lets the vault look items up by
name without listing the whole folder. Each name is encrypted on its own,
so renaming or listing one item never involves another.

SIV also authenticates the name. A backend name that was not produced by
this codec under this key is rejected, never passed through.

The name key is derived from the vault key with HKDF, so it is
independent from the key used for file content.
"""

import base64
import binascii

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESSIV
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from cryptvault.errors import CorruptionError, SizeError, VaultKeyError
from cryptvault.kdf import KEY_SIZE

SIV_KEY_SIZE = 64  # AES-256-SIV
SIV_TAG_SIZE = 16
MAX_ENCRYPTED_NAME = 255  # common filesystem limit
# 255 base32 chars carry 159 bytes, minus the SIV tag
MAX_NAME_BYTES = MAX_ENCRYPTED_NAME * 5 // 8 - SIV_TAG_SIZE  # 143

_NAME_CONTEXT = b"cryptvault-filename-key-v1"
_FORBIDDEN = ("/", "\\", "\x00")


def derive_name_key(key: bytes) -> bytes:
    """Derive the AES-SIV name key from the vault key."""
    if len(key) != KEY_SIZE:
        raise VaultKeyError(f"incorrect key size: {len(key)} bytes, expected {KEY_SIZE}")
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=SIV_KEY_SIZE,
        salt=None,
        info=_NAME_CONTEXT,
    )
    return hkdf.derive(key)


def validate_name(name: str) -> bytes:
    """
    Check a plaintext item name and return its UTF-8 bytes.

    Raises:
        ValueError: For empty names, "." or "..", or names containing
            a path separator or NUL.
        SizeError: If the name is longer than MAX_NAME_BYTES.
    """
    if not name:
        raise ValueError("item name must not be empty")
    if name in (".", ".."):
        raise ValueError(f"item name must not be {name!r}")
    for char in _FORBIDDEN:
        if char in name:
            raise ValueError(f"item name must not contain {char!r}")
    raw = name.encode("utf-8")
    if len(raw) > MAX_NAME_BYTES:
        raise SizeError(f"item name is {len(raw)} bytes, at most {MAX_NAME_BYTES} allowed")
    return raw


class FilenameCodec:
    """
    Encrypts and decrypts item names.

    Args:
        key: The 32-byte vault key.
    """

    def __init__(self, key: bytes):
        self._siv = AESSIV(derive_name_key(key))

    def encrypt(self, name: str) -> str:
        """Encrypt a name into a backend-safe string (a-z, 2-7)."""
        sealed = self._siv.encrypt(validate_name(name), None)
        return base64.b32encode(sealed).decode("ascii").rstrip("=").lower()

    def decrypt(self, encrypted: str) -> str:
        """
        Decrypt a backend name.

        Raises:
            CorruptionError: If the name is not valid base32, is too short,
                fails authentication (wrong key, foreign or tampered name),
                or is not valid UTF-8.
        """
        if not encrypted or encrypted != encrypted.lower() or len(encrypted) > MAX_ENCRYPTED_NAME:
            raise CorruptionError("not an encrypted name", item=encrypted)

        padded = encrypted.upper() + "=" * (-len(encrypted) % 8)
        try:
            sealed = base64.b32decode(padded)
        except (binascii.Error, ValueError) as e:
            raise CorruptionError(f"encrypted name is not base32: {e}", item=encrypted) from e

        if len(sealed) <= SIV_TAG_SIZE:
            raise CorruptionError("encrypted name is too short", item=encrypted)

        try:
            raw = self._siv.decrypt(sealed, None)
        except InvalidTag as e:
            raise CorruptionError("encrypted name failed authentication", item=encrypted) from e

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptionError("decrypted name is not UTF-8", item=encrypted) from e
