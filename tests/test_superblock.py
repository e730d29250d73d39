"""Tests for the superblock codec."""

import os
import sys
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

sys.path.insert(0, str(Path(__file__).parent.parent))

from cryptvault.errors import CorruptionError, RandomnessError, SizeError, VaultKeyError
from cryptvault.superblock import (
    CONTENT_SIZE,
    IV_SIZE,
    SUPERBLOCK_SIZE,
    SuperblockDecrypter,
    SuperblockEncrypter,
)

KEY = bytes(range(32))


def raw_superblock(key: bytes, length_byte: int, content: bytes = b"") -> bytes:
    """Build a superblock by hand, with any length byte."""
    iv = os.urandom(IV_SIZE)
    block = bytes([length_byte]) + content + bytes(CONTENT_SIZE - len(content))
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return iv + encryptor.update(block) + encryptor.finalize()


def test_encrypt_decrypt_roundtrip():
    """A superblock decrypts back to its plaintext and length byte."""
    enc = SuperblockEncrypter(KEY)
    dec = SuperblockDecrypter(KEY)
    for size in [0, 1, 100, CONTENT_SIZE]:
        plaintext = os.urandom(size)
        superblock = enc.encrypt(plaintext)
        assert len(superblock) == SUPERBLOCK_SIZE

        content = bytearray(CONTENT_SIZE)
        length = dec.decrypt_into(content, superblock)
        assert length == size
        assert bytes(content[:size]) == plaintext
        assert dec.decrypt(superblock) == plaintext
    print("  [PASS] Superblock roundtrip")


def test_padding_is_zero():
    """Bytes past the length byte decrypt to zero padding."""
    superblock = SuperblockEncrypter(KEY).encrypt(b"abc")
    content = bytearray(CONTENT_SIZE)
    SuperblockDecrypter(KEY).decrypt_into(content, superblock)
    assert content[3:] == bytes(CONTENT_SIZE - 3)


def test_matches_plain_cbc():
    """On-disk layout is IV followed by AES-256-CBC of length byte + content."""
    superblock = SuperblockEncrypter(KEY).encrypt(b"layout")
    iv, body = superblock[:IV_SIZE], superblock[IV_SIZE:]
    decryptor = Cipher(algorithms.AES(KEY), modes.CBC(iv)).decryptor()
    block = decryptor.update(body) + decryptor.finalize()
    assert block[0] == 6
    assert block[1:7] == b"layout"


def test_fresh_iv_every_call():
    """Identical plaintext never yields identical superblocks."""
    enc = SuperblockEncrypter(KEY)
    blocks = {enc.encrypt(b"same plaintext") for _ in range(50)}
    assert len(blocks) == 50
    assert len({b[:IV_SIZE] for b in blocks}) == 50
    print("  [PASS] Fresh IV per superblock")


def test_decrypt_rejects_wrong_source_size():
    """Decrypt refuses 255- and 257-byte inputs."""
    dec = SuperblockDecrypter(KEY)
    for size in [SUPERBLOCK_SIZE - 1, SUPERBLOCK_SIZE + 1, 0]:
        with pytest.raises(SizeError):
            dec.decrypt_into(bytearray(CONTENT_SIZE), bytes(size))


def test_decrypt_rejects_wrong_destination_size():
    dec = SuperblockDecrypter(KEY)
    superblock = SuperblockEncrypter(KEY).encrypt(b"x")
    for size in [CONTENT_SIZE - 1, CONTENT_SIZE + 1]:
        with pytest.raises(SizeError):
            dec.decrypt_into(bytearray(size), superblock)


def test_encrypt_rejects_wrong_sizes():
    """Encrypt needs a 256-byte destination and at most 239 bytes of plaintext."""
    enc = SuperblockEncrypter(KEY)
    with pytest.raises(SizeError):
        enc.encrypt_into(bytearray(CONTENT_SIZE), b"x")
    with pytest.raises(SizeError):
        enc.encrypt_into(bytearray(SUPERBLOCK_SIZE + 1), b"x")
    with pytest.raises(SizeError):
        enc.encrypt_into(bytearray(SUPERBLOCK_SIZE), bytes(CONTENT_SIZE + 1))
    print("  [PASS] Size contracts enforced")


def test_length_byte_out_of_range():
    """A length byte of 255 is reported as corruption, not truncated."""
    dec = SuperblockDecrypter(KEY)
    superblock = raw_superblock(KEY, 255)

    content = bytearray(CONTENT_SIZE)
    assert dec.decrypt_into(content, superblock) == 255

    with pytest.raises(CorruptionError) as info:
        dec.decrypt(superblock, index=4)
    assert info.value.superblock == 4
    assert "superblock=4" in str(info.value)


def test_rejects_wrong_key_size():
    for size in [0, 16, 31, 33, 64]:
        with pytest.raises(VaultKeyError):
            SuperblockEncrypter(bytes(size))
        with pytest.raises(VaultKeyError):
            SuperblockDecrypter(bytes(size))


def test_randomness_failure_aborts(monkeypatch):
    """No IV, no encryption. There is no weaker fallback."""
    def broken_urandom(size):
        raise OSError("entropy source unavailable")

    monkeypatch.setattr("cryptvault.kdf.os.urandom", broken_urandom)
    dst = bytearray(SUPERBLOCK_SIZE)
    with pytest.raises(RandomnessError):
        SuperblockEncrypter(KEY).encrypt_into(dst, b"secret")
    assert dst == bytearray(SUPERBLOCK_SIZE)


if __name__ == "__main__":
    print("Testing superblock codec...\n")
    test_encrypt_decrypt_roundtrip()
    test_fresh_iv_every_call()
    test_encrypt_rejects_wrong_sizes()
    print(f"\n{'='*50}")
    print("Superblock tests passed! (run with pytest for the full suite)")
