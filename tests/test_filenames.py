"""Tests for filename encryption."""

import base64
import os
import re
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from cryptvault.errors import CorruptionError, SizeError, VaultKeyError
from cryptvault.filenames import MAX_ENCRYPTED_NAME, MAX_NAME_BYTES, FilenameCodec

KEY = os.urandom(32)
SAFE_NAME = re.compile(r"^[a-z2-7]+$")

NAMES = [
    "notes.txt",
    "a",
    "Résumé (final) v2.pdf",
    "日本語のファイル名",
    "emoji 🔐.bin",
    ".hidden",
    "with spaces and-dashes_underscores",
    "x" * MAX_NAME_BYTES,
]


def test_roundtrip():
    """Decrypt(Encrypt(N)) == N."""
    codec = FilenameCodec(KEY)
    for name in NAMES:
        encrypted = codec.encrypt(name)
        assert encrypted != name
        assert codec.decrypt(encrypted) == name
    print("  [PASS] Filename roundtrip")


def test_encrypted_names_are_backend_safe():
    codec = FilenameCodec(KEY)
    for name in NAMES:
        encrypted = codec.encrypt(name)
        assert SAFE_NAME.match(encrypted), encrypted
        assert len(encrypted) <= MAX_ENCRYPTED_NAME


def test_deterministic_and_independent():
    """Same name, same key → same output. Different names never collide."""
    codec = FilenameCodec(KEY)
    assert codec.encrypt("notes.txt") == codec.encrypt("notes.txt")
    assert FilenameCodec(KEY).encrypt("notes.txt") == codec.encrypt("notes.txt")
    assert len({codec.encrypt(n) for n in NAMES}) == len(NAMES)


def test_different_keys_give_different_names():
    assert FilenameCodec(os.urandom(32)).encrypt("notes.txt") != FilenameCodec(KEY).encrypt("notes.txt")


def test_unrelated_strings_are_corruption():
    """Names not produced by this codec and key are never passed through."""
    codec = FilenameCodec(KEY)
    other = FilenameCodec(os.urandom(32))
    candidates = [
        "notes.txt",
        "crypt.json",
        "",
        "a",
        "abcdefgh",
        "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567",
        base64.b32encode(os.urandom(40)).decode().rstrip("=").lower(),
        other.encrypt("notes.txt"),
        "x" * 300,
    ]
    for candidate in candidates:
        with pytest.raises(CorruptionError):
            codec.decrypt(candidate)
    print("  [PASS] Unrelated names rejected")


def test_tampered_name_is_corruption():
    codec = FilenameCodec(KEY)
    encrypted = codec.encrypt("ledger.csv")
    flipped = ("b" if encrypted[5] == "a" else "a")
    tampered = encrypted[:5] + flipped + encrypted[6:]
    with pytest.raises(CorruptionError):
        codec.decrypt(tampered)


def test_invalid_names_rejected():
    codec = FilenameCodec(KEY)
    for bad in ["", ".", "..", "a/b", "a\\b", "nul\x00byte"]:
        with pytest.raises(ValueError):
            codec.encrypt(bad)
    with pytest.raises(SizeError):
        codec.encrypt("x" * (MAX_NAME_BYTES + 1))
    # Multi-byte characters count in bytes, not characters
    with pytest.raises(SizeError):
        codec.encrypt("é" * (MAX_NAME_BYTES // 2 + 1))


def test_rejects_wrong_key_size():
    with pytest.raises(VaultKeyError):
        FilenameCodec(bytes(16))


if __name__ == "__main__":
    print("Testing filename codec...\n")
    test_roundtrip()
    test_unrelated_strings_are_corruption()
    print(f"\n{'='*50}")
    print("Filename tests passed! (run with pytest for the full suite)")
