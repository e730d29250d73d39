"""
cryptvault — Basic Usage Example

Creates an encrypted vault in a local directory, stores a few files,
then shows what actually lands on disk.
"""

import shutil
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cryptvault import CorruptionError, ItemKind, LocalBackend, init_vault, open_vault


def main():
    # Your passphrase — the only key to your data
    passphrase = "my-secret-passphrase-change-this"
    vault_dir = Path("./example-vault")

    print("=" * 50)
    print("  cryptvault — Encrypted File Vault")
    print("=" * 50)

    backend = LocalBackend(vault_dir)
    vault = init_vault(backend, passphrase)

    my_files = {
        "journal.txt": b"Had a breakthrough idea today.\nBuilt the prototype. It works.\n",
        "bookmarks.csv": b"url,tag\nhttps://example.com,reference\nhttps://docs.python.org,python\n",
        "settings.json": b'{"theme": "dark", "language": "en"}',
    }

    root = vault.root()
    for name, content in my_files.items():
        ref = vault.create(root, name, ItemKind.FILE)
        vault.write(ref, content)
        print(f"  {name}: {len(content)}B plaintext -> {len(backend.read(ref.inner))}B on disk")

    print("\nWhat the vault shows:")
    for ref in vault.list(root):
        print(f"  {ref.name}")

    print("\nWhat is on disk:")
    for path in sorted(vault_dir.iterdir()):
        print(f"  {path.name}")

    # A new session, same passphrase
    reopened = open_vault(LocalBackend(vault_dir), passphrase)
    journal = reopened.ref(reopened.root(), "journal.txt")
    print(f"\nRead back journal.txt: {reopened.read(journal)!r}")

    # Try listing with wrong passphrase
    print("\nAttempting list with wrong passphrase...")
    bad_vault = open_vault(LocalBackend(vault_dir), "wrong-passphrase")
    try:
        bad_vault.list(bad_vault.root())
        print("  ERROR: Should have failed!")
    except CorruptionError as e:
        print(f"  Correctly rejected — wrong passphrase = wrong key: {e}")

    # Cleanup
    shutil.rmtree(vault_dir, ignore_errors=True)
    print("\nCleaned up example files.")


if __name__ == "__main__":
    main()
